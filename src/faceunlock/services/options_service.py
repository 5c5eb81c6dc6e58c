"""Cache of configuration options mirroring the ``options`` table."""
import logging
from collections.abc import Mapping

from faceunlock.db.gateway import PersistenceGateway
from faceunlock.models.base import local_now
from faceunlock.schemas.option import OptionEntry
from faceunlock.services.exceptions import InputValidationError, PersistenceError

logger = logging.getLogger(__name__)

OPTIONS_TABLE = "options"


class OptionsCache:
    """
    Key/value mirror of the options table with idempotent upserts.

    The table has no unique constraint on ``key``; uniqueness is kept here by
    looking the key up in the cache before inserting.
    """

    def __init__(self, gateway: PersistenceGateway) -> None:
        self._gateway = gateway
        self._options: list[OptionEntry] = []

    async def initialize(self) -> None:
        """Load every option row as stored."""
        try:
            rows = await self._gateway.select(OPTIONS_TABLE)
        except PersistenceError as e:
            logger.error("Options initialization failed: %s", e)
            raise
        self._options = [OptionEntry(**row) for row in rows]
        logger.info("Options cache loaded %s entries", len(self._options))

    def _index_of(self, key: str) -> int:
        for index, option in enumerate(self._options):
            if option.key == key:
                return index
        return -1

    def get_by_key(self, key: str) -> OptionEntry | None:
        index = self._index_of(key)
        if index == -1:
            return None
        return self._options[index].model_copy()

    def get_value_by_key(self, key: str) -> str | None:
        option = self.get_by_key(key)
        return option.val if option else None

    def list_options(self) -> list[OptionEntry]:
        return [option.model_copy() for option in self._options]

    async def save_many(self, options: Mapping[str, str]) -> list[str]:
        """
        Insert or update each option in turn.

        Entries are processed one at a time, in mapping order. The
        insert-vs-update decision for each entry reads the cache as left by the
        previous entry, so this loop must never be parallelized.

        Unchanged values are skipped without a write or a timestamp bump. A
        failing entry is logged and reported; the remaining entries are still
        processed.

        Returns:
            One message per failed entry. Empty means everything was saved.
        """
        errors: list[str] = []
        for key, value in options.items():
            try:
                await self._save_one(key, value)
            except (InputValidationError, PersistenceError) as e:
                message = f"Failed to save option {key!r} = {value!r}: {e}"
                logger.error("%s", message)
                errors.append(message)
            except Exception as e:
                # One broken entry must not stop the rest of the batch
                message = f"Failed to save option {key!r} = {value!r}: {e}"
                logger.exception("%s", message)
                errors.append(message)
        return errors

    async def _save_one(self, key: str, value: str) -> None:
        if not isinstance(key, str) or not key:
            raise InputValidationError("Option key must be a non-empty string")
        if not isinstance(value, str):
            raise InputValidationError(f"Option value must be a string, got {type(value).__name__}")

        last_time = local_now()
        index = self._index_of(key)
        if index == -1:
            result = await self._gateway.insert(
                OPTIONS_TABLE, {"key": key, "val": value, "last_time": last_time},
            )
            self._options.append(
                OptionEntry(id=result.last_id, key=key, val=value, last_time=last_time),
            )
            logger.debug("option_inserted key=%s id=%s", key, result.last_id)
            return

        current = self._options[index]
        if current.val == value:
            return

        await self._gateway.update(
            OPTIONS_TABLE, {"val": value, "last_time": last_time}, {"id": current.id},
        )
        updated = current.model_copy(update={"val": value, "last_time": last_time})
        # The list may have shifted while awaiting the write
        index = self._index_of(key)
        if index == -1:
            self._options.append(updated)
        else:
            self._options[index] = updated
        logger.debug("option_updated key=%s id=%s", key, current.id)
