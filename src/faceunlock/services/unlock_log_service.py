"""Queries over recorded unlock attempts."""
import logging
import re
from datetime import date, datetime, time, timedelta

from sqlalchemy import Select, func, select

from faceunlock.db.gateway import PersistenceGateway
from faceunlock.models.unlock_log import UnlockLog
from faceunlock.schemas.unlock_log import UnlockLogEntry, UnlockLogPage
from faceunlock.services.exceptions import InputValidationError

logger = logging.getLogger(__name__)

UNLOCK_LOG_TABLE = "unlock_log"

# Recorded when no enrolled face matched the camera frame
NO_FACE_ID = -1

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class UnlockLogService:
    """Read access to the unlock log, newest entries first."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        self._gateway = gateway

    async def _fetch(self, stmt: Select) -> list[UnlockLogEntry]:
        rows = await self._gateway.execute(stmt)
        return [UnlockLogEntry(**row) for row in rows]

    @staticmethod
    def _newest_first() -> Select:
        return select(UnlockLog.__table__).order_by(
            UnlockLog.last_time.desc(), UnlockLog.id.desc(),
        )

    async def query_all(self) -> list[UnlockLogEntry]:
        return await self._fetch(self._newest_first())

    async def query_page(self, page: int, page_size: int) -> UnlockLogPage:
        """
        Return one page of entries and the total count.

        Raises:
            InputValidationError: If page or page_size is below 1.
        """
        if page < 1 or page_size < 1:
            raise InputValidationError("Page and page size must be greater than 0")

        count_rows = await self._gateway.execute(
            select(func.count(UnlockLog.id).label("total")),
        )
        total = count_rows[0]["total"] if count_rows else 0
        items = await self._fetch(
            self._newest_first().limit(page_size).offset((page - 1) * page_size),
        )
        return UnlockLogPage(total=total, items=items)

    async def query_today(self, now: datetime | None = None) -> list[UnlockLogEntry]:
        """Entries recorded on the current local calendar day."""
        return await self._query_day((now or datetime.now()).date())

    async def query_by_date(self, day: str) -> list[UnlockLogEntry]:
        """
        Entries recorded on the given day.

        Args:
            day: Date in ``YYYY-MM-DD`` format.

        Raises:
            InputValidationError: If the date is malformed.
        """
        if not DATE_PATTERN.match(day or ""):
            raise InputValidationError(f"Invalid date {day!r}, expected YYYY-MM-DD")
        try:
            parsed = date.fromisoformat(day)
        except ValueError as e:
            raise InputValidationError(f"Invalid date {day!r}: {e}") from e
        return await self._query_day(parsed)

    async def _query_day(self, day: date) -> list[UnlockLogEntry]:
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        stmt = self._newest_first().where(
            UnlockLog.last_time >= start,
            UnlockLog.last_time < end,
        )
        return await self._fetch(stmt)

    async def record(
        self,
        face_id: int,
        is_unlock: bool,
        liveness_confidence: float | None = None,
        fail_reason: str | None = None,
    ) -> int:
        """Record an unlock attempt and return its id."""
        result = await self._gateway.insert(
            UNLOCK_LOG_TABLE,
            {
                "face_id": face_id,
                "is_unlock": is_unlock,
                "liveness_confidence": liveness_confidence,
                "fail_reason": fail_reason,
            },
        )
        logger.info(
            "Unlock attempt recorded: face_id=%s unlocked=%s reason=%s",
            face_id, is_unlock, fail_reason,
        )
        return result.last_id
