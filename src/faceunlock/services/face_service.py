"""
Cache of enrolled faces mirroring the ``faces`` table.

All face CRUD goes through ``FaceCache``. The durable write is always awaited
before the cached list changes, and replacement metadata is decoded before any
write is attempted, so a rejected call never leaves a half-updated entry.
Accessors hand out deep copies.

No locking: callers must not run overlapping mutations against the same id.
"""
import logging
from typing import Any

from faceunlock.db.gateway import PersistenceGateway
from faceunlock.models.base import local_now
from faceunlock.schemas.face import AccountType, FaceCreate, FaceRecord, decode_metadata
from faceunlock.services.assets import AssetStore
from faceunlock.services.exceptions import NotFoundError, PersistenceError, SideEffectError

logger = logging.getLogger(__name__)

FACES_TABLE = "faces"

# Returned by get_alias_by_id when the face is unknown
NO_ALIAS = "none"


def _row_values(record: FaceCreate) -> dict[str, Any]:
    """Map input fields to faces table columns."""
    return {
        "user_name": record.user_name,
        "user_pwd": record.password,
        "account_type": record.account_type.value,
        "face_token": record.face_token,
        "json_data": record.json_data,
    }


class FaceCache:
    """Owns the list of enrolled faces."""

    def __init__(self, gateway: PersistenceGateway, asset_store: AssetStore) -> None:
        self._gateway = gateway
        self._asset_store = asset_store
        self._faces: list[FaceRecord] = []

    def _index_of(self, face_id: int) -> int:
        for index, face in enumerate(self._faces):
            if face.id == face_id:
                return index
        return -1

    def _require_index(self, face_id: int, operation: str) -> int:
        index = self._index_of(face_id)
        if index == -1:
            logger.warning("%s rejected, face not found: %s", operation, face_id)
            raise NotFoundError("Face", face_id)
        return index

    async def initialize(self) -> None:
        """
        Load every face row.

        Strict: one undecodable metadata blob aborts the whole load, since a
        malformed enrollment cannot be shown safely. The cache stays empty.

        Raises:
            PersistenceError: If the table could not be read.
            MetadataDecodeError: If any row's json_data is invalid.
        """
        try:
            rows = await self._gateway.select(FACES_TABLE)
        except PersistenceError as e:
            logger.error("Face cache initialization failed: %s", e)
            raise

        loaded = [
            FaceRecord(
                id=row["id"],
                user_name=row["user_name"],
                password=row["user_pwd"],
                account_type=AccountType(row["account_type"]),
                face_token=row["face_token"],
                metadata=decode_metadata(row["json_data"], face_id=row["id"]),
                created_at=row["create_time"],
            )
            for row in rows
        ]
        self._faces = loaded
        logger.info("Face cache loaded %s faces", len(loaded))

    async def add(self, record: FaceCreate) -> FaceRecord:
        """
        Enroll a face.

        The row is inserted first; the cache entry is built from the id the
        database returns.

        Raises:
            MetadataDecodeError: If json_data is invalid (nothing is written).
            PersistenceError: If the insert failed (cache untouched).
        """
        metadata = decode_metadata(record.json_data)
        created_at = local_now()
        try:
            result = await self._gateway.insert(
                FACES_TABLE, {**_row_values(record), "create_time": created_at},
            )
        except PersistenceError as e:
            logger.error("Failed to add face to database: %s", e)
            raise

        face = FaceRecord(
            id=result.last_id,
            user_name=record.user_name,
            password=record.password,
            account_type=record.account_type,
            face_token=record.face_token,
            metadata=metadata,
            created_at=created_at,
        )
        self._faces.append(face)
        logger.info("Face added: id=%s alias=%s", face.id, metadata.alias)
        return face.model_copy(deep=True)

    async def edit(self, record: FaceCreate, face_id: int) -> FaceRecord:
        """
        Replace every editable field of a face.

        Raises:
            NotFoundError: If the face is not cached (no I/O).
            MetadataDecodeError: If json_data is invalid (no I/O).
            PersistenceError: If the update failed (cache untouched).
        """
        self._require_index(face_id, "Edit")
        metadata = decode_metadata(record.json_data, face_id=face_id)

        try:
            await self._gateway.update(FACES_TABLE, _row_values(record), {"id": face_id})
        except PersistenceError as e:
            logger.error("Failed to update face %s in database: %s", face_id, e)
            raise

        # Look the index up again: the list may have shifted while awaiting
        index = self._require_index(face_id, "Edit")
        updated = self._faces[index].model_copy(
            update={
                "user_name": record.user_name,
                "password": record.password,
                "account_type": record.account_type,
                "face_token": record.face_token,
                "metadata": metadata,
            },
        )
        self._faces[index] = updated
        logger.info("Face edited: id=%s", face_id)
        return updated.model_copy(deep=True)

    async def edit_metadata(self, json_data: str, face_id: int) -> FaceRecord:
        """
        Replace only the metadata blob of a face.

        Raises:
            NotFoundError: If the face is not cached (no I/O).
            MetadataDecodeError: If json_data is invalid (no I/O).
            PersistenceError: If the update failed (cache untouched).
        """
        self._require_index(face_id, "Metadata edit")
        metadata = decode_metadata(json_data, face_id=face_id)

        try:
            await self._gateway.update(FACES_TABLE, {"json_data": json_data}, {"id": face_id})
        except PersistenceError as e:
            logger.error("Failed to update metadata of face %s: %s", face_id, e)
            raise

        index = self._require_index(face_id, "Metadata edit")
        updated = self._faces[index].model_copy(update={"metadata": metadata})
        self._faces[index] = updated
        return updated.model_copy(deep=True)

    def get_by_id(self, face_id: int) -> FaceRecord | None:
        index = self._index_of(face_id)
        if index == -1:
            return None
        return self._faces[index].model_copy(deep=True)

    def get_alias_by_id(self, face_id: int) -> str:
        face = self.get_by_id(face_id)
        if face is None:
            return NO_ALIAS
        return face.metadata.alias

    def list_faces(self) -> list[FaceRecord]:
        """All cached faces in load/insert order."""
        return [face.model_copy(deep=True) for face in self._faces]

    async def remove(self, face_id: int) -> None:
        """
        Delete a face, then try to delete its asset files.

        Asset cleanup runs after the record is gone and its failure is only
        logged; the enrollment record is what must stay consistent.

        Raises:
            NotFoundError: If the face is not cached (no I/O).
            PersistenceError: If the delete failed (cache untouched).
        """
        self._require_index(face_id, "Remove")

        try:
            await self._gateway.delete_data(FACES_TABLE, {"id": face_id})
        except PersistenceError as e:
            logger.error("Failed to delete face %s from database: %s", face_id, e)
            raise

        index = self._require_index(face_id, "Remove")
        removed = self._faces.pop(index)
        logger.info("Face removed: id=%s", face_id)

        try:
            await self._asset_store.remove(removed.face_token)
        except SideEffectError as e:
            logger.warning("Face %s removed but asset cleanup failed: %s", face_id, e)
