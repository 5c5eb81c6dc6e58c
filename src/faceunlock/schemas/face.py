"""Pydantic schemas for enrolled faces."""
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from faceunlock.services.exceptions import MetadataDecodeError


class AccountType(StrEnum):
    """Windows account kind the face unlocks."""

    LOCAL = "local"
    ONLINE = "online"


class FaceMetadata(BaseModel):
    """
    Decoded form of a face's json_data blob.

    Only ``alias`` is required. Everything else the UI stores alongside it
    (``threshold``, ``view``, ``lock``, ``faceDetectionThreshold``, ...) is kept
    as extra fields so that round-tripping never drops data.
    """

    model_config = ConfigDict(extra="allow")

    alias: str

    @property
    def is_locked(self) -> bool:
        """Locked faces are skipped by the unlock service. Older records lack the flag."""
        return bool((self.model_extra or {}).get("lock", False))

    def extra(self, key: str, default: Any = None) -> Any:
        """Read an extension field."""
        return (self.model_extra or {}).get(key, default)


def decode_metadata(json_data: str, face_id: int | None = None) -> FaceMetadata:
    """
    Decode a json_data blob.

    Raises:
        MetadataDecodeError: If the blob is not JSON, not an object, or has no
            string ``alias``.
    """
    if not isinstance(json_data, str):
        raise MetadataDecodeError(
            f"Face metadata must be a JSON string, got {type(json_data).__name__}",
            face_id=face_id,
        )
    try:
        return FaceMetadata.model_validate_json(json_data)
    except ValidationError as e:
        target = f"face {face_id}" if face_id is not None else "face"
        raise MetadataDecodeError(
            f"Invalid metadata for {target}: {e.errors()[0]['msg']}",
            face_id=face_id,
        ) from e


class FaceCreate(BaseModel):
    """
    Replacement or new face fields.

    Metadata is supplied as the raw JSON blob exactly as it will be stored.
    """

    user_name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., max_length=255)
    account_type: AccountType
    face_token: str = Field(..., min_length=1, max_length=64)
    json_data: str


class FaceRecord(BaseModel):
    """A cached enrolled face. Metadata is always in decoded form."""

    id: int
    user_name: str
    password: str
    account_type: AccountType
    face_token: str
    metadata: FaceMetadata
    created_at: datetime
