"""Pydantic schemas for unlock log queries."""
from datetime import datetime

from pydantic import BaseModel


class UnlockLogEntry(BaseModel):
    """A recorded unlock attempt."""

    id: int
    face_id: int
    is_unlock: bool
    liveness_confidence: float | None = None
    fail_reason: str | None = None
    last_time: datetime


class UnlockLogPage(BaseModel):
    """One page of unlock log entries plus the total row count."""

    total: int
    items: list[UnlockLogEntry]
