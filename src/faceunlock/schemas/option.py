"""Pydantic schemas for configuration options."""
from datetime import datetime

from pydantic import BaseModel


class OptionEntry(BaseModel):
    """A cached option row."""

    id: int
    key: str
    val: str
    last_time: datetime
