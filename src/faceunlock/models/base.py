"""SQLAlchemy declarative base."""
from datetime import datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def local_now() -> datetime:
    """
    Current local wall-clock time without tzinfo.

    SQLite has no timezone-aware column type, so every stored timestamp is
    naive local time (matching what the unlock service writes).
    """
    return datetime.now()
