"""Option model for key/value application settings."""
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from faceunlock.models.base import Base, local_now


class Option(Base):
    """
    A single configuration option.

    Key uniqueness is enforced by the options cache, not by a constraint here.
    """

    __tablename__ = "options"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(128), index=True)
    val: Mapped[str] = mapped_column(Text)
    last_time: Mapped[datetime] = mapped_column(
        DateTime,
        default=local_now,
        nullable=False,
    )
