"""UnlockLog model for recorded unlock attempts."""
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from faceunlock.models.base import Base, local_now


class UnlockLog(Base):
    """
    One unlock attempt.

    face_id is -1 when no enrolled face matched. Rows are written by the unlock
    service and only read by this layer, so there is no foreign key to faces.
    """

    __tablename__ = "unlock_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    face_id: Mapped[int] = mapped_column(Integer, index=True)
    is_unlock: Mapped[bool] = mapped_column(Boolean)
    liveness_confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    fail_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_time: Mapped[datetime] = mapped_column(
        DateTime,
        default=local_now,
        nullable=False,
        index=True,
    )
