"""Face model for enrolled subjects."""
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from faceunlock.models.base import Base, local_now


class Face(Base):
    """
    An enrolled face bound to a Windows account.

    The face_token names the feature/image files in the asset directory
    (``<token>.face`` and ``<token>.faceimg``). json_data holds the metadata
    blob as text; it is decoded when loaded into the face cache.
    """

    __tablename__ = "faces"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_name: Mapped[str] = mapped_column(String(255))
    user_pwd: Mapped[str] = mapped_column(String(255))
    account_type: Mapped[str] = mapped_column(
        String(16),
        comment="'local' for local accounts, 'online' for Microsoft accounts",
    )
    face_token: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    json_data: Mapped[str] = mapped_column(Text)
    create_time: Mapped[datetime] = mapped_column(
        DateTime,
        default=local_now,
        nullable=False,
    )
