"""SQLAlchemy models."""
from faceunlock.models.base import Base
from faceunlock.models.face import Face
from faceunlock.models.option import Option
from faceunlock.models.unlock_log import UnlockLog

__all__ = [
    "Base",
    "Face",
    "Option",
    "UnlockLog",
]
