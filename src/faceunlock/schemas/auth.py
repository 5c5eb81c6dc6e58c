"""Schemas for the login session state."""
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class AuthState(StrEnum):
    """Where the session sits in the login state machine."""

    DISABLED = "disabled"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"


@dataclass(frozen=True)
class AuthSession:
    """Immutable snapshot of the session controller's state."""

    login_enabled: bool
    password_hash: str
    is_logged_in: bool
    login_time: datetime | None
    expire_minutes: int


@dataclass(frozen=True)
class ExpireOption:
    """A session timeout preset offered in the settings view."""

    label: str
    minutes: int
