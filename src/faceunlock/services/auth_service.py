"""
Login session controller.

Gates access to protected views. When a password is set, every process start
requires a fresh login; an optional timeout additionally expires the session.
Expiry is never checked by a timer - callers ask ``is_expired()`` at each
protected navigation decision (see ``services.navigation``).

Durable state lives in the preference store under these keys:

- ``auth_login_enabled``: "true" when a password is set
- ``auth_password_hash``: bcrypt hash of the password
- ``auth_expire_minutes``: session timeout, "0" means no timeout
- ``auth_login_time``: ISO timestamp of the last successful login
"""
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from faceunlock.core.preferences import PreferenceStore
from faceunlock.schemas.auth import AuthSession, AuthState, ExpireOption
from faceunlock.services.credentials import CredentialVerifier
from faceunlock.services.exceptions import CredentialError, InputValidationError

logger = logging.getLogger(__name__)

KEY_LOGIN_ENABLED = "auth_login_enabled"
KEY_PASSWORD_HASH = "auth_password_hash"
KEY_EXPIRE_MINUTES = "auth_expire_minutes"
KEY_LOGIN_TIME = "auth_login_time"

EXPIRE_OPTIONS: tuple[ExpireOption, ...] = (
    ExpireOption(label="No timeout (verify only when the app starts)", minutes=0),
    ExpireOption(label="15 minutes", minutes=15),
    ExpireOption(label="30 minutes", minutes=30),
    ExpireOption(label="1 hour", minutes=60),
    ExpireOption(label="2 hours", minutes=120),
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _parse_expire_minutes(raw: str | None) -> int:
    if raw is None:
        return 0
    try:
        minutes = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid stored expire minutes: %r", raw)
        return 0
    return max(minutes, 0)


class SessionAuthController:
    """Owns the login-enabled flag, password hash, expiry policy and live session."""

    def __init__(
        self,
        preferences: PreferenceStore,
        verifier: CredentialVerifier,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._preferences = preferences
        self._verifier = verifier
        self._clock = clock

        self.login_enabled = False
        self.password_hash = ""
        self.is_logged_in = True
        self.login_time: datetime | None = None
        self.expire_minutes = 0

    def initialize(self) -> bool:
        """
        Rehydrate from durable storage.

        A stored login timestamp from a previous run is discarded: with login
        enabled, every process start requires a fresh verification.

        Returns:
            True if the app may be entered without logging in.
        """
        self.login_enabled = self._preferences.get(KEY_LOGIN_ENABLED) == "true"
        self.password_hash = self._preferences.get(KEY_PASSWORD_HASH) or ""
        self.expire_minutes = _parse_expire_minutes(self._preferences.get(KEY_EXPIRE_MINUTES))

        if self.login_enabled and self.password_hash:
            self.is_logged_in = False
            self.login_time = None
            self._forget_login_time()
            logger.info("Login enabled, password verification required")
            return False

        self.is_logged_in = True
        logger.info("Login disabled, entering without verification")
        return True

    async def login(self, password: str) -> bool:
        """
        Verify the password and start a session.

        Never raises: mismatches, verifier failures and storage failures all
        return False and leave the state unchanged.
        """
        try:
            result = await self._verifier.verify(password, self.password_hash)
        except CredentialError as e:
            logger.warning("Login verification failed: %s", e)
            return False

        if not result.ok:
            logger.warning("Login rejected, code=%s", result.code)
            return False

        now = self._clock()
        try:
            self._preferences.set(KEY_LOGIN_TIME, now.isoformat())
        except OSError as e:
            logger.error("Failed to persist login time: %s", e)
            return False

        self.is_logged_in = True
        self.login_time = now
        logger.info("Login succeeded")
        return True

    async def set_password(self, password: str) -> bool:
        """
        Hash and store a new password, enabling login.

        The current session is left as is, so setting a password while logged
        in does not log the user out.
        """
        try:
            result = await self._verifier.hash(password)
        except CredentialError as e:
            logger.warning("Password hashing failed: %s", e)
            return False

        new_hash = result.data.get("hash", "") if result.ok else ""
        if not new_hash:
            logger.warning("Password not set, code=%s", result.code)
            return False

        try:
            self._preferences.set(KEY_PASSWORD_HASH, new_hash)
            self._preferences.set(KEY_LOGIN_ENABLED, "true")
        except OSError as e:
            logger.error("Failed to persist password: %s", e)
            return False

        self.password_hash = new_hash
        self.login_enabled = True
        logger.info("Login password set")
        return True

    def clear_password(self) -> None:
        """Disable login. Always grants access, even if storage cleanup fails."""
        self.password_hash = ""
        self.login_enabled = False
        self.is_logged_in = True
        try:
            self._preferences.remove(KEY_PASSWORD_HASH)
            self._preferences.remove(KEY_LOGIN_ENABLED)
        except OSError as e:
            logger.error("Failed to remove stored password: %s", e)
        logger.info("Login password cleared")

    def logout(self) -> None:
        """End the session at the user's request."""
        self._end_session()
        logger.info("User logged out")

    def clear_login_state(self) -> None:
        """End the session after expiry was detected."""
        self._end_session()
        logger.info("Login state cleared")

    def _end_session(self) -> None:
        self.is_logged_in = False
        self.login_time = None
        self._forget_login_time()

    def _forget_login_time(self) -> None:
        try:
            self._preferences.remove(KEY_LOGIN_TIME)
        except OSError as e:
            logger.error("Failed to remove stored login time: %s", e)

    def set_expire_minutes(self, minutes: int) -> None:
        """
        Change the session timeout. 0 disables the timeout.

        Raises:
            InputValidationError: If minutes is not a non-negative integer.
            OSError: If the value could not be stored.
        """
        if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes < 0:
            raise InputValidationError(f"Expire minutes must be a non-negative integer: {minutes!r}")
        self._preferences.set(KEY_EXPIRE_MINUTES, str(minutes))
        self.expire_minutes = minutes
        logger.info("Session timeout set to %s minutes", minutes)

    @staticmethod
    def expire_options() -> tuple[ExpireOption, ...]:
        return EXPIRE_OPTIONS

    def is_expired(self, now: datetime | None = None) -> bool:
        """True once more than ``expire_minutes`` have passed since login."""
        if self.login_time is None or self.expire_minutes <= 0:
            return False
        current = now if now is not None else self._clock()
        return current - self.login_time > timedelta(minutes=self.expire_minutes)

    def should_require_login(self) -> bool:
        return bool(self.login_enabled and self.password_hash and not self.is_logged_in)

    @property
    def state(self) -> AuthState:
        if not self.login_enabled:
            return AuthState.DISABLED
        if not self.is_logged_in:
            return AuthState.UNAUTHENTICATED
        if self.is_expired():
            return AuthState.EXPIRED
        return AuthState.AUTHENTICATED

    @property
    def session(self) -> AuthSession:
        return AuthSession(
            login_enabled=self.login_enabled,
            password_hash=self.password_hash,
            is_logged_in=self.is_logged_in,
            login_time=self.login_time,
            expire_minutes=self.expire_minutes,
        )
