"""Password hashing and verification for the app login."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import bcrypt

from faceunlock.services.exceptions import CredentialError

logger = logging.getLogger(__name__)

CODE_OK = 200
CODE_MISMATCH = 401
CODE_INVALID = 400


@dataclass(frozen=True)
class CredentialResult:
    """Verifier response. ``code == CODE_OK`` means success."""

    code: int
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.code == CODE_OK


class CredentialVerifier(Protocol):
    """Verifies passwords against a stored hash and produces new hashes."""

    async def verify(self, password: str, password_hash: str) -> CredentialResult:
        ...

    async def hash(self, password: str) -> CredentialResult:
        ...


# bcrypt only considers the first 72 bytes; longer secrets are refused
MAX_PASSWORD_BYTES = 72


def _encode_password(password: str) -> bytes | None:
    """UTF-8 bytes of a usable password; None when empty, unencodable or over 72 bytes."""
    try:
        encoded = password.encode("utf-8")
    except UnicodeEncodeError:
        return None
    if not encoded or len(encoded) > MAX_PASSWORD_BYTES:
        return None
    return encoded


class BcryptCredentialVerifier:
    """
    CredentialVerifier using bcrypt.

    Both calls run in a worker thread to keep the event loop responsive.
    """

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    async def verify(self, password: str, password_hash: str) -> CredentialResult:
        """
        Check a password.

        Returns:
            CODE_OK on match, CODE_MISMATCH otherwise, CODE_INVALID when the
            hash is missing or the password cannot be used with bcrypt.

        Raises:
            CredentialError: If the stored hash is not a valid bcrypt hash.
        """
        encoded = _encode_password(password)
        if encoded is None or not password_hash:
            return CredentialResult(code=CODE_INVALID)
        try:
            matched = await asyncio.to_thread(
                bcrypt.checkpw,
                encoded,
                password_hash.encode("utf-8"),
            )
        except ValueError as e:
            raise CredentialError(f"Stored password hash is invalid: {e}") from e
        return CredentialResult(code=CODE_OK if matched else CODE_MISMATCH)

    async def hash(self, password: str) -> CredentialResult:
        """Hash a new password. Unusable passwords are rejected with CODE_INVALID."""
        encoded = _encode_password(password)
        if encoded is None:
            logger.debug("password_rejected reason=unusable")
            return CredentialResult(code=CODE_INVALID)
        salt = bcrypt.gensalt(rounds=self._rounds)
        try:
            hashed = await asyncio.to_thread(bcrypt.hashpw, encoded, salt)
        except ValueError as e:
            raise CredentialError(f"Password could not be hashed: {e}") from e
        return CredentialResult(code=CODE_OK, data={"hash": hashed.decode("utf-8")})
