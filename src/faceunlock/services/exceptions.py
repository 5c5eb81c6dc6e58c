"""Shared exceptions for service layer operations."""


class InputValidationError(Exception):
    """
    Raised when operation parameters are malformed.

    Always raised before any persistence call is attempted, so the caches and
    the database are untouched.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class MetadataDecodeError(InputValidationError):
    """Raised when a face's stored JSON metadata blob cannot be decoded."""

    def __init__(self, message: str, face_id: int | None = None) -> None:
        self.face_id = face_id
        super().__init__(message)


class NotFoundError(Exception):
    """Raised when an operation references an id that is not in the cache."""

    def __init__(self, entity: str, entity_id: int | str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class PersistenceError(Exception):
    """
    Raised when a persistence gateway call fails.

    The message carries the description from the underlying driver; there is
    no structured error code.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class CredentialError(Exception):
    """Raised when the credential verifier fails internally (e.g. corrupt hash)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class SideEffectError(Exception):
    """
    Base exception for best-effort side effects.

    These are logged by the caller and never fail the primary operation.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class AssetCleanupError(SideEffectError):
    """Raised when face asset files could not be removed."""

    def __init__(self, face_token: str, reason: str) -> None:
        self.face_token = face_token
        super().__init__(f"Failed to remove assets for face token {face_token}: {reason}")
