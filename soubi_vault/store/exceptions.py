"""
Store Errors — Exception taxonomy and structured results for the encrypted store.

``change_password`` never raises these; it reports them through
:class:`StoreResult` so the UI layer can prompt again without crashing.
Everything else raises at the call site.
"""
from typing import Optional

from pydantic import BaseModel


class StoreError(Exception):
    """Base class for every encrypted store failure."""


class WrongPassword(StoreError):
    """The old password given for rotation does not match the live key."""

    def __init__(self, message: str = "Wrong password") -> None:
        super().__init__(message)


class DecryptionFailed(StoreError):
    """Authenticated decryption failed.

    Covers both a wrong password and a tampered or corrupted file; the two
    cannot be told apart.
    """

    def __init__(
        self, message: str = "Decryption failed: wrong password or corrupted file"
    ) -> None:
        super().__init__(message)


class UnsupportedFormatError(DecryptionFailed):
    """The store file carries a format version this release cannot read."""

    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"Unsupported store format version: {version}")


class NothingToReencrypt(StoreError):
    """Rotation was requested but the store holds no document."""

    def __init__(self, message: str = "Nothing to re-encrypt") -> None:
        super().__init__(message)


class IOFailure(StoreError):
    """Reading or writing the salt or blob file failed."""


class KeyDerivationError(StoreError):
    """scrypt could not produce a key."""


class StoreStateError(StoreError):
    """Operation invoked while the store is in the wrong state."""


class SerializationError(StoreError):
    """The document could not be converted to or from JSON."""


class StoreResult(BaseModel):
    """Outcome of an operation reported to the UI instead of raised."""

    success: bool
    error: Optional[str] = None

    @classmethod
    def failed(cls, err: Exception) -> "StoreResult":
        return cls(success=False, error=str(err) or err.__class__.__name__)

    def to_dict(self) -> dict:
        """Return ``{"success": ...}`` plus ``"error"`` only on failure."""
        return self.model_dump(exclude_none=True)
