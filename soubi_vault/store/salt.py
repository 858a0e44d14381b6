"""
Salt Store — The random salt persisted next to the encrypted blob.

The salt is created once, on first run, and written to disk before any key
is derived from it. Without the persisted salt the blob can never be
decrypted again.
"""
import secrets
import logging
from pathlib import Path

from .exceptions import IOFailure
from .files import read_file, write_file_atomic

logger = logging.getLogger("soubi.vault")

SALT_LENGTH = 32


def generate_salt() -> bytes:
    """Return a fresh cryptographically random salt."""
    return secrets.token_bytes(SALT_LENGTH)


class SaltStore:
    """Sidecar file holding the raw salt bytes."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def get_or_create(self) -> bytes:
        """Read the salt, creating and persisting one on first use.

        An existing salt is returned verbatim; its length is not checked.

        Returns:
            Salt bytes.

        Raises:
            IOFailure: If the sidecar cannot be read or written.
        """
        salt = read_file(self.path)
        if salt is not None:
            return salt
        salt = generate_salt()
        write_file_atomic(self.path, salt)
        logger.info("Created new salt at %s", self.path)
        return salt

    def read(self) -> bytes:
        """Read the persisted salt.

        Raises:
            IOFailure: If the sidecar is missing or unreadable.
        """
        salt = read_file(self.path)
        if salt is None:
            raise IOFailure(f"Salt file {self.path} is missing")
        return salt

    def replace(self, salt: bytes) -> None:
        """Overwrite the persisted salt.

        Raises:
            IOFailure: If the sidecar cannot be written.
        """
        write_file_atomic(self.path, salt)
        logger.info("Replaced salt at %s", self.path)
