"""
EncryptedStore — Password-protected persistence for a single JSON document.

Provides the adapter the document layer builds on:
- ``init(password)`` — load or create the salt and derive the key
- ``read()`` — decrypt and return the stored document, or None
- ``write(document)`` — encrypt and replace the stored document
- ``change_password(old, new)`` — re-key the whole store under a new salt

The store is not reentrant and does no locking. Callers must not overlap
``read``/``write``/``change_password`` on one instance.

Security Note:
    The password is used once to derive the key and is not kept. The key
    never leaves this object and is wiped on rotation and on ``close()``.
"""
import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from .config import StoreConfig
from .crypto import (
    SecretKey,
    derive_key,
    seal_store_file,
    open_store_file,
    serialize_document,
    deserialize_document,
)
from .exceptions import (
    DecryptionFailed,
    IOFailure,
    StoreResult,
    SerializationError,
    StoreStateError,
)
from .files import read_file, write_file_atomic
from .salt import SaltStore

logger = logging.getLogger("soubi.vault")


class StoreState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    ROTATING = "rotating"


class EncryptedStore:
    """Encrypted document store backed by a blob file and a salt sidecar.

    Lifecycle: UNINITIALIZED → ``init()`` → READY. ``change_password()``
    passes through ROTATING and always lands back in READY. ``close()``
    wipes the key and returns to UNINITIALIZED.
    """

    def __init__(self, config: StoreConfig):
        self._config = config
        self._path = config.store_path
        self._salts = SaltStore(config.salt_path)
        self._key: Optional[SecretKey] = None
        self._state = StoreState.UNINITIALIZED

    def __repr__(self) -> str:
        return f"<EncryptedStore path={self._path} state={self._state.value}>"

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def salt_path(self) -> Path:
        return self._salts.path

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def exists(self) -> bool:
        """True if the blob file is present and non-empty."""
        try:
            return self._path.stat().st_size > 0
        except FileNotFoundError:
            return False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require(self, *states: StoreState) -> None:
        if self._state not in states:
            expected = " or ".join(s.value for s in states)
            raise StoreStateError(
                f"Store is {self._state.value}; operation requires {expected}"
            )

    async def _derive(self, password: Union[str, bytes], salt: bytes) -> SecretKey:
        return await asyncio.to_thread(derive_key, password, salt)

    def _install_key(self, key: SecretKey) -> None:
        """Make ``key`` the active key and wipe the one it replaces."""
        old_key, self._key = self._key, key
        if old_key is not None and old_key is not key:
            old_key.wipe()

    async def _read(self) -> Any:
        data = await asyncio.to_thread(read_file, self._path)
        if not data:
            # missing file or zero-length file: first run
            return None
        try:
            plaintext = open_store_file(self._key, data)
        except DecryptionFailed:
            logger.error(
                "Decryption failed for %s - wrong password or corrupted file",
                self._path,
            )
            raise
        if plaintext is None:
            return None
        try:
            return deserialize_document(plaintext)
        except SerializationError as err:
            logger.error("Stored document in %s is not valid JSON", self._path)
            raise DecryptionFailed() from err

    async def _write(self, document: Any) -> None:
        sealed = seal_store_file(self._key, serialize_document(document))
        await asyncio.to_thread(write_file_atomic, self._path, sealed)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def init(self, password: Union[str, bytes]) -> "EncryptedStore":
        """Load or create the salt and derive the store key.

        Args:
            password: User password. It is not retained.

        Returns:
            This store, now READY.

        Raises:
            StoreStateError: If the store is already initialized.
            IOFailure: If the salt cannot be read or persisted.
            KeyDerivationError: If scrypt fails.
        """
        self._require(StoreState.UNINITIALIZED)
        if self._config.create_dirs:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as err:
                raise IOFailure(
                    f"Cannot create {self._path.parent}: {err.strerror or err}"
                ) from err
        salt = await asyncio.to_thread(self._salts.get_or_create)
        self._install_key(await self._derive(password, salt))
        self._state = StoreState.READY
        logger.info("Encrypted store initialized at %s", self._path)
        return self

    async def read(self) -> Any:
        """Decrypt and return the stored document.

        Returns:
            The document, or None when the file is missing, empty, or too
            short to hold an envelope.

        Raises:
            DecryptionFailed: Wrong password or corrupted file.
            IOFailure: If the file exists but cannot be read.
        """
        self._require(StoreState.READY)
        return await self._read()

    async def write(self, document: Any) -> None:
        """Serialize, encrypt and persist the document, replacing the old one.

        Raises:
            SerializationError: If the document is not JSON-serializable.
            IOFailure: If the file cannot be written.
        """
        self._require(StoreState.READY)
        await self._write(document)
        logger.debug("Encrypted store written to %s", self._path)

    async def change_password(
        self, old_password: Union[str, bytes], new_password: Union[str, bytes]
    ) -> StoreResult:
        """Re-encrypt the store under ``new_password`` and a fresh salt.

        Failures are returned, never raised. See
        :func:`~soubi_vault.store.key_rotation.rotate_password`.
        """
        from .key_rotation import rotate_password

        return await rotate_password(self, old_password, new_password)

    def close(self) -> None:
        """Wipe the key and return to UNINITIALIZED."""
        if self._key is not None:
            self._key.wipe()
            self._key = None
        self._state = StoreState.UNINITIALIZED
        logger.debug("Encrypted store at %s closed", self._path)

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    async def open(
        cls, config: StoreConfig, password: Union[str, bytes]
    ) -> "EncryptedStore":
        """Create a store for ``config`` and initialize it with ``password``."""
        store = cls(config)
        return await store.init(password)
