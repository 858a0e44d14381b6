"""Encrypted Store — Password-protected persistence for the inventory document.

Security Note (Threat Model):
    The derived key and the decrypted document live in process memory while
    the store is open. Keys are wiped on rotation and close, but copies made
    inside the cipher library are out of reach. Anyone able to dump process
    memory can recover them; this is an accepted limitation.
"""

from .config import StoreConfig
from .encrypted_store import EncryptedStore, StoreState
from .key_rotation import rotate_password
from .exceptions import (
    StoreError,
    WrongPassword,
    DecryptionFailed,
    UnsupportedFormatError,
    NothingToReencrypt,
    IOFailure,
    KeyDerivationError,
    StoreStateError,
    SerializationError,
    StoreResult,
)

__all__ = [
    "StoreConfig",
    "EncryptedStore",
    "StoreState",
    "rotate_password",
    "StoreError",
    "WrongPassword",
    "DecryptionFailed",
    "UnsupportedFormatError",
    "NothingToReencrypt",
    "IOFailure",
    "KeyDerivationError",
    "StoreStateError",
    "SerializationError",
    "StoreResult",
]
