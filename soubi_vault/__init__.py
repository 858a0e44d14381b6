"""SOUBI Vault — Local inventory database encrypted under a user password."""
from .version import __version__
from .document import InventoryDocument
from .database import InventoryDatabase
from .store import (
    EncryptedStore,
    StoreConfig,
    StoreResult,
)

__all__ = [
    "__version__",
    "InventoryDocument",
    "InventoryDatabase",
    "EncryptedStore",
    "StoreConfig",
    "StoreResult",
]
