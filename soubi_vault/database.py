"""
Inventory Database — The inventory document kept in an encrypted store.

The application opens one ``InventoryDatabase`` at unlock time and passes it
to whatever needs the document; there is no module-level handle.

Security Note:
    ``export_to`` writes the document in plaintext on purpose (it is the user's
    backup/transfer file). Never log document contents.
"""
import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from .document import InventoryDocument
from .store import EncryptedStore, StoreConfig, StoreError, StoreResult
from .store.exceptions import IOFailure
from .store.files import read_file, write_file_atomic

logger = logging.getLogger("soubi.db")


class InventoryDatabase:
    """Encrypted inventory database.

    Wraps an initialized :class:`EncryptedStore` and the decrypted
    :class:`InventoryDocument`. Mutate ``document`` and call ``save()``.
    """

    def __init__(self, store: EncryptedStore, document: InventoryDocument):
        self._store = store
        self._document = document

    def __repr__(self) -> str:
        return f"<InventoryDatabase path={self._store.path}>"

    @property
    def store(self) -> EncryptedStore:
        return self._store

    @property
    def document(self) -> InventoryDocument:
        return self._document

    @property
    def path(self) -> Path:
        return self._store.path

    def _default_document(self) -> InventoryDocument:
        return InventoryDocument.default(str(self._store.path.parent))

    async def save(self, force: bool = False) -> None:
        """Encrypt and persist the document if it changed.

        Args:
            force: Write even when the document is not marked as changed.
        """
        if not force and not self._document.is_changed:
            return
        await self._store.write(self._document.to_dict())
        self._document.is_changed = False

    async def factory_reset(self) -> StoreResult:
        """Replace the document with an empty inventory and save it."""
        self._document = self._default_document()
        await self.save()
        logger.info("Factory reset of %s", self.path)
        return StoreResult(success=True)

    async def change_password(self, old_password: str, new_password: str) -> StoreResult:
        """Re-key the underlying store. Unsaved changes are saved first."""
        if self._document.is_changed:
            try:
                await self.save()
            except StoreError as err:
                return StoreResult.failed(err)
        return await self._store.change_password(old_password, new_password)

    async def export_to(self, destination: Union[str, Path]) -> StoreResult:
        """Write the document as plain JSON to ``destination``."""
        destination = Path(destination)
        try:
            data = self._document.encode()
            await asyncio.to_thread(write_file_atomic, destination, data)
        except (StoreError, RuntimeError) as err:
            logger.error("Export failed: %s", err)
            return StoreResult.failed(err)
        logger.info("Exported database to %s", destination)
        return StoreResult(success=True)

    async def import_from(self, source: Union[str, Path]) -> StoreResult:
        """Replace the document with the JSON file at ``source``.

        The file must hold an ``assets`` list and a ``loadouts`` entry;
        otherwise nothing is changed.
        """
        source = Path(source)
        try:
            data = await asyncio.to_thread(read_file, source)
            if data is None:
                raise IOFailure(f"Cannot read {source}: file not found")
            document = InventoryDocument.decode(data)
            if not document.is_valid():
                raise ValueError("Invalid SOUBI database file")
            document.changed()
            self._document = document
            await self.save()
        except (StoreError, ValueError) as err:
            logger.error("Import failed: %s", err)
            return StoreResult.failed(err)
        logger.info("Imported database from %s", source)
        return StoreResult(success=True)

    def close(self) -> None:
        """Lock the database: wipe the store key."""
        self._store.close()

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    async def open(
        cls,
        password: str,
        config: Optional[StoreConfig] = None,
    ) -> "InventoryDatabase":
        """Unlock the store and load the document, seeding it on first run.

        Args:
            password: User password.
            config: Store locations; defaults to ``StoreConfig.from_env()``.

        Returns:
            Opened InventoryDatabase.

        Raises:
            DecryptionFailed: Wrong password or corrupted file.
            IOFailure: Store files cannot be accessed.
        """
        if config is None:
            config = StoreConfig.from_env()
        store = await EncryptedStore.open(config, password)
        try:
            data = await store.read()
        except StoreError:
            store.close()
            raise
        if isinstance(data, dict) and data.get('assets') is not None:
            db = cls(store, InventoryDocument(data))
            logger.info("Loaded existing database from %s", store.path)
        else:
            # File was empty or missing, write defaults
            db = cls(store, InventoryDocument.default(str(store.path.parent)))
            await db.save()
            logger.info("Created new database at %s", store.path)
        return db
