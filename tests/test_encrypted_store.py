"""
Tests for EncryptedStore.

Coverage:
- init: salt creation before any write, salt reuse, state transitions
- read: missing file, empty file, short payload, wrong password, tampering,
  legacy headerless files, authenticated non-JSON content
- write: headered output, atomic replacement, unserializable documents
- close: key wiped, store locked
- End-to-end reopen with the same password
"""
import orjson
import pytest

from soubi_vault.store import (
    DecryptionFailed,
    EncryptedStore,
    SerializationError,
    StoreConfig,
    StoreState,
    StoreStateError,
)
from soubi_vault.store.crypto import (
    MAGIC,
    derive_key,
    encrypt,
    seal_store_file,
)
from soubi_vault.store.files import TMP_SUFFIX


PASSWORD = "abc123"


class TestInit:
    """Tests for store initialization."""

    @pytest.mark.asyncio
    async def test_init_creates_salt(self, config):
        """First init persists a 32-byte salt and no blob."""
        store = await EncryptedStore.open(config, PASSWORD)
        assert store.state is StoreState.READY
        assert len(config.salt_path.read_bytes()) == 32
        assert not config.store_path.exists()
        assert store.exists is False

    @pytest.mark.asyncio
    async def test_init_reuses_salt(self, config):
        await EncryptedStore.open(config, PASSWORD)
        salt = config.salt_path.read_bytes()
        await EncryptedStore.open(config, PASSWORD)
        assert config.salt_path.read_bytes() == salt

    @pytest.mark.asyncio
    async def test_init_creates_data_dir(self, tmp_path):
        config = StoreConfig(store_path=tmp_path / "nested" / "dir" / "db")
        await EncryptedStore.open(config, PASSWORD)
        assert config.salt_path.exists()

    @pytest.mark.asyncio
    async def test_init_twice(self, config):
        store = await EncryptedStore.open(config, PASSWORD)
        with pytest.raises(StoreStateError):
            await store.init(PASSWORD)

    @pytest.mark.asyncio
    async def test_uninitialized_store(self, config):
        """read/write need an initialized store."""
        store = EncryptedStore(config)
        assert store.state is StoreState.UNINITIALIZED
        with pytest.raises(StoreStateError):
            await store.read()
        with pytest.raises(StoreStateError):
            await store.write({"foo": 1})

    @pytest.mark.asyncio
    async def test_repr_hides_key(self, config):
        store = await EncryptedStore.open(config, PASSWORD)
        assert "ready" in repr(store)
        assert PASSWORD not in repr(store)


class TestRead:
    """Tests for reading the store."""

    @pytest.mark.asyncio
    async def test_missing_file(self, config):
        store = await EncryptedStore.open(config, PASSWORD)
        assert await store.read() is None

    @pytest.mark.asyncio
    async def test_empty_file(self, config):
        store = await EncryptedStore.open(config, PASSWORD)
        config.store_path.write_bytes(b"")
        assert await store.read() is None

    @pytest.mark.asyncio
    async def test_short_file(self, config):
        """Fewer than 32 bytes of payload is treated as no data."""
        store = await EncryptedStore.open(config, PASSWORD)
        config.store_path.write_bytes(b"x" * 31)
        assert await store.read() is None

    @pytest.mark.asyncio
    async def test_wrong_password(self, config):
        store = await EncryptedStore.open(config, PASSWORD)
        await store.write({"foo": 1})
        other = await EncryptedStore.open(config, "not-the-password")
        with pytest.raises(DecryptionFailed):
            await other.read()

    @pytest.mark.asyncio
    async def test_tampered_file(self, config):
        store = await EncryptedStore.open(config, PASSWORD)
        await store.write({"foo": 1})
        data = bytearray(config.store_path.read_bytes())
        data[-1] ^= 0x01
        config.store_path.write_bytes(bytes(data))
        with pytest.raises(DecryptionFailed):
            await store.read()

    @pytest.mark.asyncio
    async def test_legacy_file(self, config):
        """A headerless blob written by older releases still reads."""
        store = await EncryptedStore.open(config, PASSWORD)
        key = derive_key(PASSWORD, config.salt_path.read_bytes())
        config.store_path.write_bytes(encrypt(key, orjson.dumps({"legacy": True})))
        assert await store.read() == {"legacy": True}

    @pytest.mark.asyncio
    async def test_authenticated_garbage(self, config):
        """Correctly encrypted bytes that are not JSON fail like corruption."""
        store = await EncryptedStore.open(config, PASSWORD)
        key = derive_key(PASSWORD, config.salt_path.read_bytes())
        config.store_path.write_bytes(seal_store_file(key, b"not json"))
        with pytest.raises(DecryptionFailed):
            await store.read()


class TestWrite:
    """Tests for writing the store."""

    @pytest.mark.asyncio
    async def test_write_read(self, config):
        store = await EncryptedStore.open(config, PASSWORD)
        doc = {"assets": [{"id": "1", "name": "Flipper"}], "loadouts": []}
        await store.write(doc)
        assert await store.read() == doc
        assert store.exists is True

    @pytest.mark.asyncio
    async def test_file_is_encrypted(self, config):
        store = await EncryptedStore.open(config, PASSWORD)
        await store.write({"name": "Flipper"})
        data = config.store_path.read_bytes()
        assert data.startswith(MAGIC)
        assert b"Flipper" not in data

    @pytest.mark.asyncio
    async def test_rewrite_replaces(self, config):
        store = await EncryptedStore.open(config, PASSWORD)
        await store.write({"v": 1})
        await store.write({"v": 2})
        assert await store.read() == {"v": 2}
        assert not config.store_path.with_name(
            config.store_path.name + TMP_SUFFIX
        ).exists()

    @pytest.mark.asyncio
    async def test_unserializable(self, config):
        store = await EncryptedStore.open(config, PASSWORD)
        await store.write({"v": 1})
        with pytest.raises(SerializationError):
            await store.write({"v": object()})
        assert await store.read() == {"v": 1}


class TestClose:
    """Tests for locking the store."""

    @pytest.mark.asyncio
    async def test_close_wipes_key(self, config):
        store = await EncryptedStore.open(config, PASSWORD)
        key = store._key
        store.close()
        assert key.wiped is True
        assert store.state is StoreState.UNINITIALIZED
        with pytest.raises(StoreStateError):
            await store.read()

    @pytest.mark.asyncio
    async def test_reinit_after_close(self, config):
        store = await EncryptedStore.open(config, PASSWORD)
        await store.write({"foo": 1})
        store.close()
        await store.init(PASSWORD)
        assert await store.read() == {"foo": 1}


class TestEndToEnd:
    """init → write → re-init → read."""

    @pytest.mark.asyncio
    async def test_reopen_same_password(self, config):
        store = await EncryptedStore.open(config, "abc123")
        await store.write({"foo": 1})
        reopened = await EncryptedStore.open(config, "abc123")
        assert await reopened.read() == {"foo": 1}
