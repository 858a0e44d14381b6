"""
Store Crypto Core — Key derivation, AEAD framing, file format and serialization.

Implements the encryption used by the encrypted store:
- Key: scrypt(password, salt) → 32-byte AES-256 key held in a ``SecretKey``
- Envelope: AES-256-GCM → [nonce 16B][tag 16B][ciphertext]
- File: [magic "SVLT"][version 1B][envelope]; headerless legacy files still open

Security Note:
    Never log passwords, keys, plaintext or ciphertext values.
    Nonces are random 128-bit; a fresh one is drawn for every encryption.
"""
import os
import hmac
import logging
from typing import Any, Optional, Union

import orjson
from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import (
    DecryptionFailed,
    KeyDerivationError,
    SerializationError,
    StoreStateError,
    UnsupportedFormatError,
)

logger = logging.getLogger("soubi.vault")

KEY_LENGTH = 32  # AES-256
NONCE_SIZE = 16  # 128-bit nonce
TAG_SIZE = 16  # GCM tag
MIN_BLOB_SIZE = NONCE_SIZE + TAG_SIZE

# scrypt work factors: ~16 MiB and well under a second per unlock.
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1

MAGIC = b"SVLT"
FORMAT_VERSION = 1
HEADER_SIZE = len(MAGIC) + 1

KeyLike = Union["SecretKey", bytes, bytearray]


class SecretKey:
    """Derived key material that can be zeroed.

    The bytes live in a private ``bytearray`` so :meth:`wipe` can overwrite
    them in place. Instances refuse to be pickled or printed.
    """

    __slots__ = ("_buf", "_wiped")

    def __init__(self, material: Union[bytes, bytearray]) -> None:
        if len(material) != KEY_LENGTH:
            raise ValueError(
                f"key must be exactly {KEY_LENGTH} bytes, got {len(material)}"
            )
        self._buf = bytearray(material)
        self._wiped = False

    def __len__(self) -> int:
        return len(self._buf)

    def __repr__(self) -> str:
        return f"<SecretKey wiped={self._wiped}>"

    def __reduce__(self):
        raise TypeError("SecretKey cannot be serialized")

    def __del__(self) -> None:
        self.wipe()

    @property
    def wiped(self) -> bool:
        return self._wiped

    def material(self) -> bytearray:
        """Return the live buffer. Callers must not keep a reference to it."""
        if self._wiped:
            raise StoreStateError("key material has been wiped")
        return self._buf

    def matches(self, other: KeyLike) -> bool:
        """Constant-time comparison against another key."""
        return hmac.compare_digest(self.material(), _key_bytes(other))

    def wipe(self) -> None:
        """Overwrite the key material with zeros."""
        buf = getattr(self, "_buf", None)
        if buf is None:
            return
        for i in range(len(buf)):
            buf[i] = 0
        self._wiped = True


def _key_bytes(key: KeyLike) -> Union[bytes, bytearray]:
    if isinstance(key, SecretKey):
        return key.material()
    return key


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(password: Union[str, bytes], salt: bytes) -> SecretKey:
    """Derive a 32-byte encryption key from a password using scrypt.

    Args:
        password: User password (str is UTF-8 encoded).
        salt: Salt read from, or just written to, the sidecar file.

    Returns:
        SecretKey wrapping the derived key.

    Raises:
        KeyDerivationError: If scrypt rejects its inputs or runs out of memory.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")
    try:
        kdf = Scrypt(salt=salt, length=KEY_LENGTH, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
        return SecretKey(kdf.derive(password))
    except (TypeError, ValueError, MemoryError, UnsupportedAlgorithm) as err:
        logger.error("Key derivation failed: %s", err.__class__.__name__)
        raise KeyDerivationError(f"Key derivation failed: {err}") from err


# ---------------------------------------------------------------------------
# AEAD envelope
# ---------------------------------------------------------------------------

def pack(nonce: bytes, tag: bytes, ciphertext: bytes) -> bytes:
    """Lay out an envelope as [nonce 16B][tag 16B][ciphertext]."""
    if len(nonce) != NONCE_SIZE or len(tag) != TAG_SIZE:
        raise ValueError("nonce and tag must be 16 bytes each")
    return nonce + tag + ciphertext


def unpack(blob: bytes) -> tuple[bytes, bytes, bytes]:
    """Split an envelope at its fixed offsets.

    Returns:
        Tuple of (nonce, tag, ciphertext).

    Raises:
        ValueError: If the blob cannot hold a nonce and a tag.
    """
    if len(blob) < MIN_BLOB_SIZE:
        raise ValueError(
            f"blob too short: {len(blob)} bytes (minimum {MIN_BLOB_SIZE})"
        )
    return (
        blob[:NONCE_SIZE],
        blob[NONCE_SIZE:MIN_BLOB_SIZE],
        blob[MIN_BLOB_SIZE:],
    )


def encrypt(key: KeyLike, plaintext: bytes) -> bytes:
    """Encrypt plaintext with AES-256-GCM under a fresh random nonce.

    Args:
        key: 32-byte key.
        plaintext: Data to encrypt.

    Returns:
        Envelope bytes [nonce][tag][ciphertext].
    """
    nonce = os.urandom(NONCE_SIZE)
    sealed = AESGCM(_key_bytes(key)).encrypt(nonce, plaintext, None)
    # AESGCM appends the tag; the envelope carries it up front.
    return pack(nonce, sealed[-TAG_SIZE:], sealed[:-TAG_SIZE])


def decrypt(key: KeyLike, blob: bytes) -> bytes:
    """Authenticate and decrypt an envelope.

    Raises:
        DecryptionFailed: On a short blob, a wrong key, or any tampering.
    """
    try:
        nonce, tag, ciphertext = unpack(blob)
        return AESGCM(_key_bytes(key)).decrypt(nonce, ciphertext + tag, None)
    except (InvalidTag, ValueError) as err:
        raise DecryptionFailed() from err


# ---------------------------------------------------------------------------
# Store file format
# ---------------------------------------------------------------------------

def seal_store_file(key: KeyLike, plaintext: bytes) -> bytes:
    """Encrypt plaintext and prefix the current format header."""
    return MAGIC + bytes([FORMAT_VERSION]) + encrypt(key, plaintext)


def open_store_file(key: KeyLike, data: bytes) -> Optional[bytes]:
    """Decrypt the contents of a store file.

    Files without the magic prefix are read as legacy headerless envelopes.
    A legacy envelope may start with the magic bytes by chance, so a headered
    file that fails authentication is retried as a legacy one.

    Returns:
        Plaintext bytes, or None when the file holds no envelope.

    Raises:
        UnsupportedFormatError: Header names an unknown format version.
        DecryptionFailed: Wrong key or damaged data.
    """
    legacy = data if len(data) >= MIN_BLOB_SIZE else None
    if data[:len(MAGIC)] == MAGIC and len(data) >= HEADER_SIZE:
        version = data[len(MAGIC)]
        payload = data[HEADER_SIZE:]
        if version == FORMAT_VERSION:
            if len(payload) < MIN_BLOB_SIZE:
                return None
            try:
                return decrypt(key, payload)
            except DecryptionFailed:
                if legacy is None:
                    raise
                return decrypt(key, legacy)
        if legacy is not None:
            try:
                return decrypt(key, legacy)
            except DecryptionFailed:
                pass
        raise UnsupportedFormatError(version)
    if legacy is None:
        return None
    return decrypt(key, legacy)


# ---------------------------------------------------------------------------
# Document serialization
# ---------------------------------------------------------------------------

def serialize_document(document: Any) -> bytes:
    """Serialize a document tree to indented JSON bytes.

    Raises:
        SerializationError: If the tree holds values JSON cannot represent.
    """
    try:
        return orjson.dumps(document, option=orjson.OPT_INDENT_2)
    except orjson.JSONEncodeError as err:
        raise SerializationError(f"Document is not serializable: {err}") from err


def deserialize_document(data: bytes) -> Any:
    """Parse JSON bytes back into a document tree.

    Raises:
        SerializationError: If the bytes are not valid JSON.
    """
    try:
        return orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise SerializationError(f"Document is not valid JSON: {err}") from err
