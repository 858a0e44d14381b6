"""
Store Key Rotation — Re-encryption of the whole store under a new password.

Steps:
    1. Derive a candidate key from the old password and the current salt and
       compare it with the live key in constant time.
    2. Read the current document; an empty store cannot be rotated.
    3. Generate a new salt and derive the new key from the new password.
    4. Swap in the new key, persist the new salt, rewrite the document.
    5. Report the outcome as a StoreResult.

Nothing is rolled back. A crash after the new salt is persisted but before
the document is rewritten leaves a blob that neither password can open.

Security Note:
    The candidate and replaced keys are wiped as soon as they are done with.
    Never log passwords, keys, or the document.
"""
import asyncio
import logging
from typing import Union

from .exceptions import (
    NothingToReencrypt,
    StoreResult,
    StoreError,
    StoreStateError,
    WrongPassword,
)
from .encrypted_store import EncryptedStore, StoreState
from .salt import generate_salt

logger = logging.getLogger("soubi.vault")


async def rotate_password(
    store: EncryptedStore,
    old_password: Union[str, bytes],
    new_password: Union[str, bytes],
) -> StoreResult:
    """Change the password of a READY store.

    Args:
        store: Initialized store to re-key.
        old_password: Password the store was opened with.
        new_password: Password to re-key the store under.

    Returns:
        ``StoreResult(success=True)`` or ``StoreResult(success=False,
        error=...)``. The store is READY again either way.
    """
    if store.state is not StoreState.READY:
        return StoreResult.failed(
            StoreStateError(f"Store is {store.state.value}; cannot change password")
        )

    logger.info("Starting password rotation for %s", store.path)
    store._state = StoreState.ROTATING
    try:
        salt = await asyncio.to_thread(store._salts.read)
        candidate = await store._derive(old_password, salt)
        try:
            verified = candidate.matches(store._key)
        finally:
            candidate.wipe()
        if not verified:
            raise WrongPassword()

        # grab the document before anything is changed
        document = await store._read()
        if document is None:
            raise NothingToReencrypt()

        new_salt = generate_salt()
        new_key = await store._derive(new_password, new_salt)

        store._install_key(new_key)
        await asyncio.to_thread(store._salts.replace, new_salt)
        await store._write(document)
    except StoreError as err:
        logger.error("Password rotation failed for %s: %s", store.path, err)
        return StoreResult.failed(err)
    except Exception as err:
        logger.exception("Password rotation failed for %s", store.path)
        return StoreResult.failed(err)
    finally:
        store._state = StoreState.READY

    logger.info("Password changed for %s", store.path)
    return StoreResult(success=True)
