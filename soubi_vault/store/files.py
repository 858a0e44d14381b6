"""
Store Files — Blocking file helpers shared by the salt sidecar and the blob.

Writes go to a temporary sibling first and are renamed over the target, so
a crash leaves either the previous file or the new one, never a torn write.
"""
import os
import logging
from pathlib import Path
from typing import Optional

from .exceptions import IOFailure

logger = logging.getLogger("soubi.vault")

TMP_SUFFIX = ".tmp"


def read_file(path: Path) -> Optional[bytes]:
    """Return the file contents, or None if the file does not exist.

    Raises:
        IOFailure: On any other filesystem error.
    """
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as err:
        raise IOFailure(f"Cannot read {path}: {err.strerror or err}") from err


def write_file_atomic(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` via temp file, fsync and rename.

    Raises:
        IOFailure: If the temp file cannot be written or renamed.
    """
    tmp_path = path.with_name(path.name + TMP_SUFFIX)
    try:
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as err:
        # Clean up temp file on failure
        try:
            tmp_path.unlink()
        except OSError:
            pass
        raise IOFailure(f"Cannot write {path}: {err.strerror or err}") from err
    logger.debug("Wrote %d bytes to %s", len(data), path)
