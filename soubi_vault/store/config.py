"""
Store Configuration — Validated locations of the encrypted store files.

Reads settings from environment variables:
    SOUBI_DATA_DIR = <directory holding the store> (default ~/.soubi)
    SOUBI_DB_FILE = <file name of the encrypted blob> (default soubi_db.json)
    SOUBI_SALT_SUFFIX = <suffix of the salt sidecar> (default .salt)

Security Note:
    scrypt work factors are fixed in ``crypto.py`` and are not configurable.
"""
import os
import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("soubi.vault")

DEFAULT_DB_FILE = "soubi_db.json"
DEFAULT_SALT_SUFFIX = ".salt"


def default_data_dir() -> Path:
    """Return the data directory used when SOUBI_DATA_DIR is not set."""
    return Path.home() / ".soubi"


class StoreConfig(BaseModel):
    """Validated store configuration."""

    store_path: Path
    salt_suffix: str = Field(default=DEFAULT_SALT_SUFFIX, min_length=2)
    create_dirs: bool = True

    @field_validator("salt_suffix")
    @classmethod
    def validate_salt_suffix(cls, v: str) -> str:
        """Salt suffix must look like a file extension."""
        if not v.startswith(".") or os.sep in v:
            raise ValueError(f"Invalid salt suffix: {v!r}")
        return v

    @field_validator("store_path")
    @classmethod
    def validate_store_path(cls, v: Path) -> Path:
        """Store path must not point at a directory."""
        v = v.expanduser()
        if v.is_dir():
            raise ValueError(f"store_path {v} is a directory")
        return v

    @property
    def salt_path(self) -> Path:
        """Sidecar path: the store path with the salt suffix appended."""
        return self.store_path.with_name(self.store_path.name + self.salt_suffix)

    @property
    def data_dir(self) -> Path:
        return self.store_path.parent

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """Create StoreConfig by loading values from environment.

        Returns:
            Populated StoreConfig instance.
        """
        data_dir = Path(os.environ.get("SOUBI_DATA_DIR") or default_data_dir())
        db_file = os.environ.get("SOUBI_DB_FILE", DEFAULT_DB_FILE)
        salt_suffix = os.environ.get("SOUBI_SALT_SUFFIX", DEFAULT_SALT_SUFFIX)
        logger.debug("Store config from environment: dir=%s file=%s", data_dir, db_file)
        return cls(
            store_path=data_dir / db_file,
            salt_suffix=salt_suffix,
        )
