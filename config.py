"""
Configuration for Cykel.
"""

import os
import sys
from pathlib import Path
from dataclasses import dataclass, field

# Application version - update this for each release
VERSION = "1.0.0"

APP_DIR_NAME = "cykel"
VAULT_FILE_NAME = "data.cykel"


def local_data_dir() -> Path:
    """Per-user local application-data directory for this platform."""
    if sys.platform == "win32":
        base = os.getenv("LOCALAPPDATA")
        if base:
            return Path(base)
        return Path.home() / "AppData" / "Local"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    xdg = os.getenv("XDG_DATA_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".local" / "share"


def default_storage_dir() -> Path:
    override = os.getenv("CYKEL_DATA_DIR")
    if override:
        return Path(override)
    return local_data_dir() / APP_DIR_NAME


@dataclass
class Config:
    """Application configuration."""

    # Server settings (local only)
    HOST: str = os.getenv("CYKEL_HOST", "127.0.0.1")
    PORT: int = int(os.getenv("CYKEL_PORT", "18422"))

    LOG_LEVEL: str = os.getenv("CYKEL_LOG_LEVEL", "INFO")

    # Storage paths
    STORAGE_DIR: Path = field(default_factory=default_storage_dir)

    @property
    def vault_path(self) -> Path:
        """Path to the encrypted vault file. Creates the directory if needed."""
        self.STORAGE_DIR.mkdir(parents=True, exist_ok=True)
        return self.STORAGE_DIR / VAULT_FILE_NAME


# Global config instance
config = Config()
