"""Where the registry database lives."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_str

REGISTRY_FILENAME: Final[str] = "registry.db"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def registry_data_dir(*, create: bool = True) -> Path:
    """``ASSETSYNC_DATA_DIR``, else ``$XDG_DATA_HOME/assetsync`` (``~/.local/share`` fallback)."""

    override = optional_env_str("ASSETSYNC_DATA_DIR")
    if override is not None:
        data_dir = Path(override)
    else:
        xdg_home = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
        data_dir = Path(xdg_home) / "assetsync"
    data_dir = data_dir.expanduser().resolve()
    if create:
        data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_database_config() -> DatabaseConfig:
    uri = optional_env_str("DATABASE_URI")
    if uri is not None:
        return DatabaseConfig(uri=uri)
    return DatabaseConfig(uri=f"sqlite+pysqlite:///{registry_data_dir() / REGISTRY_FILENAME}")
