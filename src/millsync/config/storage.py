"""Data storage configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "millsync"
LOG_DIR_NAME: Final[str] = "logs"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    log_dir: Path | None = None

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def resolve_log_dir(self) -> Path:
        if self.log_dir is not None:
            return self.log_dir.expanduser().resolve()
        return self.resolve_data_dir() / LOG_DIR_NAME


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("MILLSYNC_DATA_DIR")
    env_log_dir = os.getenv("MILLSYNC_LOG_DIR")
    return StorageConfig(
        data_dir=Path(env_dir) if env_dir else _default_data_dir(),
        log_dir=Path(env_log_dir) if env_log_dir else None,
    )
