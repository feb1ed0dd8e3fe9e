from __future__ import annotations

import os
from pathlib import Path

from platformdirs import PlatformDirs

APP_NAME = "catacomb"

# Overrides the platform data directory (tests, portable installs)
ENV_DATA_DIR = "CATACOMB_DATA_DIR"


def default_store_root() -> Path:
    """Directory holding persisted regions.

    Linux: ~/.local/share/catacomb/regions
    macOS: ~/Library/Application Support/catacomb/regions
    Windows: %LOCALAPPDATA%\\catacomb\\regions
    """
    override = os.getenv(ENV_DATA_DIR)
    if override:
        return Path(override).expanduser().resolve() / "regions"
    dirs = PlatformDirs(appname=APP_NAME, appauthor=False)
    return Path(dirs.user_data_dir) / "regions"


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path
