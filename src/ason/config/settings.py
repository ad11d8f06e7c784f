"""Runtime settings: where the registry keeps its state.

Resolution order for the registry home:
- ``$ASON_HOME`` when set
- ``$XDG_DATA_HOME/ason`` when ``XDG_DATA_HOME`` is set
- ``~/.local/share/ason`` otherwise

``get_settings()`` is memoized so callers can treat it like a constant; tests
that change the environment call ``get_settings.cache_clear()``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

APP_NAME = "ason"
METADATA_FILENAME = "registry.toml"
TEMPLATE_CONFIG_FILENAME = "ason.toml"


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path

    @property
    def templates_dir(self) -> Path:
        return self.home_dir / "templates"

    @property
    def backups_dir(self) -> Path:
        return self.home_dir / "backups"

    @property
    def metadata_file(self) -> Path:
        return self.home_dir / METADATA_FILENAME

    @property
    def lock_file(self) -> Path:
        return self.home_dir / f"{METADATA_FILENAME}.lock"


def _xdg_dir(env_var: str, *fallback: str) -> Path:
    value = os.getenv(env_var)
    if value:
        return Path(value).expanduser()
    return Path.home().joinpath(*fallback)


def data_home() -> Path:
    return _xdg_dir("XDG_DATA_HOME", ".local", "share") / APP_NAME


def load_settings(home_dir: Optional[Path] = None) -> RuntimeSettings:
    if home_dir is None:
        override = os.getenv("ASON_HOME")
        home_dir = Path(override).expanduser() if override else data_home()
    return RuntimeSettings(home_dir=Path(home_dir).resolve())


@lru_cache(maxsize=1)
def get_settings() -> RuntimeSettings:
    """Return settings resolved from the environment (memoized)."""
    return load_settings()
