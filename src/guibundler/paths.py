"""Utilities for resolving work/log/dist directories in a cross-platform way."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import platform
from typing import Optional

GUIBUNDLER_WORK_ENV = "GUIBUNDLER_WORK_DIR"
GUIBUNDLER_DIST_ENV = "GUIBUNDLER_DIST_DIR"
GUIBUNDLER_LOG_ENV = "GUIBUNDLER_LOG_DIR"

_SYSTEM = platform.system()


def _expand_env_path(value: str | Path) -> Path:
    return Path(value).expanduser()


def _xdg_dir(env_name: str, fallback: Path) -> Path:
    custom = os.environ.get(env_name)
    if custom:
        return _expand_env_path(custom)
    return fallback


def _windows_local_appdata() -> Path:
    return _expand_env_path(
        os.environ.get("LOCALAPPDATA")
        or os.environ.get("APPDATA")
        or (Path.home() / "AppData" / "Local")
    )


def _default_base_dir() -> Path:
    if _SYSTEM == "Windows":
        return _windows_local_appdata() / "GuiBundler"
    return _xdg_dir("XDG_CACHE_HOME", Path.home() / ".cache") / "guibundler"


def _default_work_dir() -> Path:
    return _default_base_dir() / "work"


def _default_log_dir() -> Path:
    if _SYSTEM == "Windows":
        return _windows_local_appdata() / "GuiBundler" / "logs"
    base = _xdg_dir("XDG_STATE_HOME", Path.home() / ".local" / "state")
    return base / "guibundler"


@dataclass(frozen=True)
class PathConfig:
    """Normalized locations handed to the bundler and the log handler.

    ``dist_dir`` stays ``None`` unless overridden so the bundler keeps its
    own default (``./dist`` next to the invocation).
    """

    work_dir: Path
    log_dir: Path
    dist_dir: Optional[Path] = None

    def ensure(self) -> "PathConfig":
        """Create directories if needed and return the same config."""
        for directory in (self.work_dir, self.log_dir):
            directory.mkdir(parents=True, exist_ok=True)
        return self


def resolve_path_config() -> PathConfig:
    """Resolve the directories, honoring environment overrides."""

    work_dir = _expand_env_path(os.environ.get(GUIBUNDLER_WORK_ENV) or _default_work_dir())
    log_dir = _expand_env_path(os.environ.get(GUIBUNDLER_LOG_ENV) or _default_log_dir())
    dist_env = os.environ.get(GUIBUNDLER_DIST_ENV)
    dist_dir = _expand_env_path(dist_env) if dist_env else None

    return PathConfig(work_dir=work_dir, log_dir=log_dir, dist_dir=dist_dir).ensure()
