"""Runtime configuration helpers for CLI/GUI diagnostics."""

from __future__ import annotations

from pathlib import Path
import os
import platform
import sys
from typing import Dict, Optional

from .bundler import GUIBUNDLER_PYINSTALLER_ENV, detect_bundler
from .paths import (
    GUIBUNDLER_DIST_ENV,
    GUIBUNDLER_LOG_ENV,
    GUIBUNDLER_WORK_ENV,
    resolve_path_config,
)
from .resolver import EXTENDED_PACKAGE, locate_package


def _redact_path(path: Path) -> str:
    home = Path.home().expanduser()
    path = Path(path).expanduser()
    try:
        relative = path.relative_to(home)
        return f"~/{relative.as_posix()}"
    except ValueError:
        return str(path)


def _stringify_path(value: Optional[Path], redact: bool) -> Optional[str]:
    if value is None:
        return None
    if redact:
        return _redact_path(value)
    return str(Path(value))


def get_paths(redact: bool = False) -> Dict[str, object]:
    """Return a dictionary describing resolved paths and env overrides."""

    config = resolve_path_config()
    bundler = detect_bundler()
    toolkit_dir = locate_package(EXTENDED_PACKAGE)

    info: Dict[str, object] = {
        "platform": platform.system(),
        "platform_detail": platform.platform(),
        "python": sys.executable,
        "work_dir": _stringify_path(config.work_dir, redact),
        "log_dir": _stringify_path(config.log_dir, redact),
        "dist_dir": _stringify_path(config.dist_dir, redact),
        "bundler": bundler.describe() if bundler else None,
        "extended_toolkit": _stringify_path(toolkit_dir, redact),
        "env": {
            GUIBUNDLER_WORK_ENV: os.environ.get(GUIBUNDLER_WORK_ENV),
            GUIBUNDLER_DIST_ENV: os.environ.get(GUIBUNDLER_DIST_ENV),
            GUIBUNDLER_LOG_ENV: os.environ.get(GUIBUNDLER_LOG_ENV),
            GUIBUNDLER_PYINSTALLER_ENV: os.environ.get(GUIBUNDLER_PYINSTALLER_ENV),
        },
    }
    return info


def describe_environment(redact: bool = True) -> str:
    """Human friendly summary used by ``guibundler describe``."""

    data = get_paths(redact=redact)
    fields = [
        f"platform={data['platform_detail']}",
        f"work_dir={data['work_dir']}",
        f"dist_dir={data['dist_dir'] or 'default'}",
        f"log_dir={data['log_dir']}",
        f"bundler={data['bundler'] or 'unset'}",
        f"{EXTENDED_PACKAGE}={data['extended_toolkit'] or 'missing'}",
    ]
    return ", ".join(fields)
