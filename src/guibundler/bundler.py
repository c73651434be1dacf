"""Best-effort PyInstaller detection with interpreter-first fallbacks."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import importlib.util
import os
import shutil
import subprocess
import sys
from typing import Iterable, Optional, Tuple

GUIBUNDLER_PYINSTALLER_ENV = "GUIBUNDLER_PYINSTALLER"

PYINSTALLER_MODULE = "PyInstaller"
PYINSTALLER_SCRIPT = "pyinstaller"


@dataclass(frozen=True)
class BundlerCommand:
    """How to launch the bundler: an executable plus fixed leading arguments."""

    executable: str
    prefix: Tuple[str, ...] = ()

    @classmethod
    def from_interpreter(cls) -> "BundlerCommand":
        return cls(executable=sys.executable, prefix=("-m", PYINSTALLER_MODULE))

    def describe(self) -> str:
        return " ".join((self.executable, *self.prefix))


DEFAULT_BUNDLER = BundlerCommand.from_interpreter()


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _module_available() -> bool:
    try:
        return importlib.util.find_spec(PYINSTALLER_MODULE) is not None
    except (ImportError, ValueError):
        return False


def _candidates() -> Iterable[BundlerCommand]:
    env_path = os.environ.get(GUIBUNDLER_PYINSTALLER_ENV)
    if env_path:
        path = Path(env_path).expanduser()
        if _is_executable(path):
            yield BundlerCommand(executable=str(path))

    if _module_available():
        yield DEFAULT_BUNDLER

    which_path = shutil.which(PYINSTALLER_SCRIPT)
    if which_path:
        yield BundlerCommand(executable=which_path)


def detect_bundler(explicit: Optional[str] = None) -> Optional[BundlerCommand]:
    """Return how to launch PyInstaller if it is available."""

    if explicit:
        path = Path(explicit).expanduser()
        if _is_executable(path):
            return BundlerCommand(executable=str(path))
        raise FileNotFoundError(f"Provided bundler path '{path}' is not executable")

    return next(iter(_candidates()), None)


def find_bundler(explicit: Optional[str] = None) -> BundlerCommand:
    """Return the bundler command or raise a helpful error."""

    command = detect_bundler(explicit=explicit)
    if command:
        return command
    raise FileNotFoundError(
        "PyInstaller not found. Install via 'pip install pyinstaller', "
        f"set {GUIBUNDLER_PYINSTALLER_ENV}, or supply --bundler."
    )


def describe_bundler(command: BundlerCommand) -> str:
    """Return the version string for diagnostics."""

    try:
        result = subprocess.run(
            [command.executable, *command.prefix, "--version"],
            check=False,
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired):
        return "pyinstaller=<unavailable>"

    first_line = result.stdout.strip().splitlines()[0] if result.stdout.strip() else ""
    if result.returncode != 0 or not first_line:
        return "pyinstaller=<unavailable>"
    return f"pyinstaller={first_line.strip()}"
