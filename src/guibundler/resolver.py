"""Work out which hidden imports and data files a GUI script needs.

The bundler's static analysis misses the dynamically imported tkinter
dialogs, and ``customtkinter`` ships theme JSON and font files that are only
picked up when the whole package directory is copied into the bundle.
"""

from __future__ import annotations

import importlib.util
import logging
import os
from pathlib import Path
from typing import Callable, FrozenSet, List, Optional, Tuple

from .errors import InvalidTargetError, ResolutionError
from .models import SOURCE_EXTENSIONS, BuildTarget, ResourceMapping, ToolkitKind

logger = logging.getLogger(__name__)

PLAIN_HIDDEN_IMPORTS: FrozenSet[str] = frozenset(
    {
        "tkinter",
        "tkinter.filedialog",
        "tkinter.messagebox",
        "tkinter.ttk",
    }
)

EXTENDED_PACKAGE = "customtkinter"

PackageLocator = Callable[[str], Optional[Path]]


def locate_package(name: str) -> Optional[Path]:
    """Return the installed directory of package ``name`` or ``None``."""

    try:
        spec = importlib.util.find_spec(name)
    except (ImportError, ValueError):
        return None
    if spec is None:
        return None
    if spec.submodule_search_locations:
        return Path(next(iter(spec.submodule_search_locations)))
    if spec.origin and spec.origin not in ("built-in", "frozen"):
        return Path(spec.origin).parent
    return None


def validate_target(target: BuildTarget) -> None:
    script = target.script_path
    if not script.is_file():
        raise InvalidTargetError(f"Script '{script}' does not exist.", path=script)
    if script.suffix.lower() not in SOURCE_EXTENSIONS:
        allowed = ", ".join(SOURCE_EXTENSIONS)
        raise InvalidTargetError(
            f"Script '{script}' is not a Python source file (expected {allowed}).",
            path=script,
        )
    if not os.access(script, os.R_OK):
        raise InvalidTargetError(f"Script '{script}' is not readable.", path=script)

    if target.icon_path is not None and not target.icon_path.is_file():
        raise InvalidTargetError(f"Icon '{target.icon_path}' does not exist.", path=target.icon_path)

    for mapping in target.extra_resources:
        if not mapping.source_path.exists():
            raise InvalidTargetError(
                f"Resource '{mapping.source_path}' does not exist.",
                path=mapping.source_path,
            )


def resolve(
    target: BuildTarget,
    locate: Optional[PackageLocator] = None,
) -> Tuple[FrozenSet[str], Tuple[ResourceMapping, ...]]:
    """Return the hidden imports and ordered resource mappings for ``target``."""

    validate_target(target)
    locate = locate or locate_package

    imports = set(target.extra_hidden_imports)
    mappings: List[ResourceMapping] = []

    if target.toolkit_kind is ToolkitKind.EXTENDED:
        package_dir = locate(EXTENDED_PACKAGE)
        if package_dir is None:
            raise ResolutionError(
                f"Toolkit package '{EXTENDED_PACKAGE}' is not installed in this environment.",
                hint=f"pip install {EXTENDED_PACKAGE}",
            )
        logger.debug("Located %s at %s", EXTENDED_PACKAGE, package_dir)
        mappings.append(ResourceMapping(source_path=Path(package_dir), dest_path=EXTENDED_PACKAGE))
    else:
        imports.update(PLAIN_HIDDEN_IMPORTS)

    if target.icon_path is not None:
        mappings.append(ResourceMapping(source_path=target.icon_path, dest_path="."))
    mappings.extend(target.extra_resources)

    logger.debug(
        "Resolved %s: %d hidden imports, %d resources",
        target.script_path.name,
        len(imports),
        len(mappings),
    )
    return frozenset(imports), tuple(mappings)
