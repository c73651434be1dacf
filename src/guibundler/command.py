"""Serialize a resolved build into a PyInstaller argument list."""

from __future__ import annotations

import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

from .bundler import DEFAULT_BUNDLER, BundlerCommand
from .errors import EncodingError
from .models import BuildTarget, InvocationDescriptor, ResourceMapping

if TYPE_CHECKING:  # pragma: no cover
    from .overrides import BuildConfig

ADD_DATA_SEPARATOR = os.pathsep

_IS_WINDOWS = sys.platform.startswith("win")
_CONTROL_CHARS = ("\x00", "\r", "\n")


def _check_token(value: str, label: str, forbidden: str = "") -> str:
    for char in _CONTROL_CHARS:
        if char in value:
            raise EncodingError(f"{label} contains a control character: {value!r}", value=value)
    if _IS_WINDOWS and '"' in value:
        raise EncodingError(f"{label} contains a double quote: {value!r}", value=value)
    if forbidden and forbidden in value:
        raise EncodingError(
            f"{label} contains the add-data separator '{forbidden}': {value!r}",
            value=value,
        )
    try:
        value.encode(sys.getfilesystemencoding())
    except UnicodeEncodeError as exc:
        raise EncodingError(f"{label} cannot be encoded for the command line: {value!r}", value=value) from exc
    return value


def _path_token(path: Path, label: str) -> str:
    return _check_token(str(path), label)


def _add_data_token(mapping: ResourceMapping) -> str:
    source = _check_token(str(mapping.source_path), "Resource source", ADD_DATA_SEPARATOR)
    dest = _check_token(mapping.dest_path, "Resource destination", ADD_DATA_SEPARATOR)
    return f"{source}{ADD_DATA_SEPARATOR}{dest}"


def build(
    target: BuildTarget,
    imports: Iterable[str],
    mappings: Sequence[ResourceMapping],
    *,
    bundler: Optional[BundlerCommand] = None,
) -> InvocationDescriptor:
    """Return the invocation for ``target``.

    Hidden imports and excludes are sorted; resource mappings keep their
    input order because later entries may overwrite earlier ones.
    """

    command = bundler or DEFAULT_BUNDLER
    args: List[str] = list(command.prefix)

    args.append("--noconfirm")
    if target.clean:
        args.append("--clean")
    args.extend(["--name", _check_token(target.output_name, "Output name")])
    if target.one_file:
        args.append("--onefile")
    if target.windowed:
        args.append("--windowed")
    if target.icon_path is not None:
        args.extend(["--icon", _path_token(target.icon_path, "Icon path")])
    if target.dist_dir is not None:
        args.extend(["--distpath", _path_token(target.dist_dir, "Dist path")])
    if target.work_dir is not None:
        args.extend(["--workpath", _path_token(target.work_dir, "Work path")])

    for module in sorted(set(imports)):
        args.extend(["--hidden-import", _check_token(module, "Hidden import")])
    for module in sorted(target.excludes):
        args.extend(["--exclude-module", _check_token(module, "Excluded module")])
    for mapping in mappings:
        args.extend(["--add-data", _add_data_token(mapping)])

    args.append(_path_token(target.script_path, "Script path"))

    return InvocationDescriptor(
        executable=_check_token(command.executable, "Bundler executable"),
        arguments=tuple(args),
    )


def build_config(config: "BuildConfig", bundler: Optional[BundlerCommand] = None) -> InvocationDescriptor:
    return build(config.target, config.hidden_imports, config.resources, bundler=bundler)


def format_command(descriptor: InvocationDescriptor) -> str:
    """Shell-quoted rendering used by ``--dry-run`` and the logs."""

    if _IS_WINDOWS:
        return subprocess.list2cmdline(descriptor.argv)
    return shlex.join(descriptor.argv)
