"""Merge hand-written build settings over the resolved defaults.

A build file is a small YAML mapping, for example::

    name: MyApp
    onefile: true
    hidden_imports: [PIL._tkinter_finder]
    add_data:
      - {src: assets, dst: assets}
      - "themes/dark.json:themes"

Scalar keys replace the resolved value, ``hidden_imports`` and ``excludes``
are unioned, and ``add_data`` entries are appended after the resolved
resources so they win on a shared destination.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

import yaml

from .errors import InvalidTargetError, OverrideError
from .models import BuildTarget, ResourceMapping
from .resolver import PackageLocator, resolve

_SCALAR_FIELDS: Dict[str, Tuple[str, type]] = {
    "name": ("output_name", str),
    "onefile": ("one_file", bool),
    "windowed": ("windowed", bool),
    "clean": ("clean", bool),
    "icon": ("icon_path", Path),
    "distpath": ("dist_dir", Path),
    "workpath": ("work_dir", Path),
}
_SET_FIELDS = ("hidden_imports", "excludes")
_LIST_FIELDS = ("add_data",)

KNOWN_KEYS = frozenset(_SCALAR_FIELDS) | frozenset(_SET_FIELDS) | frozenset(_LIST_FIELDS)


@dataclass(frozen=True)
class BuildConfig:
    """A resolved target with its hidden imports and resources."""

    target: BuildTarget
    hidden_imports: FrozenSet[str]
    resources: Tuple[ResourceMapping, ...]

    @classmethod
    def resolve(cls, target: BuildTarget, locate: Optional[PackageLocator] = None) -> "BuildConfig":
        imports, resources = resolve(target, locate=locate)
        return cls(target=target, hidden_imports=imports, resources=resources)

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> "BuildConfig":
        """Return a new config with ``overrides`` applied."""

        if not overrides:
            return self
        odd = [key for key in overrides if not isinstance(key, str)]
        if odd:
            raise OverrideError(f"Build setting names must be strings, got {odd!r}")
        unknown = sorted(set(overrides) - KNOWN_KEYS)
        if unknown:
            raise OverrideError(
                f"Unknown build setting(s): {', '.join(unknown)}. "
                f"Known keys: {', '.join(sorted(KNOWN_KEYS))}"
            )

        changes: Dict[str, Any] = {}
        for key, (field_name, kind) in _SCALAR_FIELDS.items():
            if key in overrides:
                changes[field_name] = _coerce(key, overrides[key], kind)

        hidden_imports = self.hidden_imports | _string_set("hidden_imports", overrides.get("hidden_imports"))
        excludes = _string_set("excludes", overrides.get("excludes"))
        if excludes:
            changes["excludes"] = self.target.excludes | excludes

        resources = self.resources
        icon = changes.get("icon_path")
        if icon is not None and icon != self.target.icon_path:
            if not icon.is_file():
                raise InvalidTargetError(f"Icon '{icon}' does not exist.", path=icon)
            if self.target.icon_path is not None:
                # The replaced icon must not be bundled as well.
                previous = ResourceMapping(source_path=self.target.icon_path, dest_path=".")
                resources = tuple(m for m in resources if m != previous)
            resources = resources + (ResourceMapping(source_path=icon, dest_path="."),)
        resources = resources + tuple(_mappings(overrides.get("add_data")))

        target = replace(self.target, **changes) if changes else self.target
        return BuildConfig(target=target, hidden_imports=hidden_imports, resources=resources)


def _coerce(key: str, value: Any, kind: Callable[[Any], Any]) -> Any:
    if kind is bool:
        if not isinstance(value, bool):
            raise OverrideError(f"'{key}' must be true or false, got {value!r}")
        return value
    if not isinstance(value, (str, Path)) or not str(value):
        raise OverrideError(f"'{key}' must be a non-empty string, got {value!r}")
    if kind is Path:
        return Path(value).expanduser()
    return str(value)


def _string_set(key: str, value: Any) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set, frozenset)) or not all(
        isinstance(item, str) and item for item in value
    ):
        raise OverrideError(f"'{key}' must be a list of module names, got {value!r}")
    return frozenset(value)


def _mappings(value: Any) -> Iterable[ResourceMapping]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise OverrideError(f"'add_data' must be a list, got {value!r}")

    result: List[ResourceMapping] = []
    for entry in value:
        if isinstance(entry, str):
            try:
                mapping = ResourceMapping.parse(entry)
            except ValueError as exc:
                raise OverrideError(str(exc)) from exc
        elif isinstance(entry, Mapping) and set(entry) == {"src", "dst"}:
            src, dst = entry["src"], entry["dst"]
            if not isinstance(src, str) or not isinstance(dst, str) or not src or not dst:
                raise OverrideError(f"'add_data' entry needs string src/dst, got {entry!r}")
            mapping = ResourceMapping(source_path=Path(src).expanduser(), dest_path=dst)
        else:
            raise OverrideError(f"Unsupported 'add_data' entry: {entry!r}")
        if not mapping.source_path.exists():
            raise InvalidTargetError(
                f"Resource '{mapping.source_path}' does not exist.",
                path=mapping.source_path,
            )
        result.append(mapping)
    return result


def load_overrides(path: Path | str) -> Dict[str, Any]:
    """Read a YAML build file; an empty file yields no overrides."""

    source = Path(path).expanduser()
    try:
        with source.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise OverrideError(f"Cannot read build file '{source}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise OverrideError(f"Build file '{source}' is not valid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise OverrideError(f"Build file '{source}' must contain a mapping at the top level.")

    # Relative resource paths are relative to the build file, not the cwd.
    base = source.parent
    for key in ("icon", "distpath", "workpath"):
        if isinstance(data.get(key), str):
            data[key] = str(_anchor(base, data[key]))
    if isinstance(data.get("add_data"), list):
        data["add_data"] = [_anchor_entry(base, entry) for entry in data["add_data"]]
    return data


def _anchor(base: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base / path


def _anchor_entry(base: Path, entry: Any) -> Any:
    if isinstance(entry, Mapping) and isinstance(entry.get("src"), str):
        return {**entry, "src": str(_anchor(base, entry["src"]))}
    if isinstance(entry, str):
        try:
            mapping = ResourceMapping.parse(entry)
        except ValueError:
            return entry
        return {"src": str(_anchor(base, str(mapping.source_path))), "dst": mapping.dest_path}
    return entry
