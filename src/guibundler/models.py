"""Plain data types passed between the resolver, builder and invoker."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Optional, Tuple

SOURCE_EXTENSIONS = (".py", ".pyw")


class ToolkitKind(str, Enum):
    """GUI toolkit the packaged script depends on."""

    PLAIN = "plain"
    EXTENDED = "extended"

    @classmethod
    def parse(cls, value: "str | ToolkitKind") -> "ToolkitKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            choices = ", ".join(kind.value for kind in cls)
            raise ValueError(f"Unknown toolkit '{value}'. Choose one of: {choices}") from exc


@dataclass(frozen=True)
class ResourceMapping:
    """Copy ``source_path`` into the bundle at ``dest_path``."""

    source_path: Path
    dest_path: str

    @classmethod
    def parse(cls, value: str, separator: str = ":") -> "ResourceMapping":
        """Parse ``SRC:DST`` (or ``SRC;DST``), splitting on the last separator."""

        sep = ";" if ";" in value else separator
        source, found, dest = value.rpartition(sep)
        if not found or not source or not dest:
            raise ValueError(f"Expected SRC{separator}DST, got '{value}'")
        return cls(source_path=Path(source).expanduser(), dest_path=dest)


@dataclass(frozen=True)
class BuildTarget:
    script_path: Path
    toolkit_kind: ToolkitKind = ToolkitKind.PLAIN
    output_name: str = ""
    one_file: bool = False
    windowed: bool = False
    icon_path: Optional[Path] = None
    extra_resources: Tuple[ResourceMapping, ...] = ()
    extra_hidden_imports: FrozenSet[str] = frozenset()
    excludes: FrozenSet[str] = frozenset()
    dist_dir: Optional[Path] = None
    work_dir: Optional[Path] = None
    clean: bool = False

    def __post_init__(self) -> None:
        # Normalize so callers may pass strings and lists.
        object.__setattr__(self, "script_path", Path(self.script_path).expanduser())
        object.__setattr__(self, "toolkit_kind", ToolkitKind.parse(self.toolkit_kind))
        if self.icon_path is not None:
            object.__setattr__(self, "icon_path", Path(self.icon_path).expanduser())
        for name in ("dist_dir", "work_dir"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, Path(value).expanduser())
        object.__setattr__(self, "extra_resources", tuple(self.extra_resources))
        object.__setattr__(self, "extra_hidden_imports", frozenset(self.extra_hidden_imports))
        object.__setattr__(self, "excludes", frozenset(self.excludes))
        if not self.output_name:
            object.__setattr__(self, "output_name", self.script_path.stem)


@dataclass(frozen=True)
class InvocationDescriptor:
    """Executable plus its argument list, ready for the invoker."""

    executable: str
    arguments: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", tuple(self.arguments))

    @property
    def argv(self) -> Tuple[str, ...]:
        return (self.executable, *self.arguments)


class Outcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class InvocationResult:
    exit_code: Optional[int]
    captured_output: str
    outcome: Outcome
    pid: Optional[int] = None
    duration: float = field(default=0.0, compare=False)

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCEEDED
