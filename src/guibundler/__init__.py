"""
guibundler public package interface.

The package resolves what a tkinter or customtkinter script needs in order
to be packaged, turns that into a PyInstaller command line and runs it, so
the CLI and GUI share the same pipeline.
"""

__version__ = "0.1.0"

from .command import build, build_config, format_command
from .errors import (
    BuildCancelled,
    BuildTimeoutError,
    BundlerError,
    ConfigurationError,
    EncodingError,
    ExternalToolError,
    InvalidTargetError,
    InvocationError,
    OverrideError,
    ResolutionError,
)
from .invoker import invoke
from .models import (
    BuildTarget,
    InvocationDescriptor,
    InvocationResult,
    Outcome,
    ResourceMapping,
    ToolkitKind,
)
from .overrides import BuildConfig, load_overrides
from .resolver import resolve

__all__ = [
    "BuildTarget",
    "ToolkitKind",
    "ResourceMapping",
    "InvocationDescriptor",
    "InvocationResult",
    "Outcome",
    "BuildConfig",
    "load_overrides",
    "resolve",
    "build",
    "build_config",
    "format_command",
    "invoke",
    "BundlerError",
    "ConfigurationError",
    "InvalidTargetError",
    "ResolutionError",
    "EncodingError",
    "OverrideError",
    "InvocationError",
    "ExternalToolError",
    "BuildTimeoutError",
    "BuildCancelled",
]
