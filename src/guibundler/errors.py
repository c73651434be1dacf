"""Error taxonomy shared by the resolver, builder, invoker and front-ends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .models import InvocationResult


class BundlerError(RuntimeError):
    """Base class for every error raised by guibundler."""


class ConfigurationError(BundlerError):
    """Raised before any subprocess is spawned."""


class InvalidTargetError(ConfigurationError):
    """Raised when the script, icon or a resource path is unusable."""

    def __init__(self, message: str, path: Optional[object] = None) -> None:
        super().__init__(message)
        self.path = path


class ResolutionError(ConfigurationError):
    """Raised when the toolkit package cannot be located."""

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        base = super().__str__()
        if self.hint:
            return f"{base} ({self.hint})"
        return base


class EncodingError(ConfigurationError):
    """Raised when a value cannot travel as a single command-line token."""

    def __init__(self, message: str, value: str = "") -> None:
        super().__init__(message)
        self.value = value


class OverrideError(ConfigurationError):
    """Raised for malformed build files or override values."""


class InvocationError(BundlerError):
    """Raised after the bundler ran but did not succeed."""

    def __init__(self, message: str, result: "InvocationResult") -> None:
        super().__init__(message)
        self.result = result

    @property
    def exit_code(self) -> Optional[int]:
        return self.result.exit_code

    @property
    def captured_output(self) -> str:
        return self.result.captured_output


class ExternalToolError(InvocationError):
    """The bundler exited with a nonzero status."""


class BuildTimeoutError(InvocationError):
    """The bundler exceeded the caller's maximum wait and was terminated."""


class BuildCancelled(InvocationError):
    """The caller cancelled the build and the bundler was terminated."""
