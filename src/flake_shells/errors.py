"""Error taxonomy for flake-shells.

Every error carries a ``summary``: a one-line message that is safe to show
to a user.  It never contains filesystem paths or environment contents;
those belong in the diagnostic transcript.

Classes
-------
- FlakeShellsError: base class for all package errors
- PathValidationError: descriptor path rejected by the guard
- ToolUnavailableError: the resolution tool could not be located
- ToolSpawnError: the resolution tool could not be started
- ResolutionError: the resolution tool exited non-zero
- ResolutionTimeoutError: the resolution tool exceeded its time bound
- ArtifactIOError: derived artifact could not be written/removed
- SettingsError: durable settings could not be read/written
- ActivationInProgressError: a second activation was attempted concurrently
- InvalidTransitionError: operation not allowed in the current state
- NoFlakeSelectedError: activation requested with no flake selected
"""
from __future__ import annotations

_STDERR_TAIL_LINES = 20
_STDERR_TAIL_CHARS = 2000


class FlakeShellsError(Exception):
    """Base class for all flake-shells errors."""

    summary: str = "Flake environment operation failed."


class PathValidationError(FlakeShellsError, ValueError):
    """Raised when a flake path is not a regular file inside the workspace."""

    summary = "Invalid flake path: must be a file within the workspace."

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Flake path {path!r} is not a file within the workspace.")


class ToolUnavailableError(FlakeShellsError):
    """Raised when the availability probe cannot find the resolution tool."""

    summary = "Nix is not installed or not in PATH."

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"{tool!r} is not installed or not in PATH.")


class ToolSpawnError(FlakeShellsError):
    """Raised when the resolution tool process cannot be started."""

    summary = "Failed to start nix. Check the output for details."

    def __init__(self, tool: str, cause: OSError) -> None:
        self.tool = tool
        self.cause = cause
        super().__init__(f"Could not start {tool!r}: {cause}")


class ResolutionError(FlakeShellsError):
    """Raised when ``nix develop`` exits with a non-zero status.

    Parameters
    ----------
    exit_code:
        Exit status reported by the child process.
    stderr:
        Full captured stderr.  Only a bounded tail is retained on the error.
    """

    summary = "Failed to enter flake environment. Check the output for details."

    def __init__(self, exit_code: int, stderr: str = "") -> None:
        self.exit_code = exit_code
        self.stderr_tail = tail(stderr)
        super().__init__(f"nix develop failed with code {exit_code}: {self.stderr_tail}")


class ResolutionTimeoutError(FlakeShellsError, TimeoutError):
    """Raised when the resolution tool runs past its wall-clock bound."""

    summary = "Timed out entering flake environment. Check the output for details."

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"nix develop did not finish within {timeout:g} seconds")


class ArtifactIOError(FlakeShellsError):
    """Raised when a derived artifact cannot be written or removed."""

    summary = "Could not write the Python environment file."

    def __init__(self, path: str, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Artifact I/O failed for {path}: {cause}")


class SettingsError(FlakeShellsError):
    """Raised when the durable settings document cannot be read or written."""

    summary = "Could not update workspace settings."


class ActivationInProgressError(FlakeShellsError):
    """Raised when ``activate`` is called while another activation runs."""

    summary = "A flake environment activation is already in progress."

    def __init__(self) -> None:
        super().__init__("An activation is already in flight; call rejected.")


class InvalidTransitionError(FlakeShellsError):
    """Raised when an operation is not permitted in the current state."""

    summary = "That operation is not possible in the current environment state."


class NoFlakeSelectedError(InvalidTransitionError):
    """Raised when activation is requested before any flake is selected."""

    summary = 'No flake selected. Use "flake-shells select" first.'

    def __init__(self) -> None:
        super().__init__("No flake selected.")


def tail(text: str) -> str:
    """Return the last few lines of *text*, bounded in length."""
    lines = text.rstrip("\n").splitlines()[-_STDERR_TAIL_LINES:]
    joined = "\n".join(lines)
    if len(joined) > _STDERR_TAIL_CHARS:
        joined = joined[-_STDERR_TAIL_CHARS:]
    return joined
