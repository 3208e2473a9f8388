"""flake-shells: Nix flake development environments for editor sessions.

Resolves a ``flake.nix`` with ``nix develop``, persists the resulting
environment in workspace settings so the host hands it to every new
terminal, restores it after restarts, and tears it down on exit.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    from flake_shells import EnvironmentSessionManager, JsonSettingsStore

    store = JsonSettingsStore.for_workspace(".")
    manager = EnvironmentSessionManager(".", store)
    manager.startup()
    if not manager.is_active():
        manager.activate()
"""
from __future__ import annotations

from flake_shells.config import ShellsConfig
from flake_shells.discovery import Descriptor, discover_flakes
from flake_shells.errors import (
    ActivationInProgressError,
    ArtifactIOError,
    FlakeShellsError,
    InvalidTransitionError,
    NoFlakeSelectedError,
    PathValidationError,
    ResolutionError,
    ResolutionTimeoutError,
    SettingsError,
    ToolSpawnError,
    ToolUnavailableError,
)
from flake_shells.guard import PathGuard, validate_flake_path

# Settings
from flake_shells.settings import InMemorySettingsStore, JsonSettingsStore, SettingsStore

# Resolution
from flake_shells.resolver import EnvironmentResolver, ToolProbe, Transcript, parse_env_output

# Session core
from flake_shells.session import (
    ActiveSnapshot,
    EnvironmentSessionManager,
    PersistedSnapshot,
    PersistenceBridge,
    SessionState,
    SessionStatus,
)

# Host integration
from flake_shells.integration import (
    DerivedArtifactWriter,
    InteractiveSession,
    InterpreterArtifact,
    InterpreterConfigurator,
    NotebookConfigurator,
    SessionInjector,
    StreamSession,
)

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Configuration and descriptors
    "Descriptor",
    "PathGuard",
    "ShellsConfig",
    "discover_flakes",
    "validate_flake_path",
    # Errors
    "ActivationInProgressError",
    "ArtifactIOError",
    "FlakeShellsError",
    "InvalidTransitionError",
    "NoFlakeSelectedError",
    "PathValidationError",
    "ResolutionError",
    "ResolutionTimeoutError",
    "SettingsError",
    "ToolSpawnError",
    "ToolUnavailableError",
    # Settings
    "InMemorySettingsStore",
    "JsonSettingsStore",
    "SettingsStore",
    # Resolution
    "EnvironmentResolver",
    "ToolProbe",
    "Transcript",
    "parse_env_output",
    # Session core
    "ActiveSnapshot",
    "EnvironmentSessionManager",
    "PersistedSnapshot",
    "PersistenceBridge",
    "SessionState",
    "SessionStatus",
    # Host integration
    "DerivedArtifactWriter",
    "InteractiveSession",
    "InterpreterArtifact",
    "InterpreterConfigurator",
    "NotebookConfigurator",
    "SessionInjector",
    "StreamSession",
]
