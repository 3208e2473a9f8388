"""Host integration subpackage.

Side effects of an active environment outside the durable slots: text
injected into new interactive sessions, the ``.vscode/.env.nix`` file, and
the interpreter/notebook settings consumed by other tooling.

Public surface
--------------
- SessionInjector: inject ``nix print-dev-env`` into new sessions
- InteractiveSession: protocol for sessions accepting text
- StreamSession: session writing to a text stream
- DerivedArtifactWriter: write/remove the filtered env file
- InterpreterArtifact: interpreter + env file pair
- InterpreterConfigurator: Python interpreter settings
- NotebookConfigurator: Jupyter settings, behind a capability query
"""
from __future__ import annotations

from flake_shells.integration.artifacts import DerivedArtifactWriter, InterpreterArtifact
from flake_shells.integration.collaborators import InterpreterConfigurator, NotebookConfigurator
from flake_shells.integration.injector import InteractiveSession, SessionInjector, StreamSession

__all__ = [
    "DerivedArtifactWriter",
    "InteractiveSession",
    "InterpreterArtifact",
    "InterpreterConfigurator",
    "NotebookConfigurator",
    "SessionInjector",
    "StreamSession",
]
