"""Shared fixtures for flake-shells tests.

Provides a workspace containing a ``flake.nix``, a factory for fake ``nix``
executables (small POSIX shell scripts), and in-process stand-ins for the
probe and resolver so manager tests never spawn processes.
"""
from __future__ import annotations

import stat
import threading
from collections.abc import Callable
from pathlib import Path

import pytest

from flake_shells.config import ShellsConfig
from flake_shells.discovery import Descriptor
from flake_shells.errors import FlakeShellsError
from flake_shells.resolver.transcript import Transcript
from flake_shells.settings.memory import InMemorySettingsStore


class FakeProbe:
    """ToolProbe stand-in with a fixed answer."""

    def __init__(self, available: bool = True, tool: str = "nix") -> None:
        self.available = available
        self.tool = tool
        self.calls = 0

    def is_available(self, timeout: float = 5.0) -> bool:
        self.calls += 1
        return self.available


class FakeResolver:
    """EnvironmentResolver stand-in.

    Returns ``variables`` (or raises ``error``).  When ``gate`` is set the
    call blocks until the test sets it, and ``entered`` is set on entry.
    """

    def __init__(
        self,
        variables: dict[str, str] | None = None,
        error: FlakeShellsError | None = None,
    ) -> None:
        self.variables = variables if variables is not None else {"PATH": "/nix/store/bin", "HOME": "/home/u"}
        self.error = error
        self.calls: list[tuple[Descriptor, ShellsConfig | None]] = []
        self.gate: threading.Event | None = None
        self.entered = threading.Event()

    def resolve(self, descriptor: Descriptor, config: ShellsConfig | None = None) -> dict[str, str]:
        self.calls.append((descriptor, config))
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=10)
        if self.error is not None:
            raise self.error
        return dict(self.variables)


class RecordingSession:
    """InteractiveSession that records what it was sent."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, bool]] = []

    def send_text(self, text: str, add_newline: bool = True) -> None:
        self.sent.append((text, add_newline))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "workspace"
    root.mkdir()
    (root / "flake.nix").write_text("{ outputs = _: { }; }\n", encoding="utf-8")
    return root


@pytest.fixture()
def flake(workspace: Path) -> Descriptor:
    return Descriptor.checked(workspace / "flake.nix", workspace)


@pytest.fixture()
def store() -> InMemorySettingsStore:
    return InMemorySettingsStore()


@pytest.fixture()
def transcript() -> Transcript:
    return Transcript()


@pytest.fixture()
def fake_probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture()
def fake_resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture()
def recording_session() -> RecordingSession:
    return RecordingSession()


@pytest.fixture()
def make_tool(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing an executable ``/bin/sh`` script."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def _make(body: str, name: str = "fake-nix") -> Path:
        script = bin_dir / name
        script.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture()
def make_executable(tmp_path: Path) -> Callable[[Path], Path]:
    """Return a helper creating an empty executable file at a path."""

    def _make(path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n", encoding="utf-8")
        path.chmod(0o755)
        return path

    return _make
