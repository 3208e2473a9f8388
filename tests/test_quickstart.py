"""Test that the quickstart API works for flake-shells."""
from __future__ import annotations

from pathlib import Path


def test_quickstart_import() -> None:
    import flake_shells

    assert flake_shells.__version__ == "0.1.0"


def test_quickstart_discover_and_select(workspace: Path) -> None:
    from flake_shells import EnvironmentSessionManager, InMemorySettingsStore

    manager = EnvironmentSessionManager(workspace, InMemorySettingsStore())
    flakes = manager.discover()
    assert len(flakes) == 1
    assert manager.select(flakes[0].path) == flakes[0]


def test_quickstart_starts_inactive(workspace: Path) -> None:
    from flake_shells import EnvironmentSessionManager, InMemorySettingsStore, SessionStatus

    manager = EnvironmentSessionManager(workspace, InMemorySettingsStore())
    assert manager.startup() is SessionStatus.INACTIVE
    assert manager.selected is not None
    assert manager.snapshot() is None


def test_quickstart_public_surface() -> None:
    import flake_shells

    for name in flake_shells.__all__:
        assert hasattr(flake_shells, name), name
