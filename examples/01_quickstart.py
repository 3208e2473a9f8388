#!/usr/bin/env python3
"""Example: Quickstart for flake-shells

Find a flake in a workspace, enter its environment, simulate an editor
restart, and exit again.  Settings are kept in memory so the workspace's
``.vscode/settings.json`` is not touched.

Usage:
    python examples/01_quickstart.py [WORKSPACE]

Requirements:
    pip install flake-shells
    nix on PATH
"""
from __future__ import annotations

import sys

import flake_shells
from flake_shells import (
    EnvironmentSessionManager,
    FlakeShellsError,
    InMemorySettingsStore,
    StreamSession,
)


def main(workspace: str = ".") -> int:
    print(f"flake-shells version: {flake_shells.__version__}")

    # Step 1: Discover flakes and pick the first one
    store = InMemorySettingsStore()
    manager = EnvironmentSessionManager(workspace, store)
    flakes = manager.discover()
    if not flakes:
        print("No flake.nix found in workspace")
        return 1
    selected = manager.select(flakes[0].path)
    print(f"Selected flake: {selected.relative_to(manager.workspace_root)}")

    # Step 2: Enter the environment
    try:
        variables = manager.activate()
    except FlakeShellsError as exc:
        print(exc.summary)
        print(manager.transcript.text())
        return 1
    print(f"Active with {len(variables)} variables; PATH={variables.get('PATH', '')[:60]}...")

    # Step 3: A fresh manager over the same settings restores without running nix
    restarted = EnvironmentSessionManager(workspace, store)
    status = restarted.startup()
    print(f"After restart: {status.value} (restored={restarted.snapshot().restored})")

    # Step 4: What a new terminal would be sent
    restarted.on_session_opened(StreamSession(sys.stdout))

    # Step 5: Exit
    restarted.deactivate()
    print(f"After exit: {restarted.status.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main(*sys.argv[1:2]))
