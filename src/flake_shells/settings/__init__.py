"""Durable settings subpackage.

Settings stores are the configuration collaborator shared with the host
application.  The activation slots, the flake selection and the
interpreter/notebook overrides all live here.

Public surface
--------------
- SettingsStore: abstract base class
- InMemorySettingsStore: in-process dict (useful for testing)
- JsonSettingsStore: ``.vscode/settings.json`` on disk
- FileLock: advisory lock guarding shared documents
"""
from __future__ import annotations

from flake_shells.settings.base import SettingsStore
from flake_shells.settings.filesystem import JsonSettingsStore
from flake_shells.settings.locking import FileLock
from flake_shells.settings.memory import InMemorySettingsStore

__all__ = [
    "FileLock",
    "InMemorySettingsStore",
    "JsonSettingsStore",
    "SettingsStore",
]
