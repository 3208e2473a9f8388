"""In-memory settings store.

Keeps settings in a plain dict.  Everything is lost when the object is
discarded, which makes it the store of choice for tests: a "restart" is
simulated by building a new manager around the same store instance.

Classes
-------
- InMemorySettingsStore: dict-backed ephemeral settings
"""
from __future__ import annotations

import copy
from typing import Any

from flake_shells.settings.base import SettingsStore


class InMemorySettingsStore(SettingsStore):
    """Ephemeral settings store backed by a Python dict.

    Parameters
    ----------
    initial_data:
        Optional pre-populated settings.  A deep copy is taken so the
        caller's dict is not mutated.
    """

    def __init__(self, initial_data: dict[str, Any] | None = None) -> None:
        self._store: dict[str, Any] = copy.deepcopy(initial_data or {})

    def get(self, key: str, default: Any = None) -> Any:
        """Return a copy of the value for ``key`` so callers cannot mutate it."""
        if key not in self._store:
            return default
        return copy.deepcopy(self._store[key])

    def update(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``; ``None`` removes it."""
        if value is None:
            self._store.pop(key, None)
        else:
            self._store[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        """Return stored keys in insertion order."""
        return list(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"InMemorySettingsStore(keys={len(self._store)})"
