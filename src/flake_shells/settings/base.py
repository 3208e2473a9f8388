"""Abstract base class for durable settings stores.

A settings store is the durable configuration collaborator shared with the
host application.  Keys are flat dotted names in the layout used by VS Code
``settings.json`` files (``terminal.integrated.env.linux``,
``shells.flakePath``, ...).  Values are JSON-compatible.

Classes
-------
- SettingsStore: abstract base for all stores
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class SettingsStore(ABC):
    """Protocol for reading and writing workspace-scoped settings.

    Writing ``None`` removes a key.  Implementations must tolerate the key
    being absent on removal.
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default`` if absent.

        Parameters
        ----------
        key:
            Dotted setting name.
        default:
            Value returned when the key is not present.

        Raises
        ------
        SettingsError
            If the underlying document cannot be read.
        """

    @abstractmethod
    def update(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``; ``None`` removes the key.

        Parameters
        ----------
        key:
            Dotted setting name.
        value:
            JSON-compatible value, or ``None`` to remove the entry.

        Raises
        ------
        SettingsError
            If the underlying document cannot be written.
        """

    @abstractmethod
    def keys(self) -> list[str]:
        """Return every key currently present in the store."""

    def has(self, key: str) -> bool:
        """Return True if ``key`` is present."""
        return key in self.keys()
