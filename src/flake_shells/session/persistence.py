"""Durable activation state.

Whether the environment is active survives a restart only through two
platform-keyed settings slots, ``terminal.integrated.env.linux`` and
``terminal.integrated.env.osx``.  The host reads the same slots to build
the environment of every terminal it opens.  "Was active before the
restart" is decided from these slots alone; an in-memory flag is never
trusted across a process boundary.

Writes to the two slots are separate operations.  A crash between them
leaves one slot populated, and :meth:`PersistenceBridge.read` treats that
as active.

Classes
-------
- PersistedSnapshot: what :meth:`PersistenceBridge.read` returns
- PersistenceBridge: write / read / clear the slots
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from pydantic import BaseModel

from flake_shells.discovery import Descriptor
from flake_shells.settings.base import SettingsStore

logger = logging.getLogger(__name__)

LINUX_SLOT = "terminal.integrated.env.linux"
OSX_SLOT = "terminal.integrated.env.osx"
ACTIVE_FLAKE_KEY = "shells.activeFlakePath"


def platform_family(platform: str | None = None) -> str:
    """Map ``sys.platform`` to the slot family: ``"osx"`` or ``"linux"``."""
    name = platform if platform is not None else sys.platform
    return "osx" if name == "darwin" else "linux"


class PersistedSnapshot(BaseModel):
    """Activation data recovered from durable settings.

    Parameters
    ----------
    variables:
        The mapping found in the first non-empty slot.
    slot:
        The settings key the mapping came from.
    flake_path:
        Absolute flake path recorded at activation, if it was recorded.
    """

    variables: dict[str, str]
    slot: str
    flake_path: Path | None = None

    model_config = {"frozen": True}


class PersistenceBridge:
    """Read and write the durable activation slots.

    Parameters
    ----------
    store:
        The settings store shared with the host.
    platform:
        Override for ``sys.platform``; decides which slot is primary.
    """

    def __init__(self, store: SettingsStore, platform: str | None = None) -> None:
        self._store = store
        self._family = platform_family(platform)

    @property
    def primary_slot(self) -> str:
        return OSX_SLOT if self._family == "osx" else LINUX_SLOT

    @property
    def secondary_slot(self) -> str:
        return LINUX_SLOT if self._family == "osx" else OSX_SLOT

    def write(self, variables: dict[str, str], descriptor: Descriptor | None = None) -> None:
        """Persist ``variables`` into both slots, the platform's own first.

        The flake path is recorded after the slots so that a crash part way
        through never leaves a recorded flake without a populated slot.
        """
        payload = dict(variables)
        self._store.update(self.primary_slot, payload)
        self._store.update(self.secondary_slot, payload)
        if descriptor is not None:
            self._store.update(ACTIVE_FLAKE_KEY, str(descriptor.path))
        logger.debug("PersistenceBridge: wrote %d variables", len(payload))

    def read(self) -> PersistedSnapshot | None:
        """Return the persisted activation, or None if nothing is active.

        Active means at least one slot holds a non-empty mapping.  The
        platform's own slot wins when both are populated.
        """
        for slot in (self.primary_slot, self.secondary_slot):
            value = self._store.get(slot)
            if isinstance(value, dict) and value:
                recorded = self._store.get(ACTIVE_FLAKE_KEY)
                return PersistedSnapshot(
                    variables={str(key): "" if val is None else str(val) for key, val in value.items()},
                    slot=slot,
                    flake_path=Path(recorded) if isinstance(recorded, str) and recorded else None,
                )
        return None

    def was_active(self) -> bool:
        """True when the durable slots say the environment is active."""
        return self.read() is not None

    def clear(self) -> None:
        """Remove both slots and the recorded flake, whichever are populated."""
        self._store.update(self.primary_slot, None)
        self._store.update(self.secondary_slot, None)
        self._store.update(ACTIVE_FLAKE_KEY, None)
        logger.debug("PersistenceBridge: cleared activation slots")

    def __repr__(self) -> str:
        return f"PersistenceBridge(primary_slot={self.primary_slot!r})"
