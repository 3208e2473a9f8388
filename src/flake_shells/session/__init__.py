"""Session management subpackage.

The activation state machine, its durable persistence, and the manager
that drives both.

Public surface
--------------
- SessionState: the state machine value
- SessionStatus: enum: INACTIVE, ACTIVE
- ActiveSnapshot: frozen copy of an active state
- PersistenceBridge: durable activation slots
- PersistedSnapshot: what the slots hold after a restart
- EnvironmentSessionManager: activate / deactivate / restore / startup
"""
from __future__ import annotations

from flake_shells.session.state import ActiveSnapshot, SessionState, SessionStatus
from flake_shells.session.persistence import PersistedSnapshot, PersistenceBridge
from flake_shells.session.manager import EnvironmentSessionManager

__all__ = [
    "ActiveSnapshot",
    "EnvironmentSessionManager",
    "PersistedSnapshot",
    "PersistenceBridge",
    "SessionState",
    "SessionStatus",
]
