"""Environment session domain models.

All types are Pydantic BaseModel subclasses so that state can be validated,
copied and rendered (``status --format json``) without extra plumbing.

Classes
-------
- SessionStatus: enum: INACTIVE, ACTIVE
- ActiveSnapshot: immutable copy of an active session, safe to hand out
- SessionState: the mutable state machine owned by the manager
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from flake_shells.discovery import Descriptor
from flake_shells.errors import InvalidTransitionError


class SessionStatus(str, Enum):
    """Activation states of the flake environment."""

    INACTIVE = "inactive"
    ACTIVE = "active"


class ActiveSnapshot(BaseModel):
    """Frozen view of an active session taken at one instant.

    Session-event handlers work from a snapshot so that a deactivation
    running concurrently can never leave them with half a mapping.
    """

    descriptor: Descriptor
    variables: dict[str, str]
    activated_at: datetime
    restored: bool = False

    model_config = {"frozen": True}


class SessionState(BaseModel):
    """The activation state machine.

    Parameters
    ----------
    status:
        Current state.
    descriptor:
        The flake the environment came from.  Always set when active.
    variables:
        The resolved variable mapping.  Empty when inactive.
    activated_at:
        When the state last became active (UTC).
    restored:
        True if the active state was rebuilt from durable settings rather
        than by running the resolution tool.
    """

    status: SessionStatus = SessionStatus.INACTIVE
    descriptor: Descriptor | None = None
    variables: dict[str, str] = Field(default_factory=dict)
    activated_at: datetime | None = None
    restored: bool = False

    model_config = {"frozen": False}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    def snapshot(self) -> ActiveSnapshot | None:
        """Return an independent copy of the active state, or None."""
        if not self.is_active() or self.descriptor is None or self.activated_at is None:
            return None
        return ActiveSnapshot(
            descriptor=self.descriptor,
            variables=dict(self.variables),
            activated_at=self.activated_at,
            restored=self.restored,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def mark_active(
        self,
        descriptor: Descriptor,
        variables: dict[str, str],
        *,
        restored: bool = False,
    ) -> None:
        """Transition INACTIVE -> ACTIVE.

        Raises
        ------
        InvalidTransitionError
            If the state is already active.
        """
        if self.is_active():
            raise InvalidTransitionError("Environment is already active; exit it first.")
        self.descriptor = descriptor
        self.variables = dict(variables)
        self.activated_at = datetime.now(timezone.utc)
        self.restored = restored
        self.status = SessionStatus.ACTIVE

    def mark_inactive(self) -> bool:
        """Transition to INACTIVE and drop the mapping.

        The selected descriptor is kept so a later activation can reuse it.

        Returns
        -------
        bool
            True if the state changed, False if it was already inactive.
        """
        changed = self.is_active()
        self.status = SessionStatus.INACTIVE
        self.variables = {}
        self.activated_at = None
        self.restored = False
        return changed

    @model_validator(mode="after")
    def _active_requires_descriptor(self) -> SessionState:
        if self.status is SessionStatus.ACTIVE and self.descriptor is None:
            raise ValueError("an active session requires a descriptor")
        return self
