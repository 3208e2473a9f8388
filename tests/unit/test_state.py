"""Unit tests for flake_shells.session.state."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from flake_shells.discovery import Descriptor
from flake_shells.errors import InvalidTransitionError
from flake_shells.session.state import SessionState, SessionStatus


class TestSessionState:
    def test_starts_inactive(self) -> None:
        state = SessionState()
        assert state.status is SessionStatus.INACTIVE
        assert not state.is_active()
        assert state.snapshot() is None

    def test_mark_active(self, flake: Descriptor) -> None:
        state = SessionState()
        state.mark_active(flake, {"A": "1"})
        assert state.is_active()
        assert state.descriptor == flake
        assert state.activated_at is not None
        assert state.restored is False

    def test_double_activation_rejected(self, flake: Descriptor) -> None:
        state = SessionState()
        state.mark_active(flake, {"A": "1"})
        with pytest.raises(InvalidTransitionError):
            state.mark_active(flake, {"B": "2"})
        assert state.variables == {"A": "1"}

    def test_mark_inactive_keeps_descriptor(self, flake: Descriptor) -> None:
        state = SessionState()
        state.mark_active(flake, {"A": "1"}, restored=True)
        assert state.mark_inactive() is True
        assert state.status is SessionStatus.INACTIVE
        assert state.variables == {}
        assert state.activated_at is None
        assert state.restored is False
        assert state.descriptor == flake

    def test_mark_inactive_when_inactive(self) -> None:
        assert SessionState().mark_inactive() is False

    def test_active_requires_descriptor(self) -> None:
        with pytest.raises(ValidationError):
            SessionState(status=SessionStatus.ACTIVE)

    def test_status_values(self) -> None:
        assert SessionStatus.ACTIVE.value == "active"
        assert SessionStatus("inactive") is SessionStatus.INACTIVE


class TestActiveSnapshot:
    def test_snapshot_is_independent(self, flake: Descriptor) -> None:
        state = SessionState()
        variables = {"A": "1"}
        state.mark_active(flake, variables)
        snapshot = state.snapshot()
        variables["A"] = "changed"
        state.mark_inactive()
        assert snapshot is not None
        assert snapshot.variables == {"A": "1"}
        assert snapshot.descriptor == flake

    def test_snapshot_is_frozen(self, flake: Descriptor) -> None:
        state = SessionState()
        state.mark_active(flake, {"A": "1"})
        snapshot = state.snapshot()
        with pytest.raises(ValidationError):
            snapshot.restored = True  # type: ignore[misc]

    def test_snapshot_carries_restored_flag(self, flake: Descriptor) -> None:
        state = SessionState()
        state.mark_active(flake, {"A": "1"}, restored=True)
        assert state.snapshot().restored is True
