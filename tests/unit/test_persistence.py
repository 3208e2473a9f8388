"""Unit tests for flake_shells.session.persistence."""
from __future__ import annotations

from pathlib import Path

import pytest

from flake_shells.discovery import Descriptor
from flake_shells.session.persistence import (
    ACTIVE_FLAKE_KEY,
    LINUX_SLOT,
    OSX_SLOT,
    PersistenceBridge,
    platform_family,
)
from flake_shells.settings.memory import InMemorySettingsStore


class TestPlatformFamily:
    @pytest.mark.parametrize(
        ("platform", "family"),
        [("darwin", "osx"), ("linux", "linux"), ("freebsd13", "linux"), ("win32", "linux")],
    )
    def test_mapping(self, platform: str, family: str) -> None:
        assert platform_family(platform) == family

    def test_primary_slot_follows_platform(self) -> None:
        store = InMemorySettingsStore()
        assert PersistenceBridge(store, platform="darwin").primary_slot == OSX_SLOT
        assert PersistenceBridge(store, platform="linux").primary_slot == LINUX_SLOT
        assert PersistenceBridge(store, platform="linux").secondary_slot == OSX_SLOT


class TestPersistenceBridgeWrite:
    def test_writes_both_slots_and_flake(self, store: InMemorySettingsStore, flake: Descriptor) -> None:
        bridge = PersistenceBridge(store, platform="linux")
        bridge.write({"A": "1"}, flake)
        assert store.get(LINUX_SLOT) == {"A": "1"}
        assert store.get(OSX_SLOT) == {"A": "1"}
        assert store.get(ACTIVE_FLAKE_KEY) == str(flake.path)

    def test_primary_slot_written_first(self, flake: Descriptor) -> None:
        order: list[str] = []

        class _Recording(InMemorySettingsStore):
            def update(self, key, value):  # type: ignore[no-untyped-def]
                order.append(key)
                super().update(key, value)

        PersistenceBridge(_Recording(), platform="darwin").write({"A": "1"}, flake)
        assert order == [OSX_SLOT, LINUX_SLOT, ACTIVE_FLAKE_KEY]

    def test_write_without_descriptor(self, store: InMemorySettingsStore) -> None:
        PersistenceBridge(store).write({"A": "1"})
        assert not store.has(ACTIVE_FLAKE_KEY)


class TestPersistenceBridgeRead:
    def test_nothing_persisted(self, store: InMemorySettingsStore) -> None:
        bridge = PersistenceBridge(store)
        assert bridge.read() is None
        assert bridge.was_active() is False

    def test_round_trip(self, store: InMemorySettingsStore, flake: Descriptor) -> None:
        bridge = PersistenceBridge(store, platform="linux")
        bridge.write({"PATH": "/nix/bin"}, flake)
        snapshot = bridge.read()
        assert snapshot is not None
        assert snapshot.variables == {"PATH": "/nix/bin"}
        assert snapshot.slot == LINUX_SLOT
        assert snapshot.flake_path == flake.path

    def test_only_secondary_slot_counts_as_active(self, store: InMemorySettingsStore) -> None:
        store.update(OSX_SLOT, {"A": "1"})
        snapshot = PersistenceBridge(store, platform="linux").read()
        assert snapshot is not None
        assert snapshot.slot == OSX_SLOT
        assert snapshot.flake_path is None

    def test_primary_wins_when_slots_differ(self, store: InMemorySettingsStore) -> None:
        store.update(LINUX_SLOT, {"A": "linux"})
        store.update(OSX_SLOT, {"A": "osx"})
        assert PersistenceBridge(store, platform="darwin").read().variables == {"A": "osx"}

    def test_empty_mapping_is_inactive(self, store: InMemorySettingsStore) -> None:
        store.update(LINUX_SLOT, {})
        store.update(OSX_SLOT, {})
        assert PersistenceBridge(store).was_active() is False

    def test_non_mapping_slot_is_ignored(self, store: InMemorySettingsStore) -> None:
        store.update(LINUX_SLOT, "garbage")
        assert PersistenceBridge(store, platform="linux").read() is None

    def test_values_are_stringified(self, store: InMemorySettingsStore) -> None:
        store.update(LINUX_SLOT, {"N": 3, "Z": None})
        snapshot = PersistenceBridge(store, platform="linux").read()
        assert snapshot.variables == {"N": "3", "Z": ""}


class TestPersistenceBridgeClear:
    def test_clear_removes_everything(self, store: InMemorySettingsStore, flake: Descriptor) -> None:
        store.update("editor.tabSize", 4)
        bridge = PersistenceBridge(store)
        bridge.write({"A": "1"}, flake)
        bridge.clear()
        assert store.keys() == ["editor.tabSize"]
        assert bridge.was_active() is False

    def test_clear_when_empty(self, store: InMemorySettingsStore) -> None:
        PersistenceBridge(store).clear()
        assert store.keys() == []

    def test_persisted_flake_path_is_path(self, store: InMemorySettingsStore, tmp_path: Path) -> None:
        store.update(LINUX_SLOT, {"A": "1"})
        store.update(ACTIVE_FLAKE_KEY, str(tmp_path / "flake.nix"))
        snapshot = PersistenceBridge(store, platform="linux").read()
        assert snapshot.flake_path == tmp_path / "flake.nix"
