"""Unit tests for flake_shells.settings.memory.InMemorySettingsStore."""
from __future__ import annotations

from flake_shells.settings.memory import InMemorySettingsStore


class TestInMemorySettingsStore:
    def test_get_missing_returns_default(self) -> None:
        store = InMemorySettingsStore()
        assert store.get("absent") is None
        assert store.get("absent", 3) == 3

    def test_update_then_get(self) -> None:
        store = InMemorySettingsStore()
        store.update("shells.impure", True)
        assert store.get("shells.impure") is True
        assert store.has("shells.impure")

    def test_none_removes(self) -> None:
        store = InMemorySettingsStore({"k": 1})
        store.update("k", None)
        assert not store.has("k")
        assert len(store) == 0

    def test_removing_absent_key_is_fine(self) -> None:
        store = InMemorySettingsStore()
        store.update("never-set", None)
        assert store.keys() == []

    def test_initial_data_is_copied(self) -> None:
        initial = {"slot": {"A": "1"}}
        store = InMemorySettingsStore(initial)
        initial["slot"]["A"] = "changed"
        assert store.get("slot") == {"A": "1"}

    def test_values_are_copied_on_read_and_write(self) -> None:
        store = InMemorySettingsStore()
        value = {"A": "1"}
        store.update("slot", value)
        value["A"] = "2"
        fetched = store.get("slot")
        fetched["A"] = "3"
        assert store.get("slot") == {"A": "1"}

    def test_keys_in_insertion_order(self) -> None:
        store = InMemorySettingsStore()
        store.update("b", 1)
        store.update("a", 2)
        assert store.keys() == ["b", "a"]

    def test_repr(self) -> None:
        assert "keys=0" in repr(InMemorySettingsStore())
