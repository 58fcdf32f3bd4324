"""Tests for the bounded analysis history and its local storage."""
from __future__ import annotations

import json

from trademind.models import HistoryEntry
from trademind.services.history import HistoryStore
from trademind.services.storage import LocalStorage


class TestLocalStorage:
    """Key-value file semantics."""

    def test_missing_file_reads_empty(self, storage):
        assert storage.get_item("anything") is None
        assert not storage.has_item("anything")

    def test_set_get_remove(self, storage):
        storage.set_item("k", "v")
        assert storage.get_item("k") == "v"
        storage.remove_item("k")
        assert storage.get_item("k") is None
        assert not storage.has_item("k")

    def test_persists_across_instances(self, tmp_path):
        LocalStorage(tmp_path / "s.json").set_item("k", "v")
        assert LocalStorage(tmp_path / "s.json").get_item("k") == "v"

    def test_other_keys_untouched(self, storage):
        storage.set_item("a", "1")
        storage.set_item("b", "2")
        storage.remove_item("a")
        assert storage.get_item("b") == "2"

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("{oops")
        assert LocalStorage(path).get_item("k") is None

    def test_no_temp_files_left_behind(self, tmp_path):
        storage = LocalStorage(tmp_path / "s.json")
        storage.set_item("k", "v")
        assert [p.name for p in tmp_path.iterdir()] == ["s.json"]


class TestHistoryRecord:
    """Insert-at-front with a fixed cap."""

    def test_empty_history(self, history):
        assert history.load() == []

    def test_record_assigns_id_and_timestamp(self, history, analysis):
        entry = history.record(analysis, "NVDA")
        assert isinstance(entry, HistoryEntry)
        assert entry.id
        assert entry.ticker == "NVDA"
        assert entry.timestamp.tzinfo is not None
        assert entry.recommendation == "BUY"
        assert entry.confidence_score == 82

    def test_ids_are_unique(self, history, analysis):
        ids = {history.record(analysis, "AAPL").id for _ in range(10)}
        assert len(ids) == 10

    def test_newest_first(self, history, analysis):
        history.record(analysis, "AAA")
        history.record(analysis, "BBB")
        assert [e.ticker for e in history.load()] == ["BBB", "AAA"]

    def test_cap_keeps_twenty_most_recent(self, history, analysis):
        for i in range(25):
            history.record(analysis, f"T{i}")

        entries = history.load()
        assert len(entries) == 20
        assert [e.ticker for e in entries] == [f"T{i}" for i in range(24, 4, -1)]

    def test_custom_cap(self, storage, analysis):
        store = HistoryStore(storage, max_entries=3)
        for i in range(5):
            store.record(analysis, f"T{i}")
        assert [e.ticker for e in store.load()] == ["T4", "T3", "T2"]

    def test_round_trips_through_storage(self, storage, analysis):
        entry = HistoryStore(storage).record(analysis, "MSFT")
        reloaded = HistoryStore(storage).load()[0]
        assert reloaded == entry
        assert reloaded.to_analysis() == analysis

    def test_persisted_with_wire_keys(self, storage, history, analysis):
        history.record(analysis, "MSFT")
        raw = json.loads(storage.get_item("tradeHistory"))
        assert "confidenceScore" in raw[0]
        assert "riskFactors" in raw[0]


class TestHistoryRemove:
    """Delete-by-id."""

    def test_remove_unknown_id_is_noop(self, history, analysis):
        for t in ("A", "B", "C"):
            history.record(analysis, t)
        before = history.load()
        history.remove("does-not-exist")
        assert history.load() == before

    def test_remove_existing_preserves_order(self, history, analysis):
        for t in ("A", "B", "C", "D"):
            history.record(analysis, t)
        entries = history.load()
        target = entries[1]

        history.remove(target.id)

        remaining = history.load()
        assert len(remaining) == len(entries) - 1
        assert [e.ticker for e in remaining] == ["D", "B", "A"]
        assert history.get(target.id) is None


class TestHistoryClear:
    """clear() deletes the key rather than storing an empty list."""

    def test_clear_removes_key(self, storage, history, analysis):
        history.record(analysis, "A")
        history.clear()
        assert history.load() == []
        assert storage.get_item("tradeHistory") is None
        assert not storage.has_item("tradeHistory")

    def test_deleting_all_entries_keeps_empty_list(self, storage, history, analysis):
        entry = history.record(analysis, "A")
        history.remove(entry.id)
        assert history.load() == []
        assert storage.get_item("tradeHistory") == "[]"


class TestHistoryCorruption:
    """Malformed persisted data reads as no history."""

    def test_invalid_json(self, storage):
        storage.set_item("tradeHistory", "{not json")
        assert HistoryStore(storage).load() == []

    def test_not_a_list(self, storage):
        storage.set_item("tradeHistory", json.dumps({"id": "x"}))
        assert HistoryStore(storage).load() == []

    def test_invalid_entry(self, storage):
        storage.set_item("tradeHistory", json.dumps([{"id": "x", "ticker": "A"}]))
        assert HistoryStore(storage).load() == []

    def test_record_after_corruption_recovers(self, storage, analysis):
        storage.set_item("tradeHistory", "garbage")
        store = HistoryStore(storage)
        store.record(analysis, "A")
        assert [e.ticker for e in store.load()] == ["A"]

    def test_undecodable_file_reads_empty(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_bytes(b'{"tradeHistory": "\xff\xfe"}')
        store = HistoryStore(LocalStorage(path))

        assert store.load() == []
        store.clear()

    def test_record_over_undecodable_file(self, tmp_path, analysis):
        path = tmp_path / "storage.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        store = HistoryStore(LocalStorage(path))

        store.record(analysis, "NVDA")

        assert [e.ticker for e in store.load()] == ["NVDA"]
