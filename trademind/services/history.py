"""Bounded, locally persisted history of trade analyses."""
from __future__ import annotations
import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from ..models import HistoryEntry, TradeAnalysis
from .storage import LocalStorage

logger = logging.getLogger(__name__)

HISTORY_KEY = "tradeHistory"
MAX_HISTORY_ENTRIES = 20


class HistoryStore:
    """
    Most-recent-first list of past analyses, capped at max_entries.

    Representation Invariants:
    - At most max_entries entries, newest first
    - The persisted value under key is always the full list after each
      mutation; clear() removes the key rather than storing []
    """

    def __init__(
        self,
        storage: LocalStorage,
        key: str = HISTORY_KEY,
        max_entries: int = MAX_HISTORY_ENTRIES,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.storage = storage
        self.key = key
        self.max_entries = max_entries

    def load(self) -> List[HistoryEntry]:
        """Return saved entries, newest first. Corrupt data reads as empty."""
        raw = self.storage.get_item(self.key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            return [HistoryEntry.model_validate(item) for item in data]
        except (ValueError, ValidationError) as e:
            logger.error(f"Failed to parse history under '{self.key}': {e}")
            return []

    def _save(self, entries: List[HistoryEntry]) -> None:
        payload = [entry.model_dump(mode="json", by_alias=True) for entry in entries]
        self.storage.set_item(self.key, json.dumps(payload))

    def record(self, analysis: TradeAnalysis, ticker: str) -> HistoryEntry:
        """Prepend a new entry for analysis and persist the capped list."""
        entry = HistoryEntry.from_analysis(analysis, ticker)
        entries = [entry] + self.load()
        self._save(entries[: self.max_entries])
        logger.info(f"Recorded {analysis.recommendation} analysis for {ticker} ({entry.id})")
        return entry

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        for entry in self.load():
            if entry.id == entry_id:
                return entry
        return None

    def remove(self, entry_id: str) -> None:
        """Drop the entry with entry_id; unknown ids leave the list unchanged."""
        entries = [e for e in self.load() if e.id != entry_id]
        self._save(entries)

    def clear(self) -> None:
        """Forget all entries and delete the persisted key."""
        self.storage.remove_item(self.key)
        logger.info("Cleared analysis history")
