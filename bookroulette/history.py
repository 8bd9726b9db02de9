"""Past roulette picks, newest first."""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from bookroulette.models import HistoryEntry
from bookroulette.store import HISTORY_KEY, load_snapshot, save_snapshot

logger = logging.getLogger(__name__)


class PickHistory:
    """History log; position 0 is always the most recent pick."""

    def __init__(self, store):
        self.store = store
        self._entries: List[HistoryEntry] = []

    def load(self) -> None:
        self._entries = load_snapshot(self.store, HISTORY_KEY, HistoryEntry.from_dict)
        logger.info(f"Loaded {len(self._entries)} history entries")

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    @property
    def latest(self) -> Optional[HistoryEntry]:
        return self._entries[0] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def _commit(self, entries: List[HistoryEntry]) -> None:
        self._entries = entries
        save_snapshot(self.store, HISTORY_KEY, entries)

    def record(self, title: str, timestamp: Optional[datetime] = None) -> HistoryEntry:
        entry = HistoryEntry(title=title, timestamp=timestamp or datetime.now(timezone.utc))
        self._commit([entry] + self._entries)
        logger.info(f"Recorded pick {title!r}")
        return entry

    def remove_at(self, index: int) -> HistoryEntry:
        if not 0 <= index < len(self._entries):
            raise IndexError(f"history index {index} out of range")
        entries = list(self._entries)
        removed = entries.pop(index)
        self._commit(entries)
        return removed
