"""Log of Google Books API calls, newest first."""
from datetime import datetime
from typing import List

from bookroulette.models import LogStatus, RequestLogEntry
from bookroulette.store import LOGS_KEY, load_snapshot, save_snapshot


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class RequestLog:
    """Grows until the user clears it."""

    def __init__(self, store):
        self.store = store
        self._entries: List[RequestLogEntry] = []

    def load(self) -> None:
        self._entries = load_snapshot(self.store, LOGS_KEY, RequestLogEntry.from_dict)

    @property
    def entries(self) -> List[RequestLogEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, entry: RequestLogEntry) -> RequestLogEntry:
        self._entries = [entry] + self._entries
        save_snapshot(self.store, LOGS_KEY, self._entries)
        return entry

    def success(self, action: str, details: str) -> RequestLogEntry:
        return self.record(RequestLogEntry(_now(), action, LogStatus.SUCCESS, details))

    def error(self, action: str, details: str) -> RequestLogEntry:
        return self.record(RequestLogEntry(_now(), action, LogStatus.ERROR, details))

    def clear(self) -> None:
        self._entries = []
        save_snapshot(self.store, LOGS_KEY, [])
