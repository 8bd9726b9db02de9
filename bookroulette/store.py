"""Local key-value persistence for the collection, history, credential and logs."""
import json
import logging
import os
import tempfile
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from bookroulette.errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

BOOKS_KEY = "bookRouletteBooks"
HISTORY_KEY = "bookRouletteHistory"
API_KEY_KEY = "googleBooksApiKey"
LOGS_KEY = "bookRouletteLogs"


class MemoryStore:
    """Dict-backed store; nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def close(self) -> None:
        pass


class JsonFileStore:
    """
    All keys kept in a single JSON object on disk.

    Every write rewrites the file through a temporary file and os.replace,
    so a crash mid-write leaves the previous snapshot intact.
    """

    def __init__(self, path: str):
        self.path = path
        self._data = self._load()

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Store {self.path} does not hold an object, ignoring it")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save(self) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", delete=False, dir=directory, encoding="utf-8", suffix=".tmp"
        ) as tf:
            tmp_path = tf.name
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._save()

    def close(self) -> None:
        pass


def load_snapshot(store, key: str, from_dict: Callable[[Dict[str, Any]], T]) -> List[T]:
    """
    Read a persisted list and rebuild its records.

    A missing key yields an empty list. A snapshot that cannot be decoded is
    logged and also yields an empty list; it gets overwritten on the next save.
    """
    raw = store.get(key)
    if raw is None:
        return []
    try:
        items = json.loads(raw)
        if not isinstance(items, list):
            raise ValueError(f"expected a list, got {type(items).__name__}")
        return [from_dict(item) for item in items]
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        logger.error(f"Error loading saved {key}: {e}")
        return []


def save_snapshot(store, key: str, records: Iterable[Any]) -> None:
    """Write the full list of records under ``key``."""
    store.set(key, json.dumps([record.to_dict() for record in records], ensure_ascii=False))


def open_store(config):
    """Create the store selected by ``config.STORE_BACKEND``."""
    backend = config.STORE_BACKEND.lower()
    if backend == "json":
        logger.info(f"Using JSON store at {config.STORE_PATH}")
        return JsonFileStore(config.STORE_PATH)
    if backend == "memory":
        return MemoryStore()
    if backend == "postgres":
        from bookroulette.database import PostgresStore

        store = PostgresStore(config.DATABASE_URL)
        store.init_schema()
        return store
    raise ConfigurationError(
        f"Unknown store backend: {config.STORE_BACKEND!r}",
        details={"choices": ["json", "memory", "postgres"]},
    )
