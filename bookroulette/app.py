"""Book Roulette application: the user-facing commands over the shared state."""
import asyncio
import logging
import random
from typing import List, Optional

from bookroulette.async_client import AsyncGoogleBooksClient
from bookroulette.client import GoogleBooksClient
from bookroulette.collection import BookCollection
from bookroulette.config import Config
from bookroulette.engine import RunCompleted, RunTiming, SelectionEngine, TickListener
from bookroulette.errors import ExternalCallError, ValidationError
from bookroulette.history import PickHistory
from bookroulette.models import Book
from bookroulette.request_log import RequestLog
from bookroulette.search import DebouncedSearch, describe_failure, describe_results, search_action
from bookroulette.store import API_KEY_KEY

logger = logging.getLogger(__name__)


class BookRoulette:
    """
    Owns the store and everything persisted in it.

    State is loaded once at construction and written back by the managers
    after every change. ``close`` (sync) or ``aclose`` (async) releases the
    HTTP clients and the store.
    """

    def __init__(
        self,
        store,
        config: Optional[Config] = None,
        async_client: Optional[AsyncGoogleBooksClient] = None,
        lookup_client: Optional[GoogleBooksClient] = None,
        rng: Optional[random.Random] = None,
        timing: Optional[RunTiming] = None,
    ):
        self.config = config or Config()
        self.store = store

        self.collection = BookCollection(store)
        self.history = PickHistory(store)
        self.request_log = RequestLog(store)
        self.collection.load()
        self.history.load()
        self.request_log.load()

        timing = timing or RunTiming()
        timing.check_timeout(self.config.RUN_TIMEOUT)
        self.engine = SelectionEngine(timing, rng=rng)
        self.engine.complete_listeners.append(self._record_pick)

        self._async_client = async_client
        self._lookup_client = lookup_client
        self._search: Optional[DebouncedSearch] = None

    # Credential

    @property
    def api_key(self) -> Optional[str]:
        return self.store.get(API_KEY_KEY) or self.config.GOOGLE_BOOKS_API_KEY

    def save_api_key(self, key: str) -> None:
        """Persist the Google Books key; a blank key removes it."""
        key = key.strip()
        if key:
            self.store.set(API_KEY_KEY, key)
            logger.info("Saved Google Books API key")
        else:
            self.store.remove(API_KEY_KEY)
            logger.info("Removed Google Books API key")
        for client in (self._async_client, self._lookup_client):
            if client is not None:
                client.api_key = self.api_key

    # Collection

    @property
    def books(self) -> List[Book]:
        return self.collection.books

    def add_book(self, book: Book) -> Book:
        return self.collection.add(book)

    def add_manual(self, title: str) -> Book:
        return self.collection.add(Book.manual(title.strip()))

    def add_search_result(self, index: int) -> Book:
        results = self.search_box.latest_results
        if not 0 <= index < len(results):
            raise ValidationError(
                "No such search result",
                details={"index": index, "results": len(results)},
            )
        return self.collection.add(results[index])

    def edit_title(self, index: int, title: str) -> Book:
        return self.collection.rename_at(index, title)

    def delete_book(self, index: int) -> Book:
        return self.collection.remove_at(index)

    # Roulette

    @property
    def is_running(self) -> bool:
        return self.engine.is_running

    def _record_pick(self, result: RunCompleted) -> None:
        self.history.record(result.title)

    def start_roulette(self, on_tick: Optional[TickListener] = None) -> "asyncio.Task[RunCompleted]":
        """
        Spin the roulette over the current collection.

        Validation errors are raised here, before anything is scheduled. The
        returned task resolves to the pick, which is added to the history as
        soon as the engine reports it.
        """
        run = self.engine.request_run(self.collection.books)
        if on_tick is not None:
            self.engine.tick_listeners.append(on_tick)
        return asyncio.get_running_loop().create_task(self._await_run(run, on_tick))

    async def _await_run(self, run, on_tick: Optional[TickListener]) -> RunCompleted:
        try:
            return await asyncio.wait_for(run, timeout=self.config.RUN_TIMEOUT)
        except asyncio.TimeoutError:
            logger.error(f"Roulette run exceeded {self.config.RUN_TIMEOUT}s and was stopped")
            raise
        finally:
            if on_tick is not None:
                self.engine.tick_listeners.remove(on_tick)

    async def run_roulette(self, on_tick: Optional[TickListener] = None) -> RunCompleted:
        return await self.start_roulette(on_tick)

    # History and request log

    def delete_history(self, index: int):
        return self.history.remove_at(index)

    def clear_logs(self) -> None:
        self.request_log.clear()

    # Search

    @property
    def async_client(self) -> AsyncGoogleBooksClient:
        if self._async_client is None:
            self._async_client = AsyncGoogleBooksClient(
                api_key=self.api_key, timeout=self.config.DEFAULT_TIMEOUT
            )
        return self._async_client

    @property
    def lookup_client(self) -> GoogleBooksClient:
        if self._lookup_client is None:
            self._lookup_client = GoogleBooksClient(
                api_key=self.api_key, timeout=self.config.DEFAULT_TIMEOUT
            )
        return self._lookup_client

    @property
    def search_box(self) -> DebouncedSearch:
        if self._search is None:
            self._search = DebouncedSearch(
                self.async_client,
                self.request_log,
                delay=self.config.SEARCH_DEBOUNCE,
                min_length=self.config.MIN_QUERY_LENGTH,
                max_results=self.config.SEARCH_MAX_RESULTS,
            )
        return self._search

    async def search(self, query: str) -> Optional[List[Book]]:
        """Debounced search; None means a newer query took over."""
        return await self.search_box.submit(query)

    def search_now(self, query: str) -> List[Book]:
        """
        One blocking search, no debounce.

        Short queries return [] without a request. Failures are logged to
        the request log and re-raised.
        """
        query = query.strip()
        if len(query) < self.config.MIN_QUERY_LENGTH:
            return []
        action = search_action(query)
        try:
            books = self.lookup_client.search(query, self.config.SEARCH_MAX_RESULTS)
        except ExternalCallError as e:
            self.request_log.error(action, describe_failure(query, e))
            raise
        self.request_log.success(action, describe_results(query, books))
        return books

    # Teardown

    def close(self) -> None:
        if self._lookup_client is not None:
            self._lookup_client.close()
        self.store.close()

    async def aclose(self) -> None:
        """Cancel the roulette and pending searches, then release everything."""
        await self.engine.close()
        if self._search is not None:
            self._search.cancel_pending()
        if self._async_client is not None:
            await self._async_client.close()
        self.close()
