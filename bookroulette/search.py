"""Debounced search-as-you-type on top of the async Google Books client."""
import asyncio
import json
import logging
from typing import List, Optional

from bookroulette.errors import ExternalCallError
from bookroulette.models import Book

logger = logging.getLogger(__name__)


def search_action(query: str) -> str:
    """Request log label for a search."""
    return f"Search books: {query}"


def describe_results(query: str, books: List[Book]) -> str:
    return json.dumps(
        {
            "query": query,
            "count": len(books),
            "results": [{"id": b.id, "title": b.title} for b in books],
        },
        indent=2,
        ensure_ascii=False,
    )


def describe_failure(query: str, error: ExternalCallError) -> str:
    return json.dumps(
        {"query": query, "error": error.message, **error.details},
        indent=2,
        ensure_ascii=False,
        default=str,
    )


class DebouncedSearch:
    """
    Only the most recent query gets its results applied.

    Every submission takes the next sequence number and waits out the
    debounce window. If a newer submission arrived meanwhile it returns None
    without calling the API or touching the request log. A dispatched call
    whose response arrives after a newer submission is logged, but its
    results are dropped.
    """

    def __init__(
        self,
        client,
        request_log,
        delay: float = 0.5,
        min_length: int = 3,
        max_results: int = 5,
    ):
        self.client = client
        self.request_log = request_log
        self.delay = delay
        self.min_length = min_length
        self.max_results = max_results
        self.latest_results: List[Book] = []
        self.last_error: Optional[ExternalCallError] = None
        self._sequence = 0

    @property
    def sequence(self) -> int:
        return self._sequence

    def _is_current(self, ticket: int) -> bool:
        return ticket == self._sequence

    async def submit(self, query: str) -> Optional[List[Book]]:
        """
        Search for ``query`` once the user stops typing.

        Returns the results, [] for a short query or a failed call, or None
        when a newer submission superseded this one.
        """
        self._sequence += 1
        ticket = self._sequence
        query = query.strip()

        if len(query) < self.min_length:
            self.latest_results = []
            self.last_error = None
            return []

        await asyncio.sleep(self.delay)
        if not self._is_current(ticket):
            logger.debug(f"Search {ticket} for {query!r} superseded before dispatch")
            return None

        action = search_action(query)
        error: Optional[ExternalCallError] = None
        try:
            books = await self.client.search(query, self.max_results)
        except ExternalCallError as e:
            logger.error(f"Search for {query!r} failed: {e}")
            self.request_log.error(action, describe_failure(query, e))
            books, error = [], e
        else:
            self.request_log.success(action, describe_results(query, books))

        if not self._is_current(ticket):
            logger.debug(f"Dropping stale results for {query!r}")
            return None

        self.latest_results = books
        self.last_error = error
        return books

    def cancel_pending(self) -> None:
        """Make every in-flight submission stale."""
        self._sequence += 1
