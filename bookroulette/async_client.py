"""Async HTTP client for search-as-you-type lookups."""
import httpx
from typing import List, Optional, Dict, Any
import logging

from bookroulette.errors import ExternalCallError
from bookroulette.models import Book
from bookroulette.parse import parse_books_response, deduplicate_books

logger = logging.getLogger(__name__)


class AsyncGoogleBooksClient:
    """Async client for Google Books volume search."""

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = 10,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize async client.

        Args:
            api_key: Optional API key
            timeout: Request timeout
            client: Preconfigured httpx client (tests pass one with a mock transport)
        """
        self.api_key = api_key
        self.timeout = timeout

        # Create async HTTP client
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def search(self, query: str, max_results: int = 5) -> List[Book]:
        """
        Search for books asynchronously.

        Args:
            query: Search query
            max_results: Max results

        Returns:
            Normalized, deduplicated books

        Raises:
            ExternalCallError: on transport failure, non-200 status or a body
                that is not a Google Books response
        """
        params: Dict[str, Any] = {
            "q": query,
            "maxResults": min(max_results, 40),
        }

        if self.api_key:
            params["key"] = self.api_key

        try:
            logger.info(f"Async request: {query}")
            response = await self.client.get(self.BASE_URL, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Async request failed: {e}")
            raise ExternalCallError(f"Request failed: {e}") from e

        if response.status_code != 200:
            logger.warning(f"Status {response.status_code} for query: {query}")
            raise ExternalCallError(
                f"Google Books returned {response.status_code}",
                status_code=response.status_code,
                details={"body": response.text},
            )

        try:
            books = deduplicate_books(parse_books_response(response.json()))
        except (ValueError, AttributeError, TypeError) as e:
            logger.warning(f"Malformed response for query {query!r}: {e}")
            raise ExternalCallError(
                "Malformed response",
                status_code=response.status_code,
                details={"body": response.text[:500]},
            ) from e
        return books[:max_results]

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
