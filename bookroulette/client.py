"""HTTP client for Google Books API."""
import requests
from typing import Optional, Dict, Any, List
import logging

from bookroulette.errors import ExternalCallError
from bookroulette.models import Book
from bookroulette.parse import parse_books_response, deduplicate_books

logger = logging.getLogger(__name__)


class GoogleBooksClient:
    """
    Blocking client for Google Books volume search.

    A failed search is not retried: it raises ExternalCallError and the
    caller decides how to report it.
    """

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = 10,
    ):
        """
        Initialize Google Books API client.

        Args:
            api_key: Optional API key (increases rate limits)
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.timeout = timeout

        # Create session for connection pooling
        self.session = requests.Session()

    def build_params(self, query: str, max_results: int) -> Dict[str, Any]:
        params = {
            "q": query,
            "maxResults": min(max_results, 40),  # API limit
        }

        if self.api_key:
            params["key"] = self.api_key

        return params

    def search(self, query: str, max_results: int = 5) -> List[Book]:
        """
        Search for books.

        Args:
            query: Search query string
            max_results: Maximum results to return (1-40)

        Returns:
            Normalized, deduplicated books

        Raises:
            ExternalCallError: on transport failure, non-200 status or a body
                that is not a Google Books response
        """
        params = self.build_params(query, max_results)

        try:
            logger.info(f"Request: {self.BASE_URL} q={query!r}")
            response = self.session.get(self.BASE_URL, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.warning(f"Timeout searching for {query!r}")
            raise ExternalCallError(f"Request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed: {e}")
            raise ExternalCallError(f"Request failed: {e}") from e

        if response.status_code != 200:
            logger.warning(f"Status {response.status_code} for query: {query}")
            raise ExternalCallError(
                f"Google Books returned {response.status_code}",
                status_code=response.status_code,
                details={"body": response.text},
            )

        logger.info(f"Success: {response.status_code}")
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

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
