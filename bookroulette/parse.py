"""Parse and normalize Google Books API responses."""
import logging
from typing import Dict, Any, List, Optional
from bookroulette.models import Book

logger = logging.getLogger(__name__)


def _secure_url(url: Optional[str]) -> str:
    """Google serves thumbnails over plain http; ask for https instead."""
    if not url:
        return ""
    if url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return url


def parse_book(item: Dict[str, Any]) -> Optional[Book]:
    """
    Parse a single book item from Google Books API.

    Args:
        item: Single item from Google Books API response

    Returns:
        Book object or None if parsing fails
    """
    try:
        volume_info = item.get("volumeInfo", {})

        # Extract fields with safe defaults
        book_id = item.get("id", "")
        if not book_id:
            return None

        title = volume_info.get("title", "Unknown Title")
        authors = volume_info.get("authors", [])
        description = volume_info.get("description") or ""
        published_date = volume_info.get("publishedDate")
        publisher = volume_info.get("publisher")

        # Extract thumbnail (prefer higher quality)
        image_links = volume_info.get("imageLinks", {})
        thumbnail = image_links.get("thumbnail") or image_links.get("smallThumbnail")

        return Book(
            id=book_id,
            title=title,
            authors=list(authors),
            description=description,
            image_url=_secure_url(thumbnail),
            published_date=published_date,
            publisher=publisher,
        )
    except Exception as e:
        # Log but don't crash - APIs can be unpredictable
        logger.warning(f"Failed to parse book: {e}")
        return None


def parse_books_response(response_json: Dict[str, Any]) -> List[Book]:
    """
    Parse full Google Books API response.

    Args:
        response_json: Complete API response JSON

    Returns:
        List of Book objects (empty if no items found)
    """
    items = response_json.get("items", [])
    books = []

    for item in items:
        book = parse_book(item)
        if book:
            books.append(book)

    return books


def deduplicate_books(books: List[Book]) -> List[Book]:
    """
    Remove duplicate books by ID.

    Args:
        books: List of Book objects

    Returns:
        Deduplicated list of books
    """
    seen_ids = set()
    unique_books = []

    for book in books:
        if book.id not in seen_ids:
            seen_ids.add(book.id)
            unique_books.append(book)

    return unique_books
