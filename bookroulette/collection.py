"""The user's book collection."""
import logging
from typing import List

from bookroulette.errors import DuplicateError, ValidationError
from bookroulette.models import Book
from bookroulette.store import BOOKS_KEY, load_snapshot, save_snapshot

logger = logging.getLogger(__name__)


class BookCollection:
    """
    Ordered list of books, persisted after every change.

    Mutations always build a new list and swap it in, then write the whole
    snapshot, so the store is never more than one mutation behind.
    Positions are 0-based; an out-of-range index raises IndexError.
    """

    def __init__(self, store):
        self.store = store
        self._books: List[Book] = []

    def load(self) -> None:
        self._books = load_snapshot(self.store, BOOKS_KEY, Book.from_dict)
        logger.info(f"Loaded {len(self._books)} books")

    @property
    def books(self) -> List[Book]:
        return list(self._books)

    def __len__(self) -> int:
        return len(self._books)

    def __contains__(self, book_id: str) -> bool:
        return any(book.id == book_id for book in self._books)

    def _commit(self, books: List[Book]) -> None:
        self._books = books
        save_snapshot(self.store, BOOKS_KEY, books)

    def add(self, book: Book) -> Book:
        """
        Append a book.

        Raises:
            ValidationError: title is blank
            DuplicateError: a book with the same id is already present
        """
        if not book.title.strip():
            raise ValidationError("Book title cannot be empty")
        if book.id in self:
            logger.warning(f"Rejected duplicate book {book.id}")
            raise DuplicateError("This book is already in your collection", book_id=book.id)
        self._commit(self._books + [book])
        logger.info(f"Added {book.title!r} ({book.id})")
        return book

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._books):
            raise IndexError(f"book index {index} out of range")

    def update_at(self, index: int, book: Book) -> Book:
        """Replace the book at ``index``."""
        self._check_index(index)
        if not book.title.strip():
            raise ValidationError("Book title cannot be empty")
        books = list(self._books)
        books[index] = book
        self._commit(books)
        return book

    def rename_at(self, index: int, title: str) -> Book:
        """Change the title of the book at ``index``."""
        self._check_index(index)
        title = title.strip()
        if not title:
            raise ValidationError("Book title cannot be empty")
        return self.update_at(index, self._books[index].with_title(title))

    def remove_at(self, index: int) -> Book:
        self._check_index(index)
        books = list(self._books)
        removed = books.pop(index)
        self._commit(books)
        logger.info(f"Removed {removed.title!r}")
        return removed
