"""Tests for parsing functions."""
from bookroulette.parse import parse_book, parse_books_response, deduplicate_books
from bookroulette.models import Book


def test_parse_book_complete():
    """Test parsing a book with all fields present."""
    item = {
        "id": "abc123",
        "volumeInfo": {
            "title": "Python Crash Course",
            "authors": ["Eric Matthes"],
            "publishedDate": "2019-05-03",
            "publisher": "No Starch Press",
            "description": "A great book",
            "imageLinks": {
                "smallThumbnail": "http://example.com/small.jpg",
                "thumbnail": "http://example.com/thumb.jpg"
            }
        }
    }

    book = parse_book(item)

    assert book is not None
    assert book.id == "abc123"
    assert book.title == "Python Crash Course"
    assert book.authors == ["Eric Matthes"]
    assert book.publisher == "No Starch Press"
    assert book.published_date == "2019-05-03"
    assert book.image_url == "https://example.com/thumb.jpg"


def test_parse_book_missing_fields():
    """Test parsing a book with missing optional fields."""
    item = {
        "id": "xyz789",
        "volumeInfo": {
            "title": "Mystery Book"
        }
    }

    book = parse_book(item)

    assert book is not None
    assert book.id == "xyz789"
    assert book.title == "Mystery Book"
    assert book.authors == []
    assert book.description == ""
    assert book.image_url == ""
    assert book.publisher is None


def test_parse_book_small_thumbnail_fallback():
    """Test that smallThumbnail is used when thumbnail is absent."""
    item = {
        "id": "s1",
        "volumeInfo": {
            "title": "Small Cover",
            "imageLinks": {"smallThumbnail": "https://example.com/small.jpg"}
        }
    }

    book = parse_book(item)

    assert book.image_url == "https://example.com/small.jpg"


def test_parse_book_no_id():
    """Test that book without ID returns None."""
    item = {
        "volumeInfo": {
            "title": "No ID Book"
        }
    }

    book = parse_book(item)
    assert book is None


def test_parse_book_malformed_volume():
    """Test that a malformed item is skipped instead of raising."""
    book = parse_book({"id": "bad", "volumeInfo": "not a dict"})
    assert book is None


def test_parse_books_response():
    """Test parsing complete API response."""
    response = {
        "items": [
            {
                "id": "1",
                "volumeInfo": {"title": "Book 1"}
            },
            {
                "id": "2",
                "volumeInfo": {"title": "Book 2"}
            }
        ]
    }

    books = parse_books_response(response)

    assert len(books) == 2
    assert books[0].title == "Book 1"
    assert books[1].title == "Book 2"


def test_parse_books_response_without_items():
    """Test that an empty search response yields no books."""
    assert parse_books_response({"totalItems": 0}) == []


def test_deduplicate_books():
    """Test deduplication by book ID."""
    books = [
        Book("1", "Book A"),
        Book("2", "Book B"),
        Book("1", "Book A Duplicate"),
    ]

    unique = deduplicate_books(books)

    assert len(unique) == 2
    assert unique[0].id == "1"
    assert unique[1].id == "2"
