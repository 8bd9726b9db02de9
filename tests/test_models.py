"""Tests for data models and their persisted layout."""
from datetime import datetime, timedelta, timezone

import pytest

from bookroulette.models import Book, HistoryEntry, LogStatus, RequestLogEntry, parse_timestamp


def test_book_to_dict_uses_persisted_keys():
    """Test that books serialize with the camelCase storage keys."""
    book = Book(
        id="vol1",
        title="Dune",
        authors=["Frank Herbert"],
        description="Spice.",
        image_url="https://example.com/dune.jpg",
        published_date="1965",
        publisher="Chilton",
    )

    data = book.to_dict()

    assert data == {
        "id": "vol1",
        "title": "Dune",
        "authors": ["Frank Herbert"],
        "description": "Spice.",
        "imageUrl": "https://example.com/dune.jpg",
        "publishedDate": "1965",
        "publisher": "Chilton",
    }
    assert Book.from_dict(data) == book


def test_book_optional_fields_omitted():
    """Test that unset optional fields are left out of the stored record."""
    data = Book("vol2", "Untitled").to_dict()

    assert "publishedDate" not in data
    assert "publisher" not in data
    assert Book.from_dict(data).published_date is None


def test_manual_book_gets_generated_id():
    """Test that hand-entered books get unique generated ids."""
    first = Book.manual("Emma")
    second = Book.manual("Emma")

    assert first.id.startswith("manual-")
    assert first.id != second.id
    assert first.title == "Emma"
    assert first.authors == []


def test_authors_str():
    """Test author formatting."""
    assert Book("1", "T", authors=["A", "B"]).authors_str == "A, B"
    assert Book("1", "T").authors_str == "Unknown"


def test_with_title_keeps_identity():
    """Test that renaming keeps id and metadata."""
    book = Book("1", "Old", authors=["X"], publisher="P")
    renamed = book.with_title("New")

    assert renamed.id == "1"
    assert renamed.title == "New"
    assert renamed.publisher == "P"
    assert book.title == "Old"


def test_history_entry_round_trips_instant():
    """Test that history timestamps come back as the same instant."""
    stamp = datetime(2024, 3, 1, 18, 30, 15, 123456, tzinfo=timezone(timedelta(hours=2)))
    entry = HistoryEntry("Dune", stamp)

    restored = HistoryEntry.from_dict(entry.to_dict())

    assert restored.timestamp == stamp
    assert restored.timestamp.utcoffset() == timedelta(hours=2)


def test_parse_timestamp_accepts_javascript_iso_format():
    """Test the trailing-Z form written by browsers."""
    parsed = parse_timestamp("2024-03-01T16:30:15.123Z")

    assert parsed == datetime(2024, 3, 1, 16, 30, 15, 123000, tzinfo=timezone.utc)


def test_parse_timestamp_naive_is_utc():
    """Test that timestamps without an offset are read as UTC."""
    assert parse_timestamp("2024-03-01T16:30:15").tzinfo == timezone.utc


def test_parse_timestamp_rejects_non_strings():
    """Test that numeric timestamps are refused with TypeError."""
    with pytest.raises(TypeError):
        parse_timestamp(1709310615)


def test_request_log_entry_round_trip():
    """Test request log entry serialization."""
    entry = RequestLogEntry("2024-03-01 10:00:00", "Search books: dune", LogStatus.ERROR, "boom")

    data = entry.to_dict()

    assert data["status"] == "error"
    assert RequestLogEntry.from_dict(data) == entry


def test_request_log_entry_rejects_unknown_status():
    """Test that an unknown status is not silently accepted."""
    with pytest.raises(ValueError):
        RequestLogEntry.from_dict({"timestamp": "t", "action": "a", "status": "maybe"})
