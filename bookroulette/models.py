"""Data models for books, picks and API request records."""
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Any


@dataclass(frozen=True)
class Book:
    """Normalized book representation."""
    id: str
    title: str
    authors: List[str] = field(default_factory=list)
    description: str = ""
    image_url: str = ""
    published_date: Optional[str] = None
    publisher: Optional[str] = None

    @classmethod
    def manual(cls, title: str) -> "Book":
        """Create a book typed in by hand, with a generated id."""
        return cls(id=f"manual-{uuid.uuid4().hex}", title=title)

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors) if self.authors else "Unknown"

    def with_title(self, title: str) -> "Book":
        return replace(self, title=title)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the persisted (camelCase) layout."""
        data = {
            "id": self.id,
            "title": self.title,
            "authors": list(self.authors),
            "description": self.description,
            "imageUrl": self.image_url,
        }
        if self.published_date is not None:
            data["publishedDate"] = self.published_date
        if self.publisher is not None:
            data["publisher"] = self.publisher
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Book":
        return cls(
            id=data["id"],
            title=data["title"],
            authors=list(data.get("authors") or []),
            description=data.get("description") or "",
            image_url=data.get("imageUrl") or "",
            published_date=data.get("publishedDate"),
            publisher=data.get("publisher"),
        )


def parse_timestamp(text: str) -> datetime:
    """
    Parse an ISO-8601 timestamp back into an aware datetime.

    Accepts the trailing "Z" written by JavaScript's toISOString();
    naive values are taken as UTC.
    """
    if not isinstance(text, str):
        raise TypeError(f"timestamp must be a string, got {type(text).__name__}")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class HistoryEntry:
    """A past roulette pick."""
    title: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(title=data["title"], timestamp=parse_timestamp(data["timestamp"]))


class LogStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class RequestLogEntry:
    """One external API call as shown in the request log."""
    timestamp: str
    action: str
    status: LogStatus
    details: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "action": self.action,
            "status": self.status.value,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RequestLogEntry":
        return cls(
            timestamp=data["timestamp"],
            action=data["action"],
            status=LogStatus(data["status"]),
            details=data.get("details", ""),
        )
