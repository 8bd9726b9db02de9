"""Configuration management."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration."""

    # Storage
    STORE_BACKEND = os.getenv("ROULETTE_STORE", "json")
    STORE_PATH = os.path.expanduser(os.getenv("ROULETTE_STORE_PATH", "~/.book_roulette.json"))

    # Database (only used by the postgres backend)
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "booksdb")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")

    @property
    def DATABASE_URL(self):
        """Build PostgreSQL connection string."""
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # API
    GOOGLE_BOOKS_API_KEY = os.getenv("GOOGLE_BOOKS_API_KEY")

    # Search
    DEFAULT_TIMEOUT = int(os.getenv("DEFAULT_TIMEOUT", "10"))
    SEARCH_DEBOUNCE = float(os.getenv("SEARCH_DEBOUNCE", "0.5"))
    SEARCH_MAX_RESULTS = int(os.getenv("SEARCH_MAX_RESULTS", "5"))
    MIN_QUERY_LENGTH = int(os.getenv("MIN_QUERY_LENGTH", "3"))

    # Roulette
    RUN_TIMEOUT = float(os.getenv("RUN_TIMEOUT", "6.0"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
