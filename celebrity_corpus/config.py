import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class Settings:
    duplicate_threshold: float = 0.7
    primary_content_threshold: int = 10
    relevance_floor: float = 0.8
    google_books_api_key: Optional[str] = None
    request_timeout: int = 10
    news_language: str = "en"
    log_level: str = "INFO"


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name) or default
    try:
        return cast(raw)
    except ValueError:
        raise RuntimeError(f"Invalid {name} in environment or .env: {raw!r}")


def get_settings() -> Settings:
    duplicate_threshold = _env_number("DUPLICATE_THRESHOLD", "0.7", float)
    if not 0.0 <= duplicate_threshold <= 1.0:
        raise RuntimeError("DUPLICATE_THRESHOLD must be between 0 and 1")

    return Settings(
        duplicate_threshold=duplicate_threshold,
        primary_content_threshold=_env_number("PRIMARY_CONTENT_THRESHOLD", "10", int),
        relevance_floor=_env_number("LOW_PRIORITY_RELEVANCE_FLOOR", "0.8", float),
        google_books_api_key=os.getenv("GOOGLE_BOOKS_API_KEY") or None,
        request_timeout=_env_number("REQUEST_TIMEOUT", "10", int),
        news_language=os.getenv("NEWS_LANGUAGE", "en"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
