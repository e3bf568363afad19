"""Runtime configuration loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DB_PATH = Path(__file__).parent.parent / "output" / "prices.db"


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Settings for the scraping engine."""

    db_path: Path = DEFAULT_DB_PATH
    max_concurrent: int = 5
    navigation_timeout_ms: int = 30000
    selector_timeout_ms: int = 10000
    http_timeout_seconds: float = 10.0
    browser_headless: bool = True
    default_unit: str = "each"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        db_path = os.getenv("PRICETRACKER_DB_PATH")
        return cls(
            db_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
            # MAX_CONCURRENT_SCRAPES is shared with the API service
            max_concurrent=max(1, _env_int("MAX_CONCURRENT_SCRAPES", 5)),
            navigation_timeout_ms=_env_int("SCRAPE_NAVIGATION_TIMEOUT_MS", 30000),
            selector_timeout_ms=_env_int("SCRAPE_SELECTOR_TIMEOUT_MS", 10000),
            http_timeout_seconds=float(_env_int("SCRAPE_HTTP_TIMEOUT_SECONDS", 10)),
            browser_headless=_env_bool("BROWSER_HEADLESS", True),
            default_unit=os.getenv("DEFAULT_PRODUCT_UNIT") or "each",
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )
