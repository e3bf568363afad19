"""Data models for the scraping engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

RUN_STARTED = "started"
RUN_COMPLETED = "completed"
RUN_FAILED = "failed"


@dataclass
class Retailer:
    """A retailer as stored in the catalog."""

    id: int
    name: str
    website: str | None
    logo_url: str | None = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: dict) -> Retailer:
        return cls(
            id=row["id"],
            name=row["name"],
            website=row["website"],
            logo_url=row["logo_url"],
            is_active=bool(row["is_active"]),
        )


@dataclass
class RawItem:
    """An unnormalized price observation produced by a strategy."""

    name: str
    price: float
    image_url: str | None
    retailer: str


@dataclass
class StrategyResult:
    """Result of running one extraction strategy."""

    strategy: str
    source_url: str
    scraped_at: datetime
    items: list[RawItem] = field(default_factory=list)
    # False when the strategy navigated but has no extraction yet.
    implemented: bool = True


@dataclass
class ItemOutcome:
    """Persistence outcome for a single raw item."""

    item: RawItem
    price_id: int | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ScrapeRun:
    """One execution of the pipeline against a single retailer."""

    id: int
    retailer_id: int
    status: str
    started_at: str
    completed_at: str | None = None
    products_scraped: int = 0
    errors_count: int = 0
    error_message: str | None = None
    duration_seconds: float | None = None

    @classmethod
    def from_row(cls, row: dict) -> ScrapeRun:
        return cls(
            id=row["id"],
            retailer_id=row["retailer_id"],
            status=row["status"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
            products_scraped=row["products_scraped"] or 0,
            errors_count=row["errors_count"] or 0,
            error_message=row["error_message"],
            duration_seconds=row["duration_seconds"],
        )
