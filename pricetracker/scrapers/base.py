"""Base strategy classes shared by all retailers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config import Settings
from ..errors import ElementWaitTimeout, NavigationTimeout, StrategyError
from ..models import RawItem, Retailer, StrategyResult
from ..utils import clean_text, parse_price

logger = logging.getLogger(__name__)

DESKTOP_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


@dataclass(frozen=True)
class ProductSelectors:
    """CSS selectors locating product fields inside rendered markup."""

    container: str
    name: str
    price: str
    image: str = "img"


def extract_items(
    html: str,
    selectors: ProductSelectors,
    retailer_label: str,
    base_url: str | None = None,
) -> list[RawItem]:
    """Extract raw items from markup.

    Containers with an empty name or an unparseable price are skipped.
    """
    soup = BeautifulSoup(html, "lxml")
    items: list[RawItem] = []
    skipped = 0

    for container in soup.select(selectors.container):
        name_el = container.select_one(selectors.name)
        price_el = container.select_one(selectors.price)
        name = clean_text(name_el.get_text(" ")) if name_el else ""
        price = parse_price(price_el.get_text(" ")) if price_el else None
        if not name or price is None:
            skipped += 1
            continue

        image_url = None
        if img := container.select_one(selectors.image):
            src = img.get("src") or img.get("data-src")
            if isinstance(src, str) and src.strip():
                image_url = urljoin(base_url, src.strip()) if base_url else src.strip()

        items.append(RawItem(name=name, price=price, image_url=image_url, retailer=retailer_label))

    if skipped:
        logger.debug(f"[{retailer_label}] Skipped {skipped} containers without name or price")
    return items


class BaseStrategy(ABC):
    """Abstract base class for all extraction strategies."""

    name: str
    display_name: str
    uses_browser: bool = True
    user_agent: str | None = None

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()

    @abstractmethod
    async def extract(self, handle: Any, retailer: Retailer) -> StrategyResult:
        """Extract raw items using a page (browser strategies) or an HTTP client."""
        ...

    def _result(self, source_url: str, items: list[RawItem], implemented: bool = True) -> StrategyResult:
        return StrategyResult(
            strategy=self.name,
            source_url=source_url,
            scraped_at=datetime.now(UTC),
            items=items,
            implemented=implemented,
        )


class BrowserStrategy(BaseStrategy):
    """Strategy that renders a fixed category page and parses product cards."""

    url: str
    content_marker: str
    selectors: ProductSelectors
    wait_until: str = "networkidle"

    async def prepare(self, page: Page) -> None:
        """Hook run before navigation."""

    async def navigate(self, page: Page) -> None:
        """Load the category page and wait for the content marker."""
        logger.info(f"[{self.name}] Loading {self.url}...")
        try:
            await page.goto(self.url, wait_until=self.wait_until, timeout=self.settings.navigation_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(f"Timed out loading {self.url}") from exc
        except PlaywrightError as exc:
            raise StrategyError(f"Navigation to {self.url} failed: {exc}") from exc

        try:
            await page.wait_for_selector(self.content_marker, timeout=self.settings.selector_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise ElementWaitTimeout(f"Content marker {self.content_marker!r} did not appear") from exc
        except PlaywrightError as exc:
            raise StrategyError(f"Waiting for {self.content_marker!r} failed: {exc}") from exc

    async def extract(self, handle: Page, retailer: Retailer) -> StrategyResult:
        page = handle
        await self.prepare(page)
        await self.navigate(page)

        try:
            html = await page.content()
        except PlaywrightError as exc:
            raise StrategyError(f"Could not read rendered page: {exc}") from exc

        items = extract_items(html, self.selectors, self.display_name, base_url=self.url)
        logger.info(f"[{self.name}] Extracted {len(items)} products")
        return self._result(self.url, items)
