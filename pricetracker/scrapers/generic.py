"""Fallback strategy for retailers without a dedicated strategy."""

from __future__ import annotations

import logging

import httpx

from ..errors import NavigationTimeout, StrategyError
from ..models import Retailer, StrategyResult
from .base import DESKTOP_USER_AGENT, BaseStrategy, ProductSelectors, extract_items

logger = logging.getLogger(__name__)


class GenericStrategy(BaseStrategy):
    """Fetch the retailer's website over HTTP and apply best-effort selectors."""

    name = "generic"
    display_name = "Generic"
    uses_browser = False
    user_agent = DESKTOP_USER_AGENT
    selectors = ProductSelectors(
        container='.product-item, .product-card, [data-testid*="product"]',
        name=".product-name, .product-title, h3, h4",
        price='.price, .product-price, [class*="price"]',
    )

    async def extract(self, handle: httpx.AsyncClient, retailer: Retailer) -> StrategyResult:
        client = handle
        url = (retailer.website or "").strip()
        if not url:
            raise StrategyError(f"Retailer {retailer.name!r} has no website to scrape")

        logger.info(f"[{self.name}] Loading {url} for {retailer.name}...")
        try:
            resp = await client.get(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=httpx.Timeout(self.settings.http_timeout_seconds),
            )
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            raise NavigationTimeout(f"Timed out fetching {url}") from exc
        except httpx.HTTPStatusError as exc:
            raise StrategyError(f"Fetching {url} returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise StrategyError(f"Fetching {url} failed: {exc}") from exc

        items = extract_items(resp.text, self.selectors, retailer.name, base_url=str(resp.url))
        logger.info(f"[{self.name}] Extracted {len(items)} products for {retailer.name}")
        return self._result(url, items)
