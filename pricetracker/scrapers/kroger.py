"""Strategy for Kroger (navigation only; extraction not built yet)."""

from __future__ import annotations

import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright_stealth import Stealth

from ..errors import NavigationTimeout, StrategyError
from ..models import Retailer, StrategyResult
from .base import DESKTOP_USER_AGENT, BaseStrategy

logger = logging.getLogger(__name__)


class KrogerStrategy(BaseStrategy):
    """
    Kroger sits behind aggressive bot detection. The strategy loads the shop
    page with stealth patches applied but has no product extraction, so it
    reports itself as not implemented instead of an empty catalog.
    """

    name = "kroger"
    display_name = "Kroger"
    url = "https://www.kroger.com/shop"
    user_agent = DESKTOP_USER_AGENT
    settle_ms = 2000

    async def extract(self, handle: Page, retailer: Retailer) -> StrategyResult:
        page = handle
        await Stealth().apply_stealth_async(page)

        logger.info(f"[{self.name}] Loading {self.url}...")
        try:
            await page.goto(self.url, wait_until="networkidle", timeout=self.settings.navigation_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(f"Timed out loading {self.url}") from exc
        except PlaywrightError as exc:
            raise StrategyError(f"Navigation to {self.url} failed: {exc}") from exc

        await page.wait_for_timeout(self.settle_ms)

        # TODO: map Kroger's product grid once a stable content marker is known.
        logger.warning(f"[{self.name}] Product extraction is not implemented")
        return self._result(self.url, [], implemented=False)
