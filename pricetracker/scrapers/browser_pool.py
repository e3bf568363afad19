"""Shared Playwright browser session for scrape runs."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import async_playwright, Browser, Page, Playwright

from ..errors import BrowserLaunchError

logger = logging.getLogger(__name__)

DEFAULT_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]


class BrowserSessionManager:
    """
    Owns one Chromium process shared by all scrape runs.

    The browser is launched lazily on the first page request. Each run gets its
    own browser context and page, which are closed when the run releases them.
    Launching a browser takes seconds; a context takes ~50-100ms.
    """

    def __init__(self, *, headless: bool = True, launch_args: list[str] | None = None):
        self.headless = headless
        self.launch_args = list(DEFAULT_LAUNCH_ARGS if launch_args is None else launch_args)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._launch_error: BaseException | None = None
        self._launch_lock = asyncio.Lock()
        self._open_pages = 0

    @property
    def is_launched(self) -> bool:
        return self._browser is not None

    @property
    def open_pages(self) -> int:
        """Number of pages currently handed out."""
        return self._open_pages

    async def _ensure_browser(self) -> Browser:
        """Launch the browser once; later calls reuse it."""
        async with self._launch_lock:
            if self._launch_error is not None:
                raise BrowserLaunchError(
                    f"Browser unavailable until the session is re-initialized: {self._launch_error}"
                )
            if self._browser is not None:
                return self._browser

            try:
                if self._playwright is None:
                    self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.headless,
                    args=self.launch_args,
                )
            except Exception as exc:
                self._launch_error = exc
                logger.error(f"Browser launch failed: {exc}")
                await self._stop_playwright()
                raise BrowserLaunchError(f"Browser launch failed: {exc}") from exc

            logger.info("Browser launched")
            return self._browser

    @asynccontextmanager
    async def open_page(self, *, user_agent: str | None = None) -> AsyncIterator[Page]:
        """
        Open a fresh page for one run.

        The page lives in its own context (separate cookies, storage) but shares
        the browser process. It is closed on every exit path.
        """
        browser = await self._ensure_browser()
        context_kwargs: dict[str, object] = {}
        if user_agent:
            context_kwargs["user_agent"] = user_agent

        context = await browser.new_context(**context_kwargs)
        self._open_pages += 1
        try:
            page = await context.new_page()
            try:
                yield page
            finally:
                await page.close()
        finally:
            self._open_pages -= 1
            await context.close()

    async def _stop_playwright(self) -> None:
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:
                logger.warning(f"Failed to stop Playwright: {exc}")
            self._playwright = None

    async def close_all(self) -> None:
        """Close the browser and reset the session, clearing any launch failure."""
        async with self._launch_lock:
            if self._browser is not None:
                try:
                    await self._browser.close()
                except Exception as exc:
                    logger.warning(f"Failed to close browser: {exc}")
                self._browser = None
            await self._stop_playwright()
            self._launch_error = None
            logger.info("Browser session closed")
