"""Orchestrates scrape runs: admission, dispatch, persistence and run records."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, UTC
from time import perf_counter
from typing import Any, AsyncIterator

import httpx

from .config import Settings
from .db import PriceDatabase
from .errors import RetailerNotFound, StrategyNotImplemented
from .gate import ConcurrencyGate
from .models import RUN_COMPLETED, RUN_FAILED, ItemOutcome, RawItem, Retailer, ScrapeRun
from .resolver import ProductResolver
from .scrapers import BaseStrategy, resolve_strategy
from .scrapers.browser_pool import BrowserSessionManager

logger = logging.getLogger(__name__)


class ScrapeRunner:
    """Runs scrapes for retailers under a shared concurrency limit and browser."""

    def __init__(
        self,
        db: PriceDatabase,
        settings: Settings | None = None,
        *,
        gate: ConcurrencyGate | None = None,
        browser: BrowserSessionManager | None = None,
        resolver: ProductResolver | None = None,
        strategies: dict[str, type[BaseStrategy]] | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the runner.

        Args:
            db: Store for retailers, catalog and run records
            settings: Engine settings (defaults when omitted)
            gate: Concurrency gate; one is built from settings when omitted
            browser: Shared browser session; created lazily on first page
            resolver: Product resolver; one is built over db when omitted
            strategies: Strategy table overriding the discovered registry
            http_transport: Transport for HTTP strategies
        """
        self.db = db
        self.settings = settings or Settings()
        self.gate = gate or ConcurrencyGate(self.settings.max_concurrent)
        self.browser = browser or BrowserSessionManager(headless=self.settings.browser_headless)
        self.resolver = resolver or ProductResolver(db, default_unit=self.settings.default_unit)
        self.strategies = strategies
        self.http_transport = http_transport

    async def scrape(self, retailer_id: int) -> ScrapeRun:
        """
        Scrape one retailer and return the finished run record.

        Raises RetailerNotFound when the retailer is missing or inactive; every
        other failure is recorded on the run.
        """
        async with self.gate.slot(retailer_id):
            return await self._run(retailer_id)

    async def scrape_all(self) -> list[ScrapeRun]:
        """Scrape every active retailer concurrently through the gate."""
        retailers = await asyncio.to_thread(self.db.get_active_retailers)
        results = await asyncio.gather(
            *(self.scrape(retailer.id) for retailer in retailers),
            return_exceptions=True,
        )

        runs: list[ScrapeRun] = []
        for retailer, result in zip(retailers, results):
            if isinstance(result, RetailerNotFound):
                logger.warning(f"Skipped {retailer.name}: {result}")
            elif isinstance(result, BaseException):
                raise result
            else:
                runs.append(result)
        return runs

    async def _run(self, retailer_id: int) -> ScrapeRun:
        retailer = await asyncio.to_thread(self.db.get_active_retailer, retailer_id)
        if retailer is None:
            raise RetailerNotFound(retailer_id)

        start_time = perf_counter()
        run = await asyncio.to_thread(
            self.db.create_scrape_run, retailer.id, datetime.now(UTC).isoformat()
        )
        logger.info(f"Run {run.id} started for {retailer.name}")

        try:
            outcomes = await self._execute(retailer)
        except asyncio.CancelledError:
            await asyncio.shield(self._finalize(run, RUN_FAILED, start_time, error_message="Run cancelled"))
            raise
        except Exception as e:
            error_msg = str(e) or type(e).__name__
            logger.error(f"Run {run.id} for {retailer.name} failed: {error_msg}")
            return await self._finalize(run, RUN_FAILED, start_time, error_message=error_msg)

        saved = sum(1 for outcome in outcomes if outcome.ok)
        errors = len(outcomes) - saved
        finished = await self._finalize(
            run, RUN_COMPLETED, start_time, products_scraped=saved, errors_count=errors
        )
        logger.info(
            f"Run {run.id} completed for {retailer.name}: {saved} products, "
            f"{errors} errors in {finished.duration_seconds:.2f}s"
        )
        return finished

    async def _execute(self, retailer: Retailer) -> list[ItemOutcome]:
        strategy = resolve_strategy(retailer.name, self.settings, self.strategies)
        logger.info(f"Dispatching {retailer.name} to the {strategy.name} strategy")

        async with self._open_handle(strategy) as handle:
            result = await strategy.extract(handle, retailer)
            if not result.implemented:
                raise StrategyNotImplemented(
                    f"{strategy.display_name} strategy is not implemented; no prices were extracted"
                )
            return [await self._persist_item(item, retailer.id) for item in result.items]

    @asynccontextmanager
    async def _open_handle(self, strategy: BaseStrategy) -> AsyncIterator[Any]:
        """Yield a page for browser strategies or an HTTP client otherwise."""
        if strategy.uses_browser:
            async with self.browser.open_page(user_agent=strategy.user_agent) as page:
                yield page
        else:
            async with httpx.AsyncClient(follow_redirects=True, transport=self.http_transport) as client:
                yield client

    async def _persist_item(self, item: RawItem, retailer_id: int) -> ItemOutcome:
        try:
            price_id = await self.resolver.upsert(item, retailer_id)
        except Exception as e:
            logger.warning(f"Failed to save product {item.name!r} for retailer {retailer_id}: {e}")
            return ItemOutcome(item=item, error=e)
        return ItemOutcome(item=item, price_id=price_id)

    async def _finalize(
        self,
        run: ScrapeRun,
        status: str,
        start_time: float,
        products_scraped: int = 0,
        errors_count: int = 0,
        error_message: str | None = None,
    ) -> ScrapeRun:
        """
        Record the run outcome without raising.

        If the write fails, one more attempt marks the run failed with the
        storage error. If that fails too, the run row stays `started` and an
        in-memory failed record is returned.
        """
        try:
            return await asyncio.to_thread(
                self._finish,
                run,
                status,
                start_time,
                products_scraped=products_scraped,
                errors_count=errors_count,
                error_message=error_message,
            )
        except Exception as e:
            logger.error(f"Run {run.id}: could not record {status} outcome: {e}")
            fallback_msg = f"Could not record run outcome: {e}"

        try:
            return await asyncio.to_thread(
                self._finish,
                run,
                RUN_FAILED,
                start_time,
                products_scraped=products_scraped,
                errors_count=errors_count,
                error_message=fallback_msg,
            )
        except Exception as e:
            logger.error(f"Run {run.id} is still marked started; recording the failure also failed: {e}")

        return replace(
            run,
            status=RUN_FAILED,
            completed_at=datetime.now(UTC).isoformat(),
            products_scraped=products_scraped,
            errors_count=errors_count,
            error_message=fallback_msg,
            duration_seconds=perf_counter() - start_time,
        )

    def _finish(
        self,
        run: ScrapeRun,
        status: str,
        start_time: float,
        products_scraped: int = 0,
        errors_count: int = 0,
        error_message: str | None = None,
    ) -> ScrapeRun:
        return self.db.finish_scrape_run(
            run.id,
            status=status,
            completed_at=datetime.now(UTC).isoformat(),
            products_scraped=products_scraped,
            errors_count=errors_count,
            error_message=error_message,
            duration_seconds=perf_counter() - start_time,
        )

    def get_status(self) -> dict:
        """Get current runner status."""
        return {
            "max_concurrent": self.gate.max_concurrent,
            "running": self.gate.in_flight,
            "queued": self.gate.queued,
            "browser_launched": self.browser.is_launched,
            "open_pages": self.browser.open_pages,
        }

    async def close(self) -> None:
        """Shut down the shared browser session."""
        await self.browser.close_all()
