"""FIFO concurrency gate for scrape runs."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator

logger = logging.getLogger(__name__)


class ConcurrencyGate:
    """
    Bounds how many scrape runs execute at once.

    Callers beyond the limit wait in FIFO order. A released slot is handed
    directly to the oldest waiter, so late arrivals cannot overtake the queue.
    Runs on a single event loop and needs no lock.
    """

    def __init__(self, max_concurrent: int = 5):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self._in_flight = 0
        self._waiters: deque[tuple[int, asyncio.Future[None]]] = deque()

    @property
    def in_flight(self) -> int:
        """Number of admitted runs that have not released their slot."""
        return self._in_flight

    @property
    def queued(self) -> int:
        """Number of callers waiting for a slot."""
        return sum(1 for _, fut in self._waiters if not fut.done())

    async def admit(self, retailer_id: int) -> None:
        """Wait until a slot is available and take it."""
        if self._in_flight < self.max_concurrent and not self._waiters:
            self._in_flight += 1
            return

        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append((retailer_id, fut))
        logger.info(
            f"Retailer {retailer_id} queued for scraping "
            f"({self._in_flight} running, {len(self._waiters)} waiting)"
        )
        try:
            await fut
        except asyncio.CancelledError:
            if fut.done() and not fut.cancelled():
                # The slot was handed over just before cancellation; pass it on.
                self.release()
            else:
                try:
                    self._waiters.remove((retailer_id, fut))
                except ValueError:
                    pass
                logger.info(f"Dropped queued scrape for retailer {retailer_id}")
            raise

    def release(self) -> None:
        """Give the slot to the oldest waiter, or free it."""
        if self._in_flight <= 0:
            raise RuntimeError("release() called without an admitted run")

        while self._waiters:
            _, fut = self._waiters.popleft()
            if not fut.done():
                # Slot ownership moves to the waiter; in_flight is unchanged.
                fut.set_result(None)
                return

        self._in_flight -= 1

    @asynccontextmanager
    async def slot(self, retailer_id: int) -> AsyncIterator[None]:
        """Hold a slot for the duration of the block."""
        await self.admit(retailer_id)
        try:
            yield
        finally:
            self.release()
