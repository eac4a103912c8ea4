# refresh.py
"""
Periodic fetch-and-update cycles.

The orchestrator is either ``idle`` or ``polling``. While polling, a single
scheduler task fires a cycle immediately and then one every ``interval``
seconds. Each cycle runs as its own task, so ``stop()`` only cancels the
scheduler: a cycle whose fetch is already outstanding still completes and
still writes to the store. Manual ``refresh()`` calls are not serialized
against scheduled cycles; whichever finishes last wins.
"""

import asyncio
import dataclasses
from enum import Enum
from typing import Awaitable, Callable, Optional, Set

from errors import DashboardError
from history import HistoricalStore
from indicators import average_price, trend
from log import get_logger
from models import DashboardSnapshot, ItemSummary
from presenter import Presenter
from quote_source import QuoteBatch, QuoteSource
from registry import EntityRegistry

logger = get_logger("refresh")

REFRESH_INTERVAL = 30.0
FETCH_ERROR_MESSAGE = "Failed to fetch price data. Please try again later."


class RefreshState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"


class RefreshOrchestrator:
    def __init__(
        self,
        source: QuoteSource,
        registry: EntityRegistry,
        store: HistoricalStore,
        presenter: Presenter,
        interval: float = REFRESH_INTERVAL,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self._source = source
        self._registry = registry
        self._store = store
        self._presenter = presenter
        self.interval = interval
        self._sleep = sleep

        self.state = RefreshState.IDLE
        self._scheduler: Optional[asyncio.Task] = None
        self._cycles: Set[asyncio.Task] = set()
        self.in_flight = 0

    @property
    def is_polling(self) -> bool:
        return self.state is RefreshState.POLLING

    # --- state machine ---

    def start(self) -> None:
        """Begin polling: one cycle now, then one every ``interval`` seconds.

        Restarts the schedule if already polling. Must be called from within
        a running event loop.
        """
        if self.is_polling:
            self.stop()
        self._scheduler = asyncio.create_task(self._schedule())
        self.state = RefreshState.POLLING
        logger.info("Auto-refresh started (every %.0fs)", self.interval)

    def stop(self) -> None:
        """Cancel the periodic trigger. No-op when idle."""
        if not self.is_polling:
            return
        if self._scheduler is not None:
            self._scheduler.cancel()
            self._scheduler = None
        self.state = RefreshState.IDLE
        logger.info("Auto-refresh stopped")

    async def _schedule(self) -> None:
        while True:
            self.spawn_cycle()
            await self._sleep(self.interval)

    # --- cycles ---

    def spawn_cycle(self) -> asyncio.Task:
        """Run one cycle in the background and return its task."""
        task = asyncio.create_task(self.refresh())
        self._cycles.add(task)
        task.add_done_callback(self._cycle_done)
        return task

    def _cycle_done(self, task: asyncio.Task) -> None:
        self._cycles.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Refresh cycle crashed", exc_info=exc)

    async def drain(self) -> None:
        """Wait for every cycle currently in flight."""
        if self._cycles:
            await asyncio.gather(*list(self._cycles), return_exceptions=True)

    async def refresh(self) -> Optional[DashboardSnapshot]:
        """Fetch, record and render once.

        Returns the rendered snapshot, or ``None`` when the fetch failed (the
        error has then already been handed to the presenter).
        """
        self.in_flight += 1
        try:
            try:
                batch = await self._source.fetch_latest()
            except DashboardError as exc:
                logger.error("Error fetching price data: %s", exc)
                self._presenter.show_error(FETCH_ERROR_MESSAGE)
                return None

            await self._merge_metadata()

            self._record(batch)
            snapshot = self._build_snapshot(batch)
            self._presenter.render(snapshot)
            logger.debug("Cycle done: %d items at %d", len(snapshot.items), batch.timestamp)
            return snapshot
        finally:
            self.in_flight -= 1

    async def _merge_metadata(self) -> None:
        # Names are cosmetic; a failed mapping fetch must not block prices
        try:
            records = await self._source.fetch_metadata()
        except DashboardError as exc:
            logger.warning("Item metadata refresh skipped: %s", exc)
            return
        self._registry.merge_metadata(records)

    def _record(self, batch: QuoteBatch) -> None:
        for entity in self._registry:
            quote = batch.quotes.get(entity.id)
            if quote is None:
                continue
            self._store.record(entity.id, batch.timestamp, quote)

    def _build_snapshot(self, batch: QuoteBatch) -> DashboardSnapshot:
        items = []
        for entity in self._registry:
            quote = batch.quotes.get(entity.id)
            if quote is None:
                continue
            items.append(
                ItemSummary(
                    entity=dataclasses.replace(entity),
                    quote=quote,
                    average_price=average_price(quote),
                    trend=trend(quote),
                )
            )
        return DashboardSnapshot(
            timestamp=batch.timestamp,
            items=tuple(items),
            series=self._store.snapshot(),
        )
