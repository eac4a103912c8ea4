# quote_stub.py
# Offline quote source: a seeded random walk over the tracked items.
# Usage example:
#   import asyncio
#   from quote_stub import SimulatedQuoteSource
#   async def main():
#       source = SimulatedQuoteSource({536: "Dragon bones"}, seed=1)
#       print(await source.fetch_latest())
#   asyncio.run(main())

import asyncio
import random
import time
from typing import Callable, Dict, List, Mapping, Optional

from errors import FetchFailed
from models import Quote
from quote_source import ItemMetadata, QuoteBatch, QuoteSource


class SimulatedQuoteSource(QuoteSource):
    """Produce plausible high/low quotes without touching the network.

    Each item's mid price follows a noisy random walk; the high/low sides sit
    a small random spread around it. ``fail_next(n)`` makes the next ``n``
    latest-price fetches raise :class:`errors.FetchFailed`.
    """

    def __init__(
        self,
        tracked_items: Mapping[int, str],
        seed: Optional[int] = None,
        base_price: float = 1000.0,
        jitter: float = 0.01,
        latency: float = 0.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._names = dict(tracked_items)
        self._rng = random.Random(seed)
        self._jitter = jitter
        self._latency = latency
        self._clock = clock
        self._mid: Dict[int, float] = {item_id: float(base_price) for item_id in self._names}
        self._failures_pending = 0
        self.fetch_count = 0

    def fail_next(self, count: int = 1) -> None:
        self._failures_pending += count

    async def fetch_latest(self) -> QuoteBatch:
        self.fetch_count += 1
        if self._latency:
            await asyncio.sleep(self._latency)
        if self._failures_pending:
            self._failures_pending -= 1
            raise FetchFailed("Simulated fetch failure", status_code=503)

        quotes: Dict[int, Quote] = {}
        for item_id in self._names:
            shock = self._rng.gauss(0.0, self._jitter)
            mid = max(1.0, self._mid[item_id] * (1.0 + shock))
            self._mid[item_id] = mid
            spread = self._rng.uniform(0.0, 0.05)
            quotes[item_id] = Quote(
                high_price=max(1, round(mid * (1.0 + spread / 2))),
                low_price=max(1, round(mid * (1.0 - spread / 2))),
                high_volume=self._rng.randint(0, 5000),
                low_volume=self._rng.randint(0, 5000),
            )
        return QuoteBatch(timestamp=int(self._clock() * 1000), quotes=quotes)

    async def fetch_metadata(self) -> List[ItemMetadata]:
        return [
            ItemMetadata(id=item_id, name=name, examine=f"A simulated {name.lower()}.")
            for item_id, name in self._names.items()
        ]
