# history.py
"""Bounded per-item price history.

Each item gets a ``deque`` capped at ``max_points``; appending to a full deque
drops the oldest observation in the same operation, so a series can never be
seen above its cap.
"""

from collections import deque
from typing import Deque, Dict, Tuple

from indicators import average_price
from models import Observation, Quote

# 24h of history at one observation per 30s
MAX_POINTS = 2880


class HistoricalStore:
    def __init__(self, max_points: int = MAX_POINTS):
        if max_points <= 0:
            raise ValueError("max_points must be > 0")
        self.max_points = max_points
        self._series: Dict[int, Deque[Observation]] = {}

    def record(self, entity_id: int, timestamp: int, quote: Quote) -> Observation:
        """Append an observation derived from ``quote`` to the item's series.

        The series is created on first use. A quote with no prices or volumes
        is still stored (as an all-zero observation). A timestamp older than
        the last stored one is clamped to it so the series stays ordered.
        """
        series = self._series.get(entity_id)
        if series is None:
            series = self._series[entity_id] = deque(maxlen=self.max_points)
        elif timestamp < series[-1].timestamp:
            timestamp = series[-1].timestamp

        observation = Observation(
            timestamp=timestamp,
            average_price=average_price(quote),
            high_price=quote.high_price,
            low_price=quote.low_price,
            high_volume=quote.high_volume,
            low_volume=quote.low_volume,
        )
        series.append(observation)
        return observation

    def series_for(self, entity_id: int) -> Tuple[Observation, ...]:
        """Observations for the item, oldest first; empty if none recorded."""
        series = self._series.get(entity_id)
        return tuple(series) if series else ()

    def snapshot(self) -> Dict[int, Tuple[Observation, ...]]:
        return {entity_id: tuple(series) for entity_id, series in self._series.items()}

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._series

    def __len__(self) -> int:
        return len(self._series)
