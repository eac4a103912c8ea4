# models.py
from pydantic import BaseModel
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

TrendDirection = Literal["up", "down", "stable"]


# A tracked item; name/metadata fields get refreshed from the mapping endpoint
@dataclass
class TrackedEntity:
    id: int
    display_name: str
    examine: Optional[str] = None
    is_members_only: bool = False
    buy_limit: Optional[int] = None


@dataclass(frozen=True)
class Quote:
    """One point-in-time price/volume snapshot for an item.

    ``None`` for a price means no trade was observed on that side.
    """

    high_price: Optional[int] = None
    low_price: Optional[int] = None
    high_volume: int = 0
    low_volume: int = 0

    def __post_init__(self):
        for name in ("high_price", "low_price", "high_volume", "low_volume"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

    @property
    def total_volume(self) -> int:
        return self.high_volume + self.low_volume


@dataclass(frozen=True)
class Observation:
    timestamp: int  # epoch milliseconds
    average_price: int
    high_price: Optional[int]
    low_price: Optional[int]
    high_volume: int
    low_volume: int


@dataclass(frozen=True)
class TrendSignal:
    direction: TrendDirection
    percent: float  # absolute spread, 2 decimals


@dataclass(frozen=True)
class ItemSummary:
    entity: TrackedEntity
    quote: Quote
    average_price: int
    trend: TrendSignal


# Everything the presentation side needs after one refresh cycle
@dataclass(frozen=True)
class DashboardSnapshot:
    timestamp: int
    items: Tuple[ItemSummary, ...] = ()
    series: Dict[int, Tuple[Observation, ...]] = field(default_factory=dict)

    def item(self, entity_id: int) -> Optional[ItemSummary]:
        for summary in self.items:
            if summary.entity.id == entity_id:
                return summary
        return None


# --- API response models ---

class ItemCard(BaseModel):
    id: int
    name: str
    examine: Optional[str] = None
    members: bool = False
    buy_limit: Optional[int] = None
    high_price: int
    low_price: int
    average_price: int
    high_volume: int
    low_volume: int
    total_volume: int
    trend: TrendDirection
    trend_percent: float
    high_price_display: str
    low_price_display: str
    average_price_display: str
    total_volume_display: str


class ObservationPoint(BaseModel):
    timestamp: int
    average_price: int
    high_price: Optional[int] = None
    low_price: Optional[int] = None
    high_volume: int
    low_volume: int


class HistoryResponse(BaseModel):
    id: int
    name: str
    max_points: int
    points: List[ObservationPoint]


class PriceComparisonChart(BaseModel):
    labels: List[str]
    high_prices: List[int]
    low_prices: List[int]


class VolumeChart(BaseModel):
    labels: List[str]
    volumes: List[int]


class ChartsResponse(BaseModel):
    price_comparison: PriceComparisonChart
    volume_distribution: VolumeChart


class StatusResponse(BaseModel):
    auto_refresh: bool
    updating: bool
    refresh_interval: float
    last_update: Optional[int] = None
    error: Optional[str] = None


class AutoRefreshRequest(BaseModel):
    enabled: bool
