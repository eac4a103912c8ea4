# quote_source.py
"""
Port for anything that can supply latest quotes and item metadata.

Implementations: ``wiki_client.WikiPriceClient`` (live API) and
``quote_stub.SimulatedQuoteSource`` (offline random walk).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from models import Quote


@dataclass(frozen=True)
class QuoteBatch:
    timestamp: int  # epoch milliseconds
    quotes: Dict[int, Quote] = field(default_factory=dict)


@dataclass(frozen=True)
class ItemMetadata:
    id: int
    name: str
    examine: Optional[str] = None
    members: bool = False
    limit: Optional[int] = None


class QuoteSource(ABC):
    @abstractmethod
    async def fetch_latest(self) -> QuoteBatch:
        """Latest quotes for every item the source knows about.

        Raises:
            FetchFailed: transport error or non-success status.
            MalformedResponse: the payload could not be understood.
        """
        ...

    @abstractmethod
    async def fetch_metadata(self) -> List[ItemMetadata]:
        """Item names and attributes; same error contract as fetch_latest."""
        ...

    async def aclose(self) -> None:
        """Release any held connections."""
        return None
