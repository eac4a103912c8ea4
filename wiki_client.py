# wiki_client.py
"""
Async client for the OSRS Wiki real-time prices API.

Only the two endpoints the dashboard needs are covered:

- ``GET /latest``  -> ``{"data": {"<id>": {"high": .., "low": .., ...}}}``
- ``GET /mapping`` -> ``[{"id": .., "name": .., "examine": .., ...}, ...]``

Payloads are validated with pydantic; anything that does not fit is reported
as :class:`errors.MalformedResponse`.
"""

import time
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field, NonNegativeInt, TypeAdapter, ValidationError

from errors import FetchFailed, MalformedResponse
from log import get_logger
from models import Quote
from quote_source import ItemMetadata, QuoteBatch, QuoteSource
from settings import Settings

logger = get_logger("wiki_client")


class _LatestEntry(BaseModel):
    high: Optional[NonNegativeInt] = None
    low: Optional[NonNegativeInt] = None
    high_volume: Optional[NonNegativeInt] = Field(default=None, alias="highPriceVolume")
    low_volume: Optional[NonNegativeInt] = Field(default=None, alias="lowPriceVolume")


class _LatestPayload(BaseModel):
    data: Dict[int, _LatestEntry]
    timestamp: Optional[int] = None  # epoch seconds


class _MappingEntry(BaseModel):
    id: int
    name: str
    examine: Optional[str] = None
    members: bool = False
    limit: Optional[int] = None


_mapping_adapter = TypeAdapter(List[_MappingEntry])


class WikiPriceClient(QuoteSource):
    def __init__(
        self,
        base_url: str,
        user_agent: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._base_url = base_url
        self._user_agent = user_agent
        self._timeout = timeout
        self._transport = transport
        self._clock = clock
        # Opened on first request so building the app does not hold a connection pool
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "WikiPriceClient":
        return cls(
            base_url=settings.api_base_url,
            user_agent=settings.user_agent,
            timeout=settings.request_timeout,
            **kwargs,
        )

    async def fetch_latest(self) -> QuoteBatch:
        body = await self._get_json("/latest")
        try:
            payload = _LatestPayload.model_validate(body)
        except ValidationError as exc:
            raise MalformedResponse(f"Unexpected /latest payload: {exc.error_count()} error(s)") from exc

        if payload.timestamp is not None:
            timestamp = payload.timestamp * 1000
        else:
            timestamp = int(self._clock() * 1000)

        quotes = {
            item_id: Quote(
                high_price=entry.high,
                low_price=entry.low,
                high_volume=entry.high_volume or 0,
                low_volume=entry.low_volume or 0,
            )
            for item_id, entry in payload.data.items()
        }
        logger.debug("Fetched %d quotes (timestamp=%d)", len(quotes), timestamp)
        return QuoteBatch(timestamp=timestamp, quotes=quotes)

    async def fetch_metadata(self) -> List[ItemMetadata]:
        body = await self._get_json("/mapping")
        try:
            entries = _mapping_adapter.validate_python(body)
        except ValidationError as exc:
            raise MalformedResponse(f"Unexpected /mapping payload: {exc.error_count()} error(s)") from exc
        return [
            ItemMetadata(
                id=entry.id,
                name=entry.name,
                examine=entry.examine,
                members=entry.members,
                limit=entry.limit,
            )
            for entry in entries
        ]

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"User-Agent": self._user_agent},
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, path: str) -> Any:
        try:
            response = await self._http().get(path)
        except httpx.HTTPError as exc:
            raise FetchFailed(f"Request to {path} failed: {exc}") from exc

        if not response.is_success:
            raise FetchFailed(
                f"API request failed: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponse(f"Response from {path} is not valid JSON") from exc
