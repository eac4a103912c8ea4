# main.py
import asyncio
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, WebSocket, HTTPException, status
from starlette.websockets import WebSocketDisconnect

from formatting import format_gp, format_number
from history import HistoricalStore
from log import get_logger, setup_logging
from models import (
    AutoRefreshRequest,
    ChartsResponse,
    HistoryResponse,
    ItemCard,
    ItemSummary,
    ObservationPoint,
    PriceComparisonChart,
    StatusResponse,
    VolumeChart,
)
from presenter import DashboardState
from quote_source import QuoteSource
from quote_stub import SimulatedQuoteSource
from refresh import FETCH_ERROR_MESSAGE, RefreshOrchestrator
from registry import EntityRegistry
from settings import Settings
from wiki_client import WikiPriceClient

logger = get_logger("main")

# How often a WebSocket connection checks for a new snapshot
WS_POLL_SECONDS = 0.1


def build_card(summary: ItemSummary) -> ItemCard:
    entity, quote = summary.entity, summary.quote
    high = quote.high_price or 0
    low = quote.low_price or 0
    return ItemCard(
        id=entity.id,
        name=entity.display_name,
        examine=entity.examine,
        members=entity.is_members_only,
        buy_limit=entity.buy_limit,
        high_price=high,
        low_price=low,
        average_price=summary.average_price,
        high_volume=quote.high_volume,
        low_volume=quote.low_volume,
        total_volume=quote.total_volume,
        trend=summary.trend.direction,
        trend_percent=summary.trend.percent,
        high_price_display=format_gp(high),
        low_price_display=format_gp(low),
        average_price_display=format_gp(summary.average_price),
        total_volume_display=format_number(quote.total_volume),
    )


def build_source(settings: Settings) -> QuoteSource:
    if settings.quote_source == "simulated":
        return SimulatedQuoteSource(settings.tracked_items, seed=settings.simulated_seed)
    return WikiPriceClient.from_settings(settings)


def create_app(settings: Optional[Settings] = None, source: Optional[QuoteSource] = None) -> FastAPI:
    """Wire store, registry, quote source and orchestrator into a FastAPI app.

    Everything stateful lives on ``app.state``; nothing is module-global.
    """
    settings = settings or Settings()
    setup_logging(settings.log_level.upper())

    registry = EntityRegistry(settings.tracked_items)
    store = HistoricalStore(max_points=settings.max_points)
    dashboard = DashboardState()
    source = source or build_source(settings)
    orchestrator = RefreshOrchestrator(
        source=source,
        registry=registry,
        store=store,
        presenter=dashboard,
        interval=settings.refresh_interval,
    )

    app = FastAPI(title="GE Price Dashboard")
    app.state.settings = settings
    app.state.registry = registry
    app.state.store = store
    app.state.dashboard = dashboard
    app.state.source = source
    app.state.orchestrator = orchestrator

    # --- lifecycle ---

    @app.on_event("startup")
    async def startup_event():
        if settings.auto_refresh:
            orchestrator.start()
        else:
            # Page-load fetch even when auto-refresh is off
            orchestrator.spawn_cycle()

    @app.on_event("shutdown")
    async def shutdown_event():
        orchestrator.stop()
        await orchestrator.drain()
        await source.aclose()

    def current_status() -> StatusResponse:
        return StatusResponse(
            auto_refresh=orchestrator.is_polling,
            updating=orchestrator.in_flight > 0,
            refresh_interval=orchestrator.interval,
            last_update=dashboard.last_update,
            error=dashboard.error,
        )

    def current_cards() -> List[ItemCard]:
        if dashboard.snapshot is None:
            return []
        return [build_card(summary) for summary in dashboard.snapshot.items]

    # --- 1) item cards ---

    @app.get("/items", response_model=List[ItemCard], tags=["Items"])
    async def list_items():
        return current_cards()

    @app.get("/items/{item_id}", response_model=ItemCard, tags=["Items"])
    async def get_item(item_id: int):
        if item_id not in registry:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Item {item_id} not tracked.")
        summary = dashboard.snapshot.item(item_id) if dashboard.snapshot else None
        if summary is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No quote for item {item_id} yet.")
        return build_card(summary)

    @app.get("/items/{item_id}/history", response_model=HistoryResponse, tags=["Items"])
    async def get_history(item_id: int):
        entity = registry.get(item_id)
        if entity is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Item {item_id} not tracked.")
        points = [
            ObservationPoint(
                timestamp=obs.timestamp,
                average_price=obs.average_price,
                high_price=obs.high_price,
                low_price=obs.low_price,
                high_volume=obs.high_volume,
                low_volume=obs.low_volume,
            )
            for obs in store.series_for(item_id)
        ]
        return HistoryResponse(id=item_id, name=entity.display_name, max_points=store.max_points, points=points)

    # --- 2) chart datasets ---

    @app.get("/charts", response_model=ChartsResponse, tags=["Charts"])
    async def get_charts():
        items = dashboard.snapshot.items if dashboard.snapshot else ()
        labels = [summary.entity.display_name for summary in items]
        return ChartsResponse(
            price_comparison=PriceComparisonChart(
                labels=labels,
                high_prices=[summary.quote.high_price or 0 for summary in items],
                low_prices=[summary.quote.low_price or 0 for summary in items],
            ),
            volume_distribution=VolumeChart(
                labels=labels,
                volumes=[summary.quote.total_volume for summary in items],
            ),
        )

    # --- 3) refresh controls ---

    @app.get("/status", response_model=StatusResponse, tags=["Refresh"])
    async def get_status():
        return current_status()

    @app.post("/refresh", response_model=StatusResponse, tags=["Refresh"])
    async def refresh_now():
        snapshot = await orchestrator.refresh()
        if snapshot is None:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=FETCH_ERROR_MESSAGE)
        return current_status()

    @app.put("/auto-refresh", response_model=StatusResponse, tags=["Refresh"])
    async def set_auto_refresh(body: AutoRefreshRequest):
        if body.enabled:
            orchestrator.start()
        else:
            orchestrator.stop()
        return current_status()

    # --- 4) WS /ws/updates ---

    def ws_payload() -> dict:
        return {
            "version": dashboard.version,
            "status": current_status().model_dump(),
            "items": [card.model_dump() for card in current_cards()],
        }

    @app.websocket("/ws/updates")
    async def websocket_updates(websocket: WebSocket):
        """Push the dashboard payload on connect and whenever it changes."""
        await websocket.accept()
        try:
            last_version = dashboard.version
            await websocket.send_json(ws_payload())
            while True:
                if dashboard.version != last_version:
                    last_version = dashboard.version
                    await websocket.send_json(ws_payload())
                await asyncio.sleep(WS_POLL_SECONDS)
        except WebSocketDisconnect:
            logger.info("Client disconnected from updates WebSocket.")
        finally:
            try:
                await websocket.close()
            except RuntimeError:
                # Already closed by the client
                pass

    return app


app = create_app()


def run() -> None:
    settings: Settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
