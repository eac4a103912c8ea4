"""Endpoint tests for the dashboard service.

Covers:
- GET /items, /items/{id}, /items/{id}/history and /charts after refreshes.
- POST /refresh success and failure, PUT /auto-refresh toggling.
- WS /ws/updates sends a snapshot on connect and again after a refresh.

We use httpx.AsyncClient for the HTTP tests and FastAPI TestClient for WebSocket.
"""

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from main import create_app
from models import DashboardSnapshot
from quote_stub import SimulatedQuoteSource
from refresh import FETCH_ERROR_MESSAGE
from settings import Settings

ITEMS = {536: "Dragon bones", 385: "Shark", 2: "Cannonball"}


def make_app(max_points: int = 5):
	settings = Settings(auto_refresh=False, max_points=max_points, tracked_items=ITEMS)
	source = SimulatedQuoteSource(ITEMS, seed=42)
	return create_app(settings=settings, source=source), source


@pytest.mark.asyncio
async def test_items_endpoint_returns_cards():
	app, _ = make_app()
	async with app.router.lifespan_context(app):
		await app.state.orchestrator.drain()
		transport = ASGITransport(app=app)
		async with AsyncClient(transport=transport, base_url="http://test") as client:
			resp = await client.post("/refresh")
			assert resp.status_code == 200, resp.text

			resp = await client.get("/items")
			assert resp.status_code == 200
			cards = resp.json()
			assert [c["id"] for c in cards] == [536, 385, 2]
			card = cards[0]
			assert card["average_price"] == (card["high_price"] + card["low_price"] + 1) // 2
			assert card["total_volume"] == card["high_volume"] + card["low_volume"]
			assert card["trend"] in {"up", "down", "stable"}
			assert card["high_price_display"].endswith("gp")
			# Metadata from the source has been merged
			assert card["examine"] == "A simulated dragon bones."

			resp = await client.get("/items/385")
			assert resp.status_code == 200
			assert resp.json()["name"] == "Shark"


@pytest.mark.asyncio
async def test_history_is_bounded_and_ordered():
	app, _ = make_app(max_points=5)
	async with app.router.lifespan_context(app):
		await app.state.orchestrator.drain()
		transport = ASGITransport(app=app)
		async with AsyncClient(transport=transport, base_url="http://test") as client:
			for _ in range(7):
				assert (await client.post("/refresh")).status_code == 200

			resp = await client.get("/items/536/history")
			assert resp.status_code == 200
			data = resp.json()
			assert data["max_points"] == 5
			assert len(data["points"]) == 5
			timestamps = [p["timestamp"] for p in data["points"]]
			assert timestamps == sorted(timestamps)


@pytest.mark.asyncio
async def test_untracked_item_is_404():
	app, _ = make_app()
	async with app.router.lifespan_context(app):
		transport = ASGITransport(app=app)
		async with AsyncClient(transport=transport, base_url="http://test") as client:
			assert (await client.get("/items/4151")).status_code == 404
			assert (await client.get("/items/4151/history")).status_code == 404


@pytest.mark.asyncio
async def test_charts_match_cards():
	app, _ = make_app()
	async with app.router.lifespan_context(app):
		await app.state.orchestrator.drain()
		transport = ASGITransport(app=app)
		async with AsyncClient(transport=transport, base_url="http://test") as client:
			await client.post("/refresh")
			cards = (await client.get("/items")).json()
			charts = (await client.get("/charts")).json()

			assert charts["price_comparison"]["labels"] == [c["name"] for c in cards]
			assert charts["price_comparison"]["high_prices"] == [c["high_price"] for c in cards]
			assert charts["volume_distribution"]["volumes"] == [c["total_volume"] for c in cards]


@pytest.mark.asyncio
async def test_failed_refresh_returns_502_and_keeps_cards():
	app, source = make_app()
	async with app.router.lifespan_context(app):
		await app.state.orchestrator.drain()
		transport = ASGITransport(app=app)
		async with AsyncClient(transport=transport, base_url="http://test") as client:
			await client.post("/refresh")
			before = (await client.get("/items")).json()

			source.fail_next(1)
			resp = await client.post("/refresh")
			assert resp.status_code == 502
			assert resp.json()["detail"] == FETCH_ERROR_MESSAGE

			status = (await client.get("/status")).json()
			assert status["error"] == FETCH_ERROR_MESSAGE
			assert (await client.get("/items")).json() == before


@pytest.mark.asyncio
async def test_auto_refresh_toggle():
	app, _ = make_app()
	async with app.router.lifespan_context(app):
		transport = ASGITransport(app=app)
		async with AsyncClient(transport=transport, base_url="http://test") as client:
			status = (await client.get("/status")).json()
			assert status["auto_refresh"] is False
			assert status["refresh_interval"] == 30.0

			resp = await client.put("/auto-refresh", json={"enabled": True})
			assert resp.json()["auto_refresh"] is True

			resp = await client.put("/auto-refresh", json={"enabled": False})
			assert resp.json()["auto_refresh"] is False
			assert app.state.orchestrator.is_polling is False


def test_websocket_sends_snapshot_then_updates():
	app, _ = make_app()
	with TestClient(app) as client:
		with client.websocket_connect("/ws/updates") as ws:
			first = ws.receive_json()
			assert "items" in first
			assert first["status"]["auto_refresh"] is False

			assert client.post("/refresh").status_code == 200
			second = ws.receive_json()
			assert second["version"] > first["version"]
			assert [item["id"] for item in second["items"]] == [536, 385, 2]


@pytest.mark.asyncio
async def test_failed_refresh_detail_survives_overlapping_render():
	app, _ = make_app()
	dashboard = app.state.dashboard

	async def failing_refresh():
		dashboard.show_error(FETCH_ERROR_MESSAGE)
		# A scheduled cycle finishing first clears the error
		dashboard.render(DashboardSnapshot(timestamp=1))
		return None

	app.state.orchestrator.refresh = failing_refresh
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as client:
		resp = await client.post("/refresh")
		assert resp.status_code == 502
		assert resp.json()["detail"] == FETCH_ERROR_MESSAGE


def test_wiki_source_is_not_opened_by_building_the_app():
	settings = Settings(auto_refresh=False, quote_source="wiki", tracked_items=ITEMS)
	app = create_app(settings=settings)
	assert app.state.source.is_open is False
