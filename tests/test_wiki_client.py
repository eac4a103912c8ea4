"""Tests for the prices API client against an in-memory httpx transport."""

import httpx
import pytest

from errors import FetchFailed, MalformedResponse
from wiki_client import WikiPriceClient

BASE_URL = "https://prices.example/api/v1/osrs"

LATEST = {
	"data": {
		"536": {"high": 3050, "highTime": 1700000000, "low": 2990, "lowTime": 1699999990},
		"2": {"high": 180, "highTime": 1700000000, "low": None, "lowTime": None},
		"385": {"high": 900, "low": 880, "highPriceVolume": 1200, "lowPriceVolume": 340},
	}
}

MAPPING = [
	{"id": 536, "name": "Dragon bones", "examine": "These are certainly dragon bones.", "members": True, "limit": 7500, "value": 1},
	{"id": 2, "name": "Cannonball", "examine": "Ammo for the Dwarf Cannon.", "members": True, "limit": 11000},
]


def make_client(handler, clock=lambda: 1_700_000_000.5):
	return WikiPriceClient(
		base_url=BASE_URL,
		user_agent="ge-dashboard-tests",
		transport=httpx.MockTransport(handler),
		clock=clock,
	)


def json_routes(routes, seen=None):
	def handler(request: httpx.Request) -> httpx.Response:
		if seen is not None:
			seen.append(request)
		path = request.url.path.rsplit("/", 1)[-1]
		return httpx.Response(200, json=routes[path])

	return handler


@pytest.mark.asyncio
async def test_fetch_latest_parses_quotes():
	seen = []
	client = make_client(json_routes({"latest": LATEST}, seen))

	batch = await client.fetch_latest()
	await client.aclose()

	assert seen[0].url.path == "/api/v1/osrs/latest"
	assert seen[0].headers["User-Agent"] == "ge-dashboard-tests"
	assert set(batch.quotes) == {536, 2, 385}
	assert batch.quotes[536].high_price == 3050
	assert batch.quotes[536].high_volume == 0
	assert batch.quotes[2].low_price is None
	assert batch.quotes[385].low_volume == 340
	# No timestamp in the payload: wall clock in ms
	assert batch.timestamp == 1_700_000_000_500


@pytest.mark.asyncio
async def test_payload_timestamp_is_seconds():
	client = make_client(json_routes({"latest": {**LATEST, "timestamp": 1_700_000_100}}))

	batch = await client.fetch_latest()
	await client.aclose()

	assert batch.timestamp == 1_700_000_100_000


@pytest.mark.asyncio
async def test_fetch_metadata_parses_mapping():
	client = make_client(json_routes({"mapping": MAPPING}))

	records = await client.fetch_metadata()
	await client.aclose()

	assert [r.id for r in records] == [536, 2]
	assert records[0].name == "Dragon bones"
	assert records[0].members is True
	assert records[1].limit == 11000


@pytest.mark.asyncio
async def test_error_status_raises_fetch_failed():
	client = make_client(lambda request: httpx.Response(503, text="down"))

	with pytest.raises(FetchFailed) as excinfo:
		await client.fetch_latest()
	await client.aclose()

	assert excinfo.value.status_code == 503


@pytest.mark.asyncio
async def test_transport_error_raises_fetch_failed():
	def handler(request):
		raise httpx.ConnectError("connection refused", request=request)

	client = make_client(handler)

	with pytest.raises(FetchFailed):
		await client.fetch_metadata()
	await client.aclose()


@pytest.mark.asyncio
async def test_non_json_body_is_malformed():
	client = make_client(lambda request: httpx.Response(200, text="<html>oops</html>"))

	with pytest.raises(MalformedResponse):
		await client.fetch_latest()
	await client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
	"payload",
	[
		{"data": [1, 2, 3]},
		{"prices": {}},
		{"data": {"536": {"high": -5}}},
		{"data": {"abc": {"high": 5}}},
	],
)
async def test_unexpected_latest_shape_is_malformed(payload):
	client = make_client(json_routes({"latest": payload}))

	with pytest.raises(MalformedResponse):
		await client.fetch_latest()
	await client.aclose()


@pytest.mark.asyncio
async def test_unexpected_mapping_shape_is_malformed():
	client = make_client(json_routes({"mapping": {"id": 536}}))

	with pytest.raises(MalformedResponse):
		await client.fetch_metadata()
	await client.aclose()


@pytest.mark.asyncio
async def test_http_client_opens_on_first_request_and_closes():
	client = make_client(json_routes({"latest": LATEST}))
	assert client.is_open is False

	await client.fetch_latest()
	assert client.is_open is True

	await client.aclose()
	assert client.is_open is False
	# Closing twice is harmless
	await client.aclose()
