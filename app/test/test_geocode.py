import asyncio
from types import SimpleNamespace
import httpx
import pytest
from app.models.listing import ListingCreate
from app.services.geocode_service import Geocoder, backfill_coordinates, map_pins
from app.services.providers import get_http_client
from main import app
from conftest import listing_form


def override_http_client(handler):
    async def client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as mock_client:
            yield mock_client
    app.dependency_overrides[get_http_client] = client


def test_geocode_proxy_requires_address(client):
    response = client.get("/api/geocode")
    assert response.status_code == 400
    assert response.json() == {"error": "Address is required"}


def test_geocode_proxy_returns_upstream_json(client):
    seen = {}
    payload = {"status": "OK", "results": [{"geometry": {"location": {"lat": 52.37, "lng": 4.88}}}]}

    def handler(request):
        seen["address"] = request.url.params["address"]
        seen["has_key"] = "key" in request.url.params
        return httpx.Response(200, json=payload)

    override_http_client(handler)
    response = client.get("/api/geocode", params={"address": "Prinsengracht 263, Amsterdam"})

    assert response.status_code == 200
    assert response.json() == payload
    assert seen == {"address": "Prinsengracht 263, Amsterdam", "has_key": True}


def test_geocode_proxy_upstream_failure(client):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    override_http_client(handler)
    response = client.get("/api/geocode", params={"address": "Coolsingel 40"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch geocode data"}


class FakeGeolocator:

    def __init__(self, results):
        self.results = results

    def geocode(self, address, exactly_one=True, timeout=None):
        result = self.results.get(address)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def geocoder():
    return Geocoder(geolocator=FakeGeolocator({
        "Prinsengracht 263, Amsterdam": SimpleNamespace(latitude=52.3752, longitude=4.8840),
        "Broken street": RuntimeError("service timed out"),
    }))


def test_geocoder_resolves_and_absorbs_failures(geocoder):
    assert asyncio.run(geocoder.geocode("Prinsengracht 263, Amsterdam")) == (52.3752, 4.8840)
    assert asyncio.run(geocoder.geocode("Unknown place")) is None
    assert asyncio.run(geocoder.geocode("Broken street")) is None
    assert asyncio.run(geocoder.geocode("   ")) is None


def test_backfill_updates_only_resolvable_listings(db, listings):
    placed = listings.create("u1", ListingCreate(**listing_form()), [])
    listings.update_coordinates(placed.id, 1.0, 2.0)
    missing = listings.create("u1", ListingCreate(**listing_form(address="Damrak 1")), [])
    broken = listings.create("u1", ListingCreate(**listing_form(address="Broken lane 9")), [])

    geocoder = Geocoder(geolocator=FakeGeolocator({
        missing.full_address: SimpleNamespace(latitude=52.376, longitude=4.897),
        broken.full_address: ValueError("bad address"),
        placed.full_address: SimpleNamespace(latitude=0.0, longitude=0.0),
    }))

    updated = asyncio.run(backfill_coordinates(listings.list_all(), listings, geocoder))

    assert updated == 1
    assert db.document_data(f"listings/{missing.id}")["latitude"] == 52.376
    assert db.document_data(f"listings/{placed.id}")["latitude"] == 1.0
    assert "latitude" not in db.document_data(f"listings/{broken.id}")

    pins = map_pins(listings.list_all())
    assert sorted(pin.id for pin in pins) == sorted([placed.id, missing.id])
