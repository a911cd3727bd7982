import asyncio
import logging

import pytest
import respx
from httpx import Response

from app.core.config import Settings
from app.main import _log_startup_failure, create_app

from conftest import OPENWEATHER_URL, openweather_body


@pytest.mark.asyncio
async def test_weather_search_success(api):
    app, client = api

    with respx.mock() as router:
        route = router.get(OPENWEATHER_URL).mock(return_value=Response(200, json=openweather_body("London")))
        r = await client.get("/api/v1/weather/search", params={"city": " London "})
        assert route.call_count == 1
        assert route.calls.last.request.url.params["q"] == "London"

    assert r.status_code == 200
    body = r.json()
    assert body["state"] == "success"
    assert body["regions"] == {"loading": False, "error": False, "weather": True}
    assert body["card"]["temperature"] == "22°C"
    assert body["card"]["wind_speed"] == "15 km/h"
    assert body["card"]["visibility"] == "10 km"
    assert body["query_input"] == ""
    assert body["demo"] is False


@pytest.mark.asyncio
async def test_weather_search_blank_city(api):
    _, client = api

    with respx.mock(assert_all_called=False) as router:
        route = router.get(OPENWEATHER_URL).mock(return_value=Response(200, json=openweather_body()))
        r = await client.get("/api/v1/weather/search", params={"city": "   "})
        assert route.call_count == 0

    body = r.json()
    assert body["state"] == "error"
    assert body["error"] == "Please enter a city name"
    assert body["error_kind"] == "empty_input"


@pytest.mark.asyncio
async def test_weather_search_not_found_keeps_query(api):
    _, client = api

    with respx.mock:
        respx.get(OPENWEATHER_URL).mock(return_value=Response(404, json={"cod": "404", "message": "city not found"}))
        r = await client.get("/api/v1/weather/search", params={"city": "Atlantis"})

    body = r.json()
    assert body["state"] == "error"
    assert body["error"] == "Location not found. Please check and try again."
    assert body["query_input"] == "Atlantis"
    assert body["regions"] == {"loading": False, "error": True, "weather": False}


@pytest.mark.asyncio
async def test_location_report_drives_lookup(api):
    app, client = api

    with respx.mock() as router:
        route = router.get(OPENWEATHER_URL).mock(return_value=Response(200, json=openweather_body("Lyon")))
        r = await client.post(
            "/api/v1/weather/location",
            json={"manual": True, "coords": {"latitude": 45.76, "longitude": 4.84}},
        )
        assert route.call_count == 1
        assert float(route.calls.last.request.url.params["lat"]) == 45.76

    assert r.status_code == 200
    body = r.json()
    assert body["state"] == "success"
    assert body["busy"] is False
    assert body["location_button_label"] == "My Location"

    last = await client.get("/api/v1/weather/last-location")
    assert last.json() == {"latitude": 45.76, "longitude": 4.84}


@pytest.mark.asyncio
async def test_location_report_denied(api):
    _, client = api

    r = await client.post(
        "/api/v1/weather/location",
        json={"manual": False, "error": {"code": 1, "message": "User denied Geolocation"}},
    )
    body = r.json()
    assert body["state"] == "error"
    assert body["error_kind"] == "geolocation_denied"
    assert body["error"].startswith("Location access denied. Please search for a city manually")


@pytest.mark.asyncio
async def test_location_without_report_uses_server_provider(api):
    _, client = api

    r = await client.post("/api/v1/weather/location", json={"manual": True})
    body = r.json()
    assert body["error_kind"] == "geolocation_unsupported"
    assert body["error"] == "Geolocation is not supported by this browser"


@pytest.mark.asyncio
async def test_current_weather_by_coordinates_and_view_units(api):
    _, client = api

    with respx.mock:
        respx.get(OPENWEATHER_URL).mock(return_value=Response(200, json=openweather_body()))
        r = await client.get("/api/v1/weather/current", params={"lat": 48.85, "lon": 2.35})
    assert r.json()["state"] == "success"

    view = await client.get("/api/v1/weather/view", params={"unit": "F"})
    assert view.json()["card"]["temperature"] == "71°F"

    bad = await client.get("/api/v1/weather/current", params={"lat": 123, "lon": 2.35})
    assert bad.status_code == 422


@pytest.mark.asyncio
async def test_location_options_and_health(api):
    _, client = api

    options = (await client.get("/api/v1/weather/location/options")).json()
    assert options == {"high_accuracy": True, "timeout_ms": 10000, "max_cached_age_ms": 300000}

    health = (await client.get("/api/v1/health")).json()
    assert health == {"status": "ok", "live_data": True}


@pytest.mark.asyncio
async def test_startup_lookup_populates_initial_view():
    settings = Settings(
        openweather_api_key="test-key",
        openweather_url=OPENWEATHER_URL,
        geolocation_source="fixed",
        default_latitude=40.0,
        default_longitude=29.0,
        cors_origins=[],
    )
    app = create_app(settings)

    with respx.mock:
        respx.get(OPENWEATHER_URL).mock(return_value=Response(200, json=openweather_body("Bursa", sys={"country": "TR"})))
        async with app.router.lifespan_context(app):
            await app.state.startup_lookup
            view = app.state.weather_lookup.view.snapshot()

    assert view.state.value == "success"
    assert view.card.location == "Bursa, TR"
    assert app.state.weather_lookup.last_location.latitude == 40.0


@pytest.mark.asyncio
async def test_demo_mode_without_api_key():
    settings = Settings(
        openweather_api_key="YOUR_API_KEY_HERE",
        auto_search_on_startup=False,
        demo_delay_seconds=0.0,
        cors_origins=[],
    )
    app = create_app(settings)

    from httpx import ASGITransport, AsyncClient

    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            r = await client.get("/api/v1/weather/search", params={"city": "Tokyo"})

    body = r.json()
    assert body["demo"] is True
    assert body["card"]["location"] == "London, GB"
    assert body["card"]["icon"] == "⛅"
    assert body["demo_note"]


@pytest.mark.asyncio
async def test_failed_startup_lookup_is_logged(caplog):
    async def explode():
        raise RuntimeError("geolocation backend down")

    task = asyncio.create_task(explode())
    with pytest.raises(RuntimeError):
        await task

    with caplog.at_level(logging.ERROR, logger="app.main"):
        _log_startup_failure(task)

    assert "Startup weather lookup failed" in caplog.text
    assert "geolocation backend down" in caplog.text
