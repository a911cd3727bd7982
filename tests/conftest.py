import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.main import create_app
from app.schemas.weather import CityQuery, LookupSuccess, WeatherReport


OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"


def make_report(city: str = "Paris", **overrides) -> WeatherReport:
    data = {
        "city": city,
        "country": "FR",
        "description": "clear sky",
        "icon": "01d",
        "temperature": 21.6,
        "feels_like": 20.4,
        "humidity": 48,
        "wind_speed": 4.2,
        "pressure": 1015,
        "visibility": 10000,
    }
    data.update(overrides)
    return WeatherReport(**data)


def openweather_body(name: str = "Paris", **overrides) -> dict:
    body = {
        "name": name,
        "dt": 1700000000,
        "sys": {"country": "FR"},
        "main": {"temp": 21.6, "feels_like": 20.4, "humidity": 48, "pressure": 1015},
        "weather": [{"description": "clear sky", "icon": "01d"}],
        "wind": {"speed": 4.2},
        "visibility": 10000,
    }
    body.update(overrides)
    return body


class FakeWeatherClient:
    """Stands in for OpenWeatherClient; records queries and can hold a city lookup open."""

    def __init__(self, outcome=None):
        self.outcome = outcome
        self.calls = []
        self.gates: dict[str, asyncio.Event] = {}

    async def fetch(self, query):
        self.calls.append(query)
        if isinstance(query, CityQuery):
            gate = self.gates.get(query.name)
            if gate is not None:
                await gate.wait()
            return self.outcome or LookupSuccess(report=make_report(query.name))
        return self.outcome or LookupSuccess(report=make_report("Lyon"))


@pytest.fixture
def settings():
    return Settings(
        openweather_api_key="test-key",
        openweather_url=OPENWEATHER_URL,
        auto_search_on_startup=False,
        geolocation_source="none",
        cors_origins=[],
        demo_delay_seconds=0.0,
    )


@pytest_asyncio.fixture
async def api(settings):
    app = create_app(settings)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield app, client
