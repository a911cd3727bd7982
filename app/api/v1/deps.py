from __future__ import annotations

from fastapi import Request

from app.services.weather.lookup import WeatherLookup


def get_weather_lookup(request: Request) -> WeatherLookup:
    lookup = getattr(request.app.state, "weather_lookup", None)
    if lookup is None:
        raise RuntimeError("Weather lookup not initialized. Did you start the FastAPI app?")
    return lookup
