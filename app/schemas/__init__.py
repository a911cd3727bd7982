from __future__ import annotations

from app.schemas.weather import (
    Coordinates,
    DisplayState,
    ErrorKind,
    LookupFailure,
    LookupOutcome,
    LookupSuccess,
    WeatherQuery,
    WeatherReport,
    WeatherViewResponse,
)

__all__ = [
    "Coordinates",
    "DisplayState",
    "ErrorKind",
    "LookupFailure",
    "LookupOutcome",
    "LookupSuccess",
    "WeatherQuery",
    "WeatherReport",
    "WeatherViewResponse",
]
