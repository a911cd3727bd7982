from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone

import httpx
from pydantic import BaseModel, Field, ValidationError

from app.schemas.weather import (
    CityQuery,
    CoordinatesQuery,
    ErrorKind,
    LookupFailure,
    LookupOutcome,
    LookupSuccess,
    WeatherQuery,
    WeatherReport,
)


logger = logging.getLogger(__name__)


NOT_FOUND_MESSAGE = "Location not found. Please check and try again."
UNAUTHORIZED_MESSAGE = "Invalid API key. Please check your OpenWeatherMap API configuration."
RATE_LIMITED_MESSAGE = "Too many requests. Please try again later."


class _Sys(BaseModel):
    country: str


class _Main(BaseModel):
    temp: float
    feels_like: float
    humidity: int
    pressure: int


class _Condition(BaseModel):
    description: str
    icon: str


class _Wind(BaseModel):
    speed: float


class OpenWeatherPayload(BaseModel):
    """Subset of the /data/2.5/weather body the report is built from."""

    name: str
    sys: _Sys
    main: _Main
    weather: list[_Condition] = Field(..., min_length=1)
    wind: _Wind
    visibility: int
    dt: int | None = None

    def to_report(self) -> WeatherReport:
        condition = self.weather[0]
        return WeatherReport(
            city=self.name,
            country=self.sys.country,
            description=condition.description,
            icon=condition.icon,
            temperature=self.main.temp,
            feels_like=self.main.feels_like,
            humidity=self.main.humidity,
            wind_speed=self.wind.speed,
            pressure=self.main.pressure,
            visibility=self.visibility,
            observed_at=datetime.fromtimestamp(self.dt, tz=dt_timezone.utc) if self.dt is not None else None,
        )


def interpret_response(response: httpx.Response) -> LookupOutcome:
    status = response.status_code
    if status == 404:
        return LookupFailure(error=ErrorKind.NOT_FOUND, message=NOT_FOUND_MESSAGE)
    if status == 401:
        return LookupFailure(error=ErrorKind.UNAUTHORIZED, message=UNAUTHORIZED_MESSAGE)
    if status == 429:
        return LookupFailure(error=ErrorKind.RATE_LIMITED, message=RATE_LIMITED_MESSAGE)
    if not response.is_success:
        return LookupFailure(
            error=ErrorKind.PROVIDER_ERROR,
            message=f"Weather service error ({status}). Please try again later.",
        )

    try:
        payload = OpenWeatherPayload.model_validate_json(response.content)
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(part) for part in first.get("loc", ())) or "body"
        return LookupFailure(
            error=ErrorKind.MALFORMED_RESPONSE,
            message=f"Unexpected weather data ({where}: {first.get('msg', 'invalid')}).",
        )
    return LookupSuccess(report=payload.to_report())


def transport_failure(exc: httpx.HTTPError) -> LookupFailure:
    return LookupFailure(
        error=ErrorKind.NETWORK_ERROR,
        message=f"Unable to reach the weather service ({type(exc).__name__}). Please check your connection.",
    )


class OpenWeatherClient:
    def __init__(self, client: httpx.AsyncClient, *, api_key: str, url: str, units: str = "metric"):
        self.client = client
        self.api_key = api_key
        self.url = url
        self.units = units

    def _params(self, **query: str | float) -> dict[str, str | float]:
        return {**query, "appid": self.api_key, "units": self.units}

    async def _get(self, params: dict[str, str | float]) -> LookupOutcome:
        try:
            resp = await self.client.get(self.url, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Weather request failed: %s", exc)
            return transport_failure(exc)
        return interpret_response(resp)

    async def fetch_by_city(self, name: str) -> LookupOutcome:
        return await self._get(self._params(q=name))

    async def fetch_by_coordinates(self, lat: float, lon: float) -> LookupOutcome:
        return await self._get(self._params(lat=lat, lon=lon))

    async def fetch(self, query: WeatherQuery) -> LookupOutcome:
        if isinstance(query, CityQuery):
            return await self.fetch_by_city(query.name)
        if isinstance(query, CoordinatesQuery):
            return await self.fetch_by_coordinates(query.latitude, query.longitude)
        raise TypeError(f"Unsupported weather query: {type(query).__name__}")
