from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ErrorKind(str, Enum):
    EMPTY_INPUT = "empty_input"
    NETWORK_ERROR = "network_error"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    PROVIDER_ERROR = "provider_error"
    MALFORMED_RESPONSE = "malformed_response"
    GEOLOCATION_DENIED = "geolocation_denied"
    GEOLOCATION_UNAVAILABLE = "geolocation_unavailable"
    GEOLOCATION_TIMEOUT = "geolocation_timeout"
    GEOLOCATION_UNSUPPORTED = "geolocation_unsupported"


class DisplayState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class TemperatureUnit(str, Enum):
    CELSIUS = "C"
    FAHRENHEIT = "F"
    KELVIN = "K"


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class PositionOptions(BaseModel):
    high_accuracy: bool = True
    timeout_ms: int = Field(10_000, ge=0)
    max_cached_age_ms: int = Field(300_000, ge=0)


class CityQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["city"] = "city"
    name: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("city name cannot be blank")
        return stripped


class CoordinatesQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["coordinates"] = "coordinates"
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


WeatherQuery = Annotated[Union[CityQuery, CoordinatesQuery], Field(discriminator="kind")]


class WeatherReport(BaseModel):
    city: str
    country: str
    description: str
    icon: str
    temperature: float = Field(..., description="Air temperature (C).")
    feels_like: float = Field(..., description="Apparent temperature (C).")
    humidity: int = Field(..., description="Relative humidity (%).")
    wind_speed: float = Field(..., description="Wind speed (m/s).")
    pressure: int = Field(..., description="Sea-level pressure (hPa).")
    visibility: int = Field(..., description="Visibility (m).")
    observed_at: datetime | None = None


class LookupSuccess(BaseModel):
    kind: Literal["success"] = "success"
    report: WeatherReport


class LookupFailure(BaseModel):
    kind: Literal["failure"] = "failure"
    error: ErrorKind
    message: str


LookupOutcome = Annotated[Union[LookupSuccess, LookupFailure], Field(discriminator="kind")]


class WeatherCard(BaseModel):
    location: str
    description: str
    icon: str
    temperature: str
    feels_like: str
    humidity: str
    wind_speed: str
    pressure: str
    visibility: str
    observed_at: str | None = None


class DisplayRegions(BaseModel):
    loading: bool = False
    error: bool = False
    weather: bool = False


class WeatherViewResponse(BaseModel):
    state: DisplayState
    regions: DisplayRegions
    error: str | None = None
    error_kind: ErrorKind | None = None
    card: WeatherCard | None = None
    query_input: str = ""
    busy: bool = False
    location_button_label: str
    demo: bool = False
    demo_note: str | None = None


class GeolocationErrorPayload(BaseModel):
    code: int = Field(..., ge=0)
    message: str = ""


class LocationReport(BaseModel):
    """Outcome of a browser-side position request, forwarded as-is."""

    manual: bool = True
    supported: bool = True
    coords: Coordinates | None = None
    error: GeolocationErrorPayload | None = None
