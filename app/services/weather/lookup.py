from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from app.schemas.weather import (
    CityQuery,
    Coordinates,
    CoordinatesQuery,
    ErrorKind,
    LookupFailure,
    LookupOutcome,
    LookupSuccess,
    PositionOptions,
    WeatherQuery,
    WeatherReport,
)
from app.services.weather.geolocation import (
    PERMISSION_DENIED,
    POSITION_UNAVAILABLE,
    TIMEOUT,
    GeolocationError,
    GeolocationProvider,
)
from app.services.weather.openweather import OpenWeatherClient
from app.services.weather.view import PresentationSink


logger = logging.getLogger(__name__)


EMPTY_CITY_MESSAGE = "Please enter a city name"


@dataclass(frozen=True)
class LocationMessages:
    unsupported: str
    denied: str
    unavailable: str
    timeout: str
    fallback: str


# Wording for the "My Location" button.
MANUAL_MESSAGES = LocationMessages(
    unsupported="Geolocation is not supported by this browser",
    denied="Location access denied. Please allow location access and try again.",
    unavailable="Location unavailable. Please try again or search manually.",
    timeout="Location request timeout. Please try again.",
    fallback="Unable to get your location weather.",
)

# Wording for the lookup made without user interaction on load.
AUTO_MESSAGES = LocationMessages(
    unsupported="Geolocation is not supported by this browser. Please search for a city manually.",
    denied='Location access denied. Please search for a city manually or click "My Location" to try again.',
    unavailable="Location unavailable. Please search for a city manually.",
    timeout="Location request timeout. Please search for a city manually.",
    fallback="Unable to get your location. Please search for a city manually.",
)


DEMO_REPORT = WeatherReport(
    city="London",
    country="GB",
    description="partly cloudy",
    icon="02d",
    temperature=22,
    feels_like=24,
    humidity=65,
    wind_speed=4.2,
    pressure=1012,
    visibility=10000,
)


def geolocation_failure(exc: GeolocationError, *, manual: bool) -> LookupFailure:
    messages = MANUAL_MESSAGES if manual else AUTO_MESSAGES
    if exc.code == PERMISSION_DENIED:
        return LookupFailure(error=ErrorKind.GEOLOCATION_DENIED, message=messages.denied)
    if exc.code == POSITION_UNAVAILABLE:
        return LookupFailure(error=ErrorKind.GEOLOCATION_UNAVAILABLE, message=messages.unavailable)
    if exc.code == TIMEOUT:
        return LookupFailure(error=ErrorKind.GEOLOCATION_TIMEOUT, message=messages.timeout)
    message = (exc.message or messages.fallback) if manual else messages.fallback
    return LookupFailure(error=ErrorKind.GEOLOCATION_UNAVAILABLE, message=message)


class WeatherLookup:
    """Runs one weather lookup at a time and drives the view through loading/success/error.

    Every attempt takes a new token; when lookups overlap only the most recent
    one is allowed to render its outcome.
    """

    def __init__(
        self,
        *,
        client: OpenWeatherClient | None,
        view: PresentationSink,
        geolocation: GeolocationProvider,
        position_options: PositionOptions,
        live_data: bool = True,
        demo_delay_seconds: float = 1.0,
    ):
        self.client = client
        self.view = view
        self.geolocation = geolocation
        self.position_options = position_options
        self.live_data = live_data and client is not None
        self.demo_delay_seconds = demo_delay_seconds
        self.last_location: Coordinates | None = None
        self._token = 0
        self._manual_in_flight = 0

    def _begin(self) -> int:
        self._token += 1
        return self._token

    def _render(self, token: int, outcome: LookupOutcome) -> None:
        if token != self._token:
            logger.info("Discarding outcome of superseded lookup #%d", token)
            return
        if isinstance(outcome, LookupSuccess):
            self.view.show_success(outcome.report, demo=not self.live_data)
        else:
            logger.warning("Weather lookup #%d failed [%s]: %s", token, outcome.error.value, outcome.message)
            self.view.show_error(outcome.message, outcome.error)

    async def _fetch(self, query: WeatherQuery) -> LookupOutcome:
        if not self.live_data:
            await asyncio.sleep(self.demo_delay_seconds)
            return LookupSuccess(report=DEMO_REPORT)
        return await self.client.fetch(query)

    async def search_by_city(self, raw_input: str) -> LookupOutcome:
        token = self._begin()
        city = raw_input.strip()
        if not city:
            outcome = LookupFailure(error=ErrorKind.EMPTY_INPUT, message=EMPTY_CITY_MESSAGE)
            self._render(token, outcome)
            return outcome

        self.view.show_loading()
        outcome = await self._fetch(CityQuery(name=city))
        self._render(token, outcome)
        return outcome

    async def search_by_coordinates(self, lat: float, lon: float) -> LookupOutcome:
        token = self._begin()
        self.view.show_loading()
        outcome = await self._fetch(CoordinatesQuery(latitude=lat, longitude=lon))
        self._render(token, outcome)
        return outcome

    async def search_by_current_location(
        self,
        manual: bool,
        provider: GeolocationProvider | None = None,
    ) -> LookupOutcome:
        provider = provider or self.geolocation
        token = self._begin()

        if not provider.available:
            messages = MANUAL_MESSAGES if manual else AUTO_MESSAGES
            outcome = LookupFailure(error=ErrorKind.GEOLOCATION_UNSUPPORTED, message=messages.unsupported)
            self._render(token, outcome)
            return outcome

        self.view.show_loading()
        if manual:
            self._manual_in_flight += 1
            self.view.set_busy(True)
        try:
            try:
                coords = await provider.get_current_position(self.position_options)
            except GeolocationError as exc:
                outcome = geolocation_failure(exc, manual=manual)
            else:
                self.last_location = coords
                outcome = await self._fetch(CoordinatesQuery(latitude=coords.latitude, longitude=coords.longitude))
            self._render(token, outcome)
        except Exception:
            # Leave the view usable for the next attempt, then propagate.
            if token == self._token:
                messages = MANUAL_MESSAGES if manual else AUTO_MESSAGES
                self.view.show_error(messages.fallback)
            raise
        finally:
            if manual:
                self._manual_in_flight -= 1
                # Busy stays on while any other manual lookup is still running.
                self.view.set_busy(self._manual_in_flight > 0)
        return outcome

    async def auto_search_on_load(self) -> LookupOutcome:
        return await self.search_by_current_location(manual=False)
