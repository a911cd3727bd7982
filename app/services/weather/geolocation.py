from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Hashable

import httpx
from pydantic import ValidationError

from app.core.cache import PositionFixCache, make_position_cache
from app.core.config import Settings
from app.schemas.weather import Coordinates, LocationReport, PositionOptions


logger = logging.getLogger(__name__)


PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3


class GeolocationError(Exception):
    def __init__(self, code: int, message: str = ""):
        super().__init__(message or f"Geolocation error {code}")
        self.code = code
        self.message = message


def position_options_from_settings(settings: Settings) -> PositionOptions:
    return PositionOptions(
        high_accuracy=settings.geolocation_high_accuracy,
        timeout_ms=settings.geolocation_timeout_ms,
        max_cached_age_ms=settings.geolocation_max_age_ms,
    )


class GeolocationProvider(ABC):
    """Source of the device position, resolved as a single awaitable request."""

    available: bool = True
    cache_key: Hashable = "device"

    def __init__(self, fix_cache: PositionFixCache | None = None):
        self.fix_cache = fix_cache

    @abstractmethod
    async def _locate(self, options: PositionOptions) -> Coordinates:
        """Resolve a fresh position or raise GeolocationError."""

    async def get_current_position(self, options: PositionOptions) -> Coordinates:
        if not self.available:
            raise GeolocationError(POSITION_UNAVAILABLE, "Geolocation is not supported")

        if self.fix_cache is not None and options.max_cached_age_ms > 0:
            cached = self.fix_cache.get(self.cache_key)
            if cached is not None:
                return cached

        try:
            coords = await asyncio.wait_for(self._locate(options), timeout=options.timeout_ms / 1000)
        except asyncio.TimeoutError:
            raise GeolocationError(TIMEOUT, "Timeout expired") from None

        if self.fix_cache is not None:
            self.fix_cache.put(self.cache_key, coords)
        return coords


class UnsupportedGeolocation(GeolocationProvider):
    available = False

    async def _locate(self, options: PositionOptions) -> Coordinates:
        raise GeolocationError(POSITION_UNAVAILABLE, "Geolocation is not supported")


class FixedGeolocation(GeolocationProvider):
    def __init__(self, coords: Coordinates, fix_cache: PositionFixCache | None = None):
        super().__init__(fix_cache)
        self.coords = coords

    async def _locate(self, options: PositionOptions) -> Coordinates:
        return self.coords


class ReportedGeolocation(GeolocationProvider):
    """Replays the position (or failure) a browser obtained on its own."""

    def __init__(self, report: LocationReport):
        super().__init__(None)
        self.report = report
        self.available = report.supported

    async def _locate(self, options: PositionOptions) -> Coordinates:
        if self.report.error is not None:
            raise GeolocationError(self.report.error.code, self.report.error.message)
        if self.report.coords is None:
            raise GeolocationError(POSITION_UNAVAILABLE, "No position reported")
        return self.report.coords


class IpGeolocation(GeolocationProvider):
    """Approximate position from the public IP address (ip-api.com compatible)."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        url: str,
        ip: str | None = None,
        fix_cache: PositionFixCache | None = None,
    ):
        super().__init__(fix_cache)
        self.client = client
        self.url = url
        self.ip = ip
        self.cache_key = ip or "self"

    async def _locate(self, options: PositionOptions) -> Coordinates:
        url = self.url.rstrip("/") + "/" + (self.ip or "")
        try:
            resp = await self.client.get(url, params={"fields": "status,message,lat,lon"})
        except httpx.HTTPError as exc:
            logger.warning("IP geolocation request failed: %s", exc)
            raise GeolocationError(POSITION_UNAVAILABLE, f"IP geolocation error: {type(exc).__name__}") from exc

        if resp.status_code != 200:
            raise GeolocationError(POSITION_UNAVAILABLE, f"IP geolocation status {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise GeolocationError(POSITION_UNAVAILABLE, "IP geolocation returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise GeolocationError(POSITION_UNAVAILABLE, "IP geolocation returned unexpected data")

        if data.get("status") != "success" or data.get("lat") is None or data.get("lon") is None:
            raise GeolocationError(POSITION_UNAVAILABLE, data.get("message") or "Position unavailable")
        try:
            return Coordinates(latitude=data["lat"], longitude=data["lon"])
        except ValidationError as exc:
            raise GeolocationError(POSITION_UNAVAILABLE, "IP geolocation returned invalid coordinates") from exc


def build_geolocation_provider(settings: Settings, client: httpx.AsyncClient) -> GeolocationProvider:
    fix_cache = make_position_cache(max_age_ms=settings.geolocation_max_age_ms)
    if settings.geolocation_source == "fixed":
        if settings.default_latitude is None or settings.default_longitude is None:
            logger.warning("Fixed geolocation selected without default coordinates; geolocation disabled")
            return UnsupportedGeolocation()
        coords = Coordinates(latitude=settings.default_latitude, longitude=settings.default_longitude)
        return FixedGeolocation(coords, fix_cache=fix_cache)
    if settings.geolocation_source == "ip":
        return IpGeolocation(client, url=settings.ip_geolocation_url, fix_cache=fix_cache)
    return UnsupportedGeolocation()
