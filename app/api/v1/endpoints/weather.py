from fastapi import APIRouter, Depends, Query

from app.api.v1.deps import get_weather_lookup
from app.schemas.weather import (
    Coordinates,
    LocationReport,
    PositionOptions,
    TemperatureUnit,
    WeatherViewResponse,
)
from app.services.weather.geolocation import ReportedGeolocation
from app.services.weather.lookup import WeatherLookup


router = APIRouter()


@router.get("/search", response_model=WeatherViewResponse)
async def search_city(
    city: str = Query("", max_length=120),
    unit: TemperatureUnit = Query(TemperatureUnit.CELSIUS),
    lookup: WeatherLookup = Depends(get_weather_lookup),
):
    lookup.view.set_query_input(city)
    await lookup.search_by_city(city)
    return lookup.view.snapshot(unit)


@router.get("/current", response_model=WeatherViewResponse)
async def current_weather(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    unit: TemperatureUnit = Query(TemperatureUnit.CELSIUS),
    lookup: WeatherLookup = Depends(get_weather_lookup),
):
    await lookup.search_by_coordinates(lat, lon)
    return lookup.view.snapshot(unit)


@router.post("/location", response_model=WeatherViewResponse)
async def location_weather(
    report: LocationReport,
    unit: TemperatureUnit = Query(TemperatureUnit.CELSIUS),
    lookup: WeatherLookup = Depends(get_weather_lookup),
):
    # Nothing reported by the browser: fall back to the server-side provider.
    provider = None
    if report.coords is not None or report.error is not None or not report.supported:
        provider = ReportedGeolocation(report)
    await lookup.search_by_current_location(report.manual, provider=provider)
    return lookup.view.snapshot(unit)


@router.get("/location/options", response_model=PositionOptions)
async def location_options(lookup: WeatherLookup = Depends(get_weather_lookup)):
    return lookup.position_options


@router.get("/view", response_model=WeatherViewResponse)
async def current_view(
    unit: TemperatureUnit = Query(TemperatureUnit.CELSIUS),
    lookup: WeatherLookup = Depends(get_weather_lookup),
):
    return lookup.view.snapshot(unit)


@router.get("/last-location", response_model=Coordinates | None)
async def last_location(lookup: WeatherLookup = Depends(get_weather_lookup)):
    return lookup.last_location
