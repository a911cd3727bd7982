from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.router import api_v1_router
from app.core.config import Settings, get_settings
from app.core.http import create_http_client
from app.core.logging import setup_logging
from app.services.weather.geolocation import build_geolocation_provider, position_options_from_settings
from app.services.weather.lookup import WeatherLookup
from app.services.weather.openweather import OpenWeatherClient
from app.services.weather.view import WeatherView


logger = logging.getLogger(__name__)


def build_weather_lookup(settings: Settings, client: httpx.AsyncClient) -> WeatherLookup:
    weather_client = None
    if settings.live_data_enabled:
        weather_client = OpenWeatherClient(
            client,
            api_key=settings.openweather_api_key,
            url=settings.openweather_url,
            units=settings.units,
        )
    else:
        logger.info("No OpenWeatherMap API key configured; serving demo data")

    return WeatherLookup(
        client=weather_client,
        view=WeatherView(),
        geolocation=build_geolocation_provider(settings, client),
        position_options=position_options_from_settings(settings),
        live_data=settings.live_data_enabled,
        demo_delay_seconds=settings.demo_delay_seconds,
    )


def _log_startup_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Startup weather lookup failed", exc_info=exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    # Setup HTTP client
    client = create_http_client(settings)

    lookup = build_weather_lookup(settings, client)
    app.state.weather_lookup = lookup

    startup_task = None
    if settings.auto_search_on_startup:
        startup_task = asyncio.create_task(lookup.auto_search_on_load())
        startup_task.add_done_callback(_log_startup_failure)
    app.state.startup_lookup = startup_task

    try:
        yield
    finally:
        if startup_task is not None and not startup_task.done():
            startup_task.cancel()
            with suppress(asyncio.CancelledError):
                await startup_task
        await client.aclose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="weatherlook api",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api_v1_router, prefix="/api/v1")
    return app


app = create_app()
