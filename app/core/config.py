from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
IP_GEOLOCATION_URL = "http://ip-api.com/json/"
PLACEHOLDER_API_KEY = "YOUR_API_KEY_HERE"


DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WEATHERLOOK_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = Field(default="INFO")

    # None disables the network timeout entirely.
    http_timeout_seconds: float | None = Field(default=None, ge=1.0, le=120.0)

    # OpenWeatherMap
    openweather_api_key: str = Field(default=PLACEHOLDER_API_KEY)
    openweather_url: str = Field(default=OPENWEATHER_URL)
    units: Literal["metric"] = Field(default="metric")

    # Demo mode
    use_live_data: bool = Field(default=True)
    demo_delay_seconds: float = Field(default=1.0, ge=0.0, le=10.0)

    # Geolocation
    geolocation_source: Literal["none", "fixed", "ip"] = Field(default="none")
    default_latitude: float | None = Field(default=None, ge=-90, le=90)
    default_longitude: float | None = Field(default=None, ge=-180, le=180)
    ip_geolocation_url: str = Field(default=IP_GEOLOCATION_URL)
    geolocation_high_accuracy: bool = Field(default=True)
    geolocation_timeout_ms: int = Field(default=10_000, ge=100, le=60_000)
    geolocation_max_age_ms: int = Field(default=300_000, ge=0, le=3_600_000)

    auto_search_on_startup: bool = Field(default=True)

    @property
    def live_data_enabled(self) -> bool:
        key = self.openweather_api_key.strip()
        return self.use_live_data and bool(key) and key != PLACEHOLDER_API_KEY

    def model_post_init(self, __context: Any) -> None:
        # Allow WEATHERLOOK_CORS_ORIGINS as JSON array or comma-separated string.
        raw_cors = getattr(self, "cors_origins", None)
        if isinstance(raw_cors, str):
            parsed = raw_cors.strip()
            if parsed.startswith("["):
                try:
                    self.cors_origins = [str(x).strip() for x in json.loads(parsed) if str(x).strip()]
                except ValueError:
                    self.cors_origins = [s.strip() for s in parsed.split(",") if s.strip()]
            else:
                self.cors_origins = [s.strip() for s in parsed.split(",") if s.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
