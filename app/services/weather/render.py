from __future__ import annotations

import math
from datetime import datetime, timezone as dt_timezone

from app.schemas.weather import TemperatureUnit, WeatherCard, WeatherReport


# OpenWeatherMap icon codes -> display glyph.
ICON_GLYPHS = {
    "01d": "☀️",
    "01n": "🌙",
    "02d": "⛅",
    "02n": "☁️",
    "03d": "☁️",
    "03n": "☁️",
    "04d": "☁️",
    "04n": "☁️",
    "09d": "🌧️",
    "09n": "🌧️",
    "10d": "🌦️",
    "10n": "🌧️",
    "11d": "⛈️",
    "11n": "⛈️",
    "13d": "❄️",
    "13n": "❄️",
    "50d": "🌫️",
    "50n": "🌫️",
}
DEFAULT_ICON_GLYPH = "🌤️"


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer; .5 ties go away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def icon_glyph(icon_code: str) -> str:
    return ICON_GLYPHS.get(icon_code, DEFAULT_ICON_GLYPH)


def convert_temperature(value: float, from_unit: TemperatureUnit, to_unit: TemperatureUnit) -> float:
    if from_unit == to_unit:
        return value

    celsius = value
    if from_unit == TemperatureUnit.FAHRENHEIT:
        celsius = (value - 32) * 5 / 9
    elif from_unit == TemperatureUnit.KELVIN:
        celsius = value - 273.15

    if to_unit == TemperatureUnit.FAHRENHEIT:
        return celsius * 9 / 5 + 32
    if to_unit == TemperatureUnit.KELVIN:
        return celsius + 273.15
    return celsius


def format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=dt_timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M %Z")


def _format_temperature(celsius: float, unit: TemperatureUnit) -> str:
    value = round_half_away_from_zero(convert_temperature(celsius, TemperatureUnit.CELSIUS, unit))
    if unit == TemperatureUnit.KELVIN:
        return f"{value} K"
    return f"{value}°{unit.value}"


def render_report(report: WeatherReport, unit: TemperatureUnit = TemperatureUnit.CELSIUS) -> WeatherCard:
    return WeatherCard(
        location=f"{report.city}, {report.country}",
        description=report.description,
        icon=icon_glyph(report.icon),
        temperature=_format_temperature(report.temperature, unit),
        feels_like=_format_temperature(report.feels_like, unit),
        humidity=f"{report.humidity}%",
        wind_speed=f"{round_half_away_from_zero(report.wind_speed * 3.6)} km/h",
        pressure=f"{report.pressure} hPa",
        visibility=f"{round_half_away_from_zero(report.visibility / 1000)} km",
        observed_at=format_timestamp(report.observed_at) if report.observed_at else None,
    )
