from __future__ import annotations

from abc import ABC, abstractmethod

from app.schemas.weather import (
    DisplayRegions,
    DisplayState,
    ErrorKind,
    TemperatureUnit,
    WeatherReport,
    WeatherViewResponse,
)
from app.services.weather.render import render_report


LOCATION_BUTTON_LABEL = "My Location"
LOCATION_BUTTON_BUSY_LABEL = "Getting..."
DEMO_NOTE = (
    "This is demo data. To get live weather updates, get a free API key from "
    "https://openweathermap.org/api and set WEATHERLOOK_OPENWEATHER_API_KEY."
)


class PresentationSink(ABC):
    """Where the lookup flow renders its outcome. Each show_* replaces the previous region."""

    @abstractmethod
    def show_loading(self) -> None: ...

    @abstractmethod
    def show_error(self, message: str, kind: ErrorKind | None = None) -> None: ...

    @abstractmethod
    def show_success(self, report: WeatherReport, *, demo: bool = False) -> None: ...

    @abstractmethod
    def set_busy(self, busy: bool) -> None: ...


class WeatherView(PresentationSink):
    def __init__(self) -> None:
        self.state = DisplayState.IDLE
        self.error: str | None = None
        self.error_kind: ErrorKind | None = None
        self.report: WeatherReport | None = None
        self.demo = False
        self.query_input = ""
        self.busy = False

    def _clear(self) -> None:
        self.error = None
        self.error_kind = None
        self.report = None
        self.demo = False

    def show_loading(self) -> None:
        self._clear()
        self.state = DisplayState.LOADING

    def show_error(self, message: str, kind: ErrorKind | None = None) -> None:
        self._clear()
        self.error = message
        self.error_kind = kind
        self.state = DisplayState.ERROR

    def show_success(self, report: WeatherReport, *, demo: bool = False) -> None:
        self._clear()
        self.report = report
        self.demo = demo
        self.state = DisplayState.SUCCESS
        self.query_input = ""

    def set_busy(self, busy: bool) -> None:
        self.busy = busy

    def set_query_input(self, value: str) -> None:
        self.query_input = value

    def regions(self) -> DisplayRegions:
        return DisplayRegions(
            loading=self.state == DisplayState.LOADING,
            error=self.state == DisplayState.ERROR,
            weather=self.state == DisplayState.SUCCESS,
        )

    def snapshot(self, unit: TemperatureUnit = TemperatureUnit.CELSIUS) -> WeatherViewResponse:
        return WeatherViewResponse(
            state=self.state,
            regions=self.regions(),
            error=self.error,
            error_kind=self.error_kind,
            card=render_report(self.report, unit) if self.report is not None else None,
            query_input=self.query_input,
            busy=self.busy,
            location_button_label=LOCATION_BUTTON_BUSY_LABEL if self.busy else LOCATION_BUTTON_LABEL,
            demo=self.demo,
            demo_note=DEMO_NOTE if self.demo else None,
        )
