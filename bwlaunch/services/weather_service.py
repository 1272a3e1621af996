"""
🌦️ Weather Service - Home Screen Weather Widget
================================================

Combines the stored location and unit preference with the weather cache.
The widget status is one of ``ok``, ``disabled``, ``location_required`` or
``weather_unavailable``.
"""

from typing import Optional

from . import BaseService, ServiceResult
from ..api.weather import fetch_current_weather
from ..core.preferences import LauncherPreferences
from ..core.weather import WeatherCache, WeatherFetcher

STATUS_OK = "ok"
STATUS_DISABLED = "disabled"
STATUS_LOCATION_REQUIRED = "location_required"
STATUS_UNAVAILABLE = "weather_unavailable"

UNAVAILABLE_TEXT = "Unavailable"


class WeatherService(BaseService):
    """Service for the current-conditions widget."""

    def __init__(
        self,
        preferences: LauncherPreferences,
        cache: Optional[WeatherCache] = None,
        fetcher: Optional[WeatherFetcher] = None,
    ):
        super().__init__("weather")
        self.preferences = preferences
        self.cache = cache or WeatherCache(preferences)
        self.fetcher = fetcher or fetch_current_weather
        self._last_status: Optional[str] = None

    def get_weather(self) -> ServiceResult:
        try:
            if not self.preferences.weather_enabled():
                return self._status_result(STATUS_DISABLED)

            location = self.preferences.location()
            if location is None:
                return self._status_result(STATUS_LOCATION_REQUIRED)

            reading, source = self.cache.get(location, self.preferences.use_celsius(), self.fetcher)
            if reading is None:
                return self._status_result(STATUS_UNAVAILABLE, display=UNAVAILABLE_TEXT)

            self._last_status = STATUS_OK
            return self._success_result(data={
                "status": STATUS_OK,
                "source": source,
                **reading.to_dict(),
            })
        except Exception as e:
            return self._handle_error(e, "get_weather")

    def _status_result(self, status: str, display: Optional[str] = None) -> ServiceResult:
        self._last_status = status
        data = {"status": status}
        if display is not None:
            data["display"] = display
        return self._success_result(data=data)

    def health_check(self) -> ServiceResult:
        base = super().health_check()
        if not base.success:
            return base
        status = "degraded" if self._last_status == STATUS_UNAVAILABLE else "healthy"
        return self._success_result(data={
            "status": status,
            "service": self.name,
            "last_status": self._last_status,
            "last_source": self.cache.last_source,
        })
