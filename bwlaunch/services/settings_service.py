"""
⚙️ Settings Service - User-Facing Launcher Settings
===================================================

Reads and updates the settings screen values (dark mode schedule and window,
location, weather, favorite slots, text size). Updates are validated against
``LauncherConfig`` first and only then written through ``LauncherPreferences``,
so a rejected request leaves the stored config untouched.
"""

from typing import Any, Dict, List

from pydantic import ValidationError

from . import BaseService, ServiceResult
from ..config_schema import LauncherConfig
from ..core.preferences import LauncherPreferences
from ..core.schedule import DarkModeSchedule

SETTINGS_FIELDS = (
    "dark_mode_schedule",
    "dark_mode",
    "dark_start",
    "dark_end",
    "location_latitude",
    "location_longitude",
    "weather_enabled",
    "use_celsius",
    "favorite_count",
    "text_size",
)

_SCHEDULE_KEYS = {mode.value for mode in DarkModeSchedule}


def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        field_name = ".".join(str(loc) for loc in item.get("loc", ()))
        parts.append(f"{field_name}: {item.get('msg')}")
    return "; ".join(parts)


class SettingsService(BaseService):
    """Service for the settings screen."""

    def __init__(self, preferences: LauncherPreferences):
        super().__init__("settings")
        self.preferences = preferences

    def get_settings(self) -> ServiceResult:
        try:
            location = self.preferences.location() or (0.0, 0.0)
            dark_start, dark_end = self.preferences.dark_window()
            return self._success_result(data={
                "dark_mode_schedule": self.preferences.schedule_mode().value,
                "dark_mode": self.preferences.dark_mode(),
                "dark_start": dark_start,
                "dark_end": dark_end,
                "location_latitude": location[0],
                "location_longitude": location[1],
                "weather_enabled": self.preferences.weather_enabled(),
                "use_celsius": self.preferences.use_celsius(),
                "favorite_count": self.preferences.favorite_count(),
                "text_size": self.preferences.text_size(),
            })
        except Exception as e:
            return self._handle_error(e, "get_settings")

    def _validate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Return the normalized values for the fields in ``payload``.

        Raises:
            ValueError: On unknown fields or values the schema rejects
        """
        unknown = sorted(set(payload) - set(SETTINGS_FIELDS))
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")

        schedule = payload.get("dark_mode_schedule")
        if "dark_mode_schedule" in payload and schedule not in _SCHEDULE_KEYS:
            raise ValueError(f"dark_mode_schedule must be one of {', '.join(sorted(_SCHEDULE_KEYS))}")

        try:
            validated = LauncherConfig(**payload)
        except ValidationError as e:
            raise ValueError(_validation_message(e))
        return {name: getattr(validated, name) for name in payload}

    def update_settings(self, payload: Dict[str, Any]) -> ServiceResult:
        try:
            try:
                values = self._validate(payload)
            except ValueError as e:
                return self._error_result(str(e), "INVALID_SETTINGS")

            updated: List[str] = []

            if "dark_start" in values or "dark_end" in values:
                current_start, current_end = self.preferences.dark_window()
                self.preferences.set_dark_window(
                    values.get("dark_start", current_start),
                    values.get("dark_end", current_end),
                )
                updated += [name for name in ("dark_start", "dark_end") if name in values]

            if "location_latitude" in values or "location_longitude" in values:
                latitude, longitude = self.preferences.location() or (0.0, 0.0)
                self.preferences.set_location(
                    values.get("location_latitude", latitude),
                    values.get("location_longitude", longitude),
                )
                updated += [name for name in ("location_latitude", "location_longitude") if name in values]

            if "weather_enabled" in values:
                self.preferences.set_weather_enabled(values["weather_enabled"])
                updated.append("weather_enabled")
            if "use_celsius" in values:
                self.preferences.set_use_celsius(values["use_celsius"])
                updated.append("use_celsius")
            if "favorite_count" in values:
                self.preferences.set_favorite_count(values["favorite_count"])
                updated.append("favorite_count")
            if "text_size" in values:
                self.preferences.set_text_size(values["text_size"])
                updated.append("text_size")
            if "dark_mode" in values:
                self.preferences.set_dark_mode(values["dark_mode"])
                updated.append("dark_mode")

            # Last, so the monitor picks up a schedule whose window and location are already stored
            if "dark_mode_schedule" in values:
                self.preferences.set_schedule(DarkModeSchedule.from_key(values["dark_mode_schedule"]))
                updated.append("dark_mode_schedule")

            self.logger.info(f"⚙️ Settings updated: {', '.join(updated)}")
            result = self.get_settings()
            if result.success:
                result.data["updated"] = updated
                result.message = "Settings saved"
            return result
        except Exception as e:
            return self._handle_error(e, "update_settings")
