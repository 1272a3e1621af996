"""
🌓 Theme Service - Dark Mode State & Scheduling
===============================================

Reports the current dark/light decision, today's sunrise and sunset for the
stored location, and owns the lifecycle of the background dark mode monitor.
"""

import datetime as _dt
from typing import Any, Callable, Dict, Optional

from . import BaseService, ServiceResult
from ..core.monitor import DarkModeMonitor, should_autostart
from ..core.preferences import LauncherPreferences
from ..core.schedule import should_use_dark_mode
from ..core.sun import SunCalculator, format_minutes


class ThemeService(BaseService):
    """Service for dark mode state and the schedule monitor."""

    def __init__(
        self,
        preferences: LauncherPreferences,
        monitor: Optional[DarkModeMonitor] = None,
        clock: Optional[Callable[[], _dt.datetime]] = None,
    ):
        super().__init__("theme")
        self.preferences = preferences
        self._clock = clock
        self.monitor = monitor or DarkModeMonitor(preferences.schedule_config, clock=clock)
        self.monitor.subscribe(self._on_dark_mode_changed)
        self._applied_dark: Optional[bool] = None

    def _now(self) -> Optional[_dt.datetime]:
        return self._clock() if self._clock is not None else None

    def _on_dark_mode_changed(self, is_dark: bool) -> None:
        self._applied_dark = is_dark
        self.logger.info(f"🌗 Theme switched to {'dark' if is_dark else 'light'}")

    def get_theme(self) -> ServiceResult:
        try:
            config = self.preferences.schedule_config()
            is_dark = should_use_dark_mode(config, self._now())
            last_change = self.monitor.last_change
            return self._success_result(data={
                "dark": is_dark,
                "theme": "dark" if is_dark else "light",
                "schedule": self.preferences.schedule_mode().value,
                "monitor": self.monitor.state,
                "last_change": last_change.isoformat() if last_change else None,
                "applied_dark": self._applied_dark,
            })
        except Exception as e:
            return self._handle_error(e, "get_theme")

    def get_sun_times(self) -> ServiceResult:
        try:
            location = self.preferences.location()
            if location is None:
                return self._error_result("No location configured", "LOCATION_REQUIRED")
            sunrise, sunset = SunCalculator(*location).sun_times(self._now())
            return self._success_result(data={
                "latitude": location[0],
                "longitude": location[1],
                "sunrise_minutes": sunrise,
                "sunset_minutes": sunset,
                "sunrise": format_minutes(sunrise),
                "sunset": format_minutes(sunset),
            })
        except Exception as e:
            return self._handle_error(e, "get_sun_times")

    def sync_monitor(self) -> bool:
        """Run the monitor only while an automatic schedule is selected.

        Returns:
            True if the monitor is running afterwards
        """
        if should_autostart(self.preferences.schedule_mode()):
            self.monitor.start()
            self.monitor.wake()
            return True
        self.monitor.stop()
        return False

    def on_config_changed(self, _config: Dict[str, Any]) -> None:
        """Config change listener: follow schedule mode switches."""
        try:
            self.sync_monitor()
        except Exception as e:
            self.logger.warning(f"⚠️ Could not update dark mode monitor: {e}")

    def health_check(self) -> ServiceResult:
        base = super().health_check()
        if not base.success:
            return base
        automatic = should_autostart(self.preferences.schedule_mode())
        running = self.monitor.state == "polling"
        return self._success_result(data={
            "status": "degraded" if automatic and not running else "healthy",
            "service": self.name,
            "monitor": self.monitor.state,
            "current_state": self.monitor.current_state,
        })

    def shutdown(self) -> None:
        self.monitor.stop()
        super().shutdown()
