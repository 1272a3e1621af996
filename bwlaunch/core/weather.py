#!/usr/bin/env python3
"""
🌦️ Weather reading model and unit-aware cache.

A persisted reading is reused while it is younger than the freshness window
AND was measured in the unit currently requested. Any other case triggers one
fetch; if that fails, whatever reading is still on record (stale or in the
other unit) is served instead of reporting "unavailable".
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional, Protocol, Tuple

from ..constants import WEATHER_CACHE_TTL_SECONDS

logger = logging.getLogger("weather_cache")

CACHE_SEPARATOR = "|"

Coordinates = Tuple[float, float]
WeatherFetcher = Callable[[float, float, bool], Optional["WeatherReading"]]


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"Not a boolean literal: {value!r}")


# WMO weather interpretation codes (https://open-meteo.com/en/docs)
_CONDITIONS = (
    ((0,), "Clear"),
    ((1, 2, 3), "Cloudy"),
    ((45, 48), "Foggy"),
    ((51, 53, 55), "Drizzle"),
    ((56, 57), "Freezing Drizzle"),
    ((61, 63, 65), "Rain"),
    ((66, 67), "Freezing Rain"),
    ((71, 73, 75), "Snow"),
    ((77,), "Snow Grains"),
    ((80, 81, 82), "Showers"),
    ((85, 86), "Snow Showers"),
    ((95, 96, 99), "Thunderstorm"),
)

_ICONS = (
    ((1, 2, 3), "⛅"),  # partly cloudy
    ((45, 48), "☁"),  # fog
    ((51, 53, 55, 61, 63, 65, 80, 81, 82), "☔"),  # rain
    ((56, 57, 66, 67, 71, 73, 75, 77, 85, 86), "❄"),  # freezing / snow
    ((95, 96, 99), "⚡"),  # thunderstorm
)


@dataclass(frozen=True)
class WeatherReading:
    """Current conditions as shown in the home screen widget."""
    temperature: int
    weather_code: int
    is_day: bool
    use_celsius: bool = False

    def condition_text(self) -> str:
        for codes, text in _CONDITIONS:
            if self.weather_code in codes:
                return text
        return "Unknown"

    def icon(self) -> str:
        if self.weather_code == 0:
            return "☀" if self.is_day else "☽"  # sun / moon
        for codes, icon in _ICONS:
            if self.weather_code in codes:
                return icon
        return "☁"

    def to_display_string(self) -> str:
        """Format for display, e.g. ``72° Clear``."""
        return f"{self.temperature}° {self.condition_text()}"

    def to_cache(self) -> str:
        return CACHE_SEPARATOR.join((
            str(self.temperature),
            str(self.weather_code),
            _format_bool(self.is_day),
            _format_bool(self.use_celsius),
        ))

    @classmethod
    def from_cache(cls, record: Optional[str]) -> Optional["WeatherReading"]:
        """Parse a persisted record; legacy 3-field records default to Fahrenheit.

        Returns None for anything that does not parse.
        """
        if not record:
            return None
        parts = record.split(CACHE_SEPARATOR)
        if len(parts) < 3:
            return None
        try:
            temperature = int(parts[0])
            weather_code = int(parts[1])
            is_day = _parse_bool(parts[2])
        except ValueError:
            return None
        # Unit flag is advisory: anything but "true" means Fahrenheit
        use_celsius = len(parts) > 3 and parts[3].strip().lower() == "true"
        return cls(
            temperature=temperature,
            weather_code=weather_code,
            is_day=is_day,
            use_celsius=use_celsius,
        )

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "weather_code": self.weather_code,
            "is_day": self.is_day,
            "use_celsius": self.use_celsius,
            "condition": self.condition_text(),
            "icon": self.icon(),
            "display": self.to_display_string(),
        }


class WeatherCacheStore(Protocol):
    def load_weather_cache(self) -> Tuple[Optional[str], float]: ...

    def save_weather_cache(self, record: str, timestamp: float) -> None: ...


class CachedWeather(NamedTuple):
    """A reading plus where it came from: cache, network, fallback or unavailable."""

    reading: Optional[WeatherReading]
    source: str


class WeatherCache:
    """Time-boxed, unit-keyed cache in front of a weather fetcher."""

    def __init__(
        self,
        store: WeatherCacheStore,
        ttl_seconds: float = WEATHER_CACHE_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self.last_source: Optional[str] = None

    def _cached_reading(self) -> Tuple[Optional[WeatherReading], float]:
        try:
            record, cached_at = self._store.load_weather_cache()
        except Exception as exc:
            logger.warning("⚠️ Could not read weather cache: %s", exc)
            return None, 0.0
        reading = WeatherReading.from_cache(record)
        if record and reading is None:
            logger.debug("Ignoring malformed weather cache record %r", record)
        return reading, float(cached_at or 0)

    def get(
        self,
        coords: Coordinates,
        use_celsius: bool,
        fetcher: WeatherFetcher,
    ) -> CachedWeather:
        """Return a usable reading for ``coords`` in the requested unit.

        Args:
            coords: ``(latitude, longitude)``
            use_celsius: Requested unit (False = Fahrenheit)
            fetcher: ``fetcher(latitude, longitude, use_celsius)``; may raise or
                return None on failure

        Returns:
            CachedWeather; its reading is None when nothing could be fetched
            and nothing is on record
        """
        with self._lock:
            cached, cached_at = self._cached_reading()
            age = self._clock() - cached_at
            if cached is not None and age < self._ttl and cached.use_celsius == use_celsius:
                self.last_source = "cache"
                logger.debug("✅ Weather cache hit (age %.0fs)", age)
                return CachedWeather(cached, "cache")

            latitude, longitude = coords
            try:
                fresh = fetcher(latitude, longitude, use_celsius)
            except Exception as exc:
                logger.warning("⚠️ Weather fetch failed: %s", exc)
                fresh = None

            if fresh is not None:
                if fresh.use_celsius != use_celsius:
                    fresh = WeatherReading(fresh.temperature, fresh.weather_code, fresh.is_day, use_celsius)
                try:
                    self._store.save_weather_cache(fresh.to_cache(), self._clock())
                except Exception as exc:
                    logger.warning("⚠️ Could not persist weather cache: %s", exc)
                self.last_source = "network"
                return CachedWeather(fresh, "network")

            if cached is not None:
                self.last_source = "fallback"
                logger.info("📦 Serving last known weather reading as fallback")
                return CachedWeather(cached, "fallback")

            self.last_source = "unavailable"
            return CachedWeather(None, "unavailable")
