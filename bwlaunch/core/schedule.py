#!/usr/bin/env python3
"""
🌓 Dark mode schedule policy.

Decides whether the display should currently be dark. Three modes exist:

- ``Manual``: the stored on/off switch
- ``FixedWindow``: a daily clock window (see ``FixedWindow`` for its meaning)
- ``SunRelative``: dark before sunrise and from sunset onwards

All functions here are pure: no I/O, safe to call at any frequency.
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from ..utils.timezone import get_local_timezone
from .sun import compute_sun_times, utc_offset_minutes_for


class DarkModeSchedule(Enum):
    """Dark mode scheduling options (persisted by key)."""
    MANUAL = "manual"
    TIME_BASED = "time_based"
    SUNRISE_SUNSET = "sunrise_sunset"

    @classmethod
    def from_key(cls, key: Optional[str]) -> "DarkModeSchedule":
        for member in cls:
            if member.value == key:
                return member
        return cls.MANUAL


@dataclass(frozen=True)
class Manual:
    dark: bool = False


@dataclass(frozen=True)
class FixedWindow:
    """Daily window in minutes of day.

    ``start <= end`` (08:00-18:00) is the light period; a window that wraps
    midnight (20:00-07:00) is the dark period. See ``is_in_dark_window``.
    """
    start: int
    end: int


@dataclass(frozen=True)
class SunRelative:
    """Dark outside sunrise..sunset. Without coordinates ``fallback_dark`` applies."""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    fallback_dark: bool = False

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


ScheduleConfig = Union[Manual, FixedWindow, SunRelative]


def parse_hhmm(value: str) -> Optional[int]:
    """Parse ``HH:MM`` into minutes of day, or None if invalid."""
    try:
        hour, minute = map(int, value.split(":"))
    except (ValueError, AttributeError):
        return None
    if 0 <= hour <= 23 and 0 <= minute <= 59:
        return hour * 60 + minute
    return None


def is_in_dark_window(start: int, end: int, now_minutes: int) -> bool:
    if start <= end:
        # Normal range (e.g., 08:00 to 18:00 means dark outside this range)
        return now_minutes < start or now_minutes >= end
    # Overnight range (e.g., 20:00 to 07:00)
    return now_minutes >= start or now_minutes < end


def sun_times_for(config: SunRelative, today: _dt.date, utc_offset_minutes: int = 0) -> Optional[Tuple[int, int]]:
    if not config.has_location:
        return None
    return compute_sun_times(
        config.latitude,
        config.longitude,
        today.timetuple().tm_yday,
        utc_offset_minutes,
    )


def is_dark_active(
    config: ScheduleConfig,
    now_minutes: int,
    today: _dt.date,
    utc_offset_minutes: int = 0,
) -> bool:
    """Return True when dark mode should be active.

    Args:
        config: Schedule configuration
        now_minutes: Current local time as minutes from midnight
        today: Current local date (used for sun-relative schedules)
        utc_offset_minutes: Local UTC offset, needed to place sun times in local time

    Returns:
        bool: dark mode state
    """
    if isinstance(config, Manual):
        return config.dark
    if isinstance(config, FixedWindow):
        return is_in_dark_window(config.start, config.end, now_minutes)
    if isinstance(config, SunRelative):
        times = sun_times_for(config, today, utc_offset_minutes)
        if times is None:
            return config.fallback_dark
        sunrise, sunset = times
        return now_minutes < sunrise or now_minutes >= sunset
    raise TypeError(f"Unsupported schedule config: {config!r}")


def should_use_dark_mode(config: ScheduleConfig, now: Optional[_dt.datetime] = None) -> bool:
    """Evaluate ``config`` at ``now`` (defaults to the current local time)."""
    if now is None:
        now = _dt.datetime.now(tz=get_local_timezone())
    elif now.tzinfo is None:
        now = now.replace(tzinfo=get_local_timezone())
    return is_dark_active(
        config,
        now.hour * 60 + now.minute,
        now.date(),
        utc_offset_minutes_for(now),
    )
