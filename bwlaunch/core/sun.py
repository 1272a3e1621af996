#!/usr/bin/env python3
"""
🌅 Sunrise / sunset calculation for sun-relative dark mode scheduling.

Implements the classic sunrise-equation approximation (zenith 90.833°, which
accounts for refraction and the solar disk radius). Results are whole minutes
from local midnight, clamped to [0, 1439].
"""

from __future__ import annotations

import datetime as _dt
import math
from typing import Optional, Tuple

from ..utils.timezone import get_local_timezone

SOLAR_ZENITH = 90.833

# Sentinel results when the sun never rises or never sets on a date
POLAR_NIGHT_MINUTES = 720
POLAR_DAY_SUNRISE_MINUTES = 0
POLAR_DAY_SUNSET_MINUTES = 1440

MINUTES_PER_DAY = 1440


def _normalize_angle(angle: float) -> float:
    while angle < 0:
        angle += 360
    while angle >= 360:
        angle -= 360
    return angle


def _normalize_hour(hour: float) -> float:
    while hour < 0:
        hour += 24
    while hour >= 24:
        hour -= 24
    return hour


def _clamp_minutes(minutes: int) -> int:
    return max(0, min(MINUTES_PER_DAY - 1, minutes))


def _sun_event_minutes(
    latitude: float,
    longitude: float,
    day_of_year: int,
    utc_offset_minutes: int,
    is_sunrise: bool,
) -> int:
    lng_hour = longitude / 15.0

    if is_sunrise:
        t = day_of_year + ((6 - lng_hour) / 24)
    else:
        t = day_of_year + ((18 - lng_hour) / 24)

    # Sun's mean anomaly
    mean_anomaly = (0.9856 * t) - 3.289

    # Sun's true longitude
    true_longitude = (
        mean_anomaly
        + (1.916 * math.sin(math.radians(mean_anomaly)))
        + (0.020 * math.sin(math.radians(2 * mean_anomaly)))
        + 282.634
    )
    true_longitude = _normalize_angle(true_longitude)

    right_ascension = math.degrees(math.atan(0.91764 * math.tan(math.radians(true_longitude))))
    right_ascension = _normalize_angle(right_ascension)

    # Right ascension has to sit in the same quadrant as the true longitude
    l_quadrant = math.floor(true_longitude / 90) * 90
    ra_quadrant = math.floor(right_ascension / 90) * 90
    right_ascension += l_quadrant - ra_quadrant
    right_ascension /= 15

    sin_dec = 0.39782 * math.sin(math.radians(true_longitude))
    cos_dec = math.cos(math.asin(sin_dec))

    cos_h = (
        math.cos(math.radians(SOLAR_ZENITH)) - (sin_dec * math.sin(math.radians(latitude)))
    ) / (cos_dec * math.cos(math.radians(latitude)))

    if cos_h > 1:
        # Polar night: the sun never rises
        return POLAR_NIGHT_MINUTES
    if cos_h < -1:
        # Midnight sun: the sun never sets
        return POLAR_DAY_SUNRISE_MINUTES if is_sunrise else _clamp_minutes(POLAR_DAY_SUNSET_MINUTES)

    if is_sunrise:
        hour_angle = 360 - math.degrees(math.acos(cos_h))
    else:
        hour_angle = math.degrees(math.acos(cos_h))
    hour_angle /= 15

    local_mean_time = hour_angle + right_ascension - (0.06571 * t) - 6.622

    utc_time = _normalize_hour(local_mean_time - lng_hour)
    local_time = _normalize_hour(utc_time + utc_offset_minutes / 60.0)

    return _clamp_minutes(int(local_time * 60))


def compute_sun_times(
    latitude: float,
    longitude: float,
    day_of_year: int,
    utc_offset_minutes: int,
) -> Tuple[int, int]:
    """Compute sunrise and sunset for a location and date.

    Args:
        latitude: Observer latitude in degrees (north positive)
        longitude: Observer longitude in degrees (east positive)
        day_of_year: 1-based day of the year
        utc_offset_minutes: Local offset from UTC including DST

    Returns:
        ``(sunrise_minutes, sunset_minutes)`` each in [0, 1439]. During polar
        night both are 720; during midnight sun sunrise is 0 and sunset 1439.
    """
    sunrise = _sun_event_minutes(latitude, longitude, day_of_year, utc_offset_minutes, True)
    sunset = _sun_event_minutes(latitude, longitude, day_of_year, utc_offset_minutes, False)
    return sunrise, sunset


def format_minutes(minutes: int) -> str:
    """Format minutes from midnight as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def utc_offset_minutes_for(moment: _dt.datetime) -> int:
    """Return the UTC offset (including DST) of an aware datetime in minutes."""
    offset = moment.utcoffset()
    if offset is None:
        return 0
    return int(offset.total_seconds() // 60)


class SunCalculator:
    """Sunrise/sunset for a fixed location, evaluated for a given moment."""

    def __init__(self, latitude: float, longitude: float):
        self.latitude = latitude
        self.longitude = longitude

    def _resolve(self, on: Optional[_dt.datetime]) -> _dt.datetime:
        if on is None:
            return _dt.datetime.now(tz=get_local_timezone())
        if on.tzinfo is None:
            return on.replace(tzinfo=get_local_timezone())
        return on

    def sun_times(self, on: Optional[_dt.datetime] = None) -> Tuple[int, int]:
        moment = self._resolve(on)
        return compute_sun_times(
            self.latitude,
            self.longitude,
            moment.timetuple().tm_yday,
            utc_offset_minutes_for(moment),
        )

    def sunrise_minutes(self, on: Optional[_dt.datetime] = None) -> int:
        return self.sun_times(on)[0]

    def sunset_minutes(self, on: Optional[_dt.datetime] = None) -> int:
        return self.sun_times(on)[1]
