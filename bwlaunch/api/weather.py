#!/usr/bin/env python3
"""
🌦️ Open-Meteo client for the current-conditions widget.

No API key required. API docs: https://open-meteo.com/en/docs
"""

import logging
from typing import Any, Dict, Optional

import requests

from ..core.weather import WeatherReading
from .http import get_http_session

logger = logging.getLogger("weather_api")

BASE_URL = "https://api.open-meteo.com/v1/forecast"
CURRENT_FIELDS = "temperature_2m,weather_code,is_day"


class WeatherFetchError(RuntimeError):
    """Raised when the provider could not deliver a usable reading."""


def build_params(latitude: float, longitude: float, use_celsius: bool) -> Dict[str, Any]:
    return {
        "latitude": latitude,
        "longitude": longitude,
        "current": CURRENT_FIELDS,
        "temperature_unit": "celsius" if use_celsius else "fahrenheit",
        "timezone": "auto",
    }


def parse_current(payload: Dict[str, Any], use_celsius: bool) -> WeatherReading:
    """Turn an Open-Meteo response body into a reading.

    Raises:
        WeatherFetchError: If the ``current`` block is missing or malformed
    """
    try:
        current = payload["current"]
        return WeatherReading(
            temperature=int(float(current["temperature_2m"])),
            weather_code=int(current["weather_code"]),
            is_day=int(current["is_day"]) == 1,
            use_celsius=use_celsius,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise WeatherFetchError(f"Malformed weather payload: {exc}") from exc


def fetch_current_weather(
    latitude: float,
    longitude: float,
    use_celsius: bool = False,
    session: Optional[requests.Session] = None,
) -> WeatherReading:
    """Fetch current conditions for the given coordinates.

    Args:
        latitude: Decimal degrees
        longitude: Decimal degrees
        use_celsius: Request Celsius instead of Fahrenheit
        session: Optional session override (defaults to the shared one)

    Returns:
        WeatherReading

    Raises:
        WeatherFetchError: On network errors, non-200 responses or bad payloads
    """
    http = session or get_http_session()
    try:
        response = http.get(BASE_URL, params=build_params(latitude, longitude, use_celsius))
    except requests.exceptions.RequestException as exc:
        raise WeatherFetchError(f"Network error retrieving weather: {exc}") from exc

    if response.status_code != 200:
        raise WeatherFetchError(f"Error retrieving weather: {response.status_code}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise WeatherFetchError(f"Weather response is not JSON: {exc}") from exc

    reading = parse_current(payload, use_celsius)
    logger.debug("🌡️ Weather fetched: %s", reading.to_display_string())
    return reading


__all__ = ["BASE_URL", "WeatherFetchError", "build_params", "parse_current", "fetch_current_weather"]
