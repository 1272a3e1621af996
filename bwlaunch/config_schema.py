"""
Pydantic models for BWLaunch configuration validation

This module provides type-safe configuration schemas with automatic validation,
preventing runtime errors from malformed config files.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .constants import (DEFAULT_DARK_END, DEFAULT_DARK_START,
                        DEFAULT_FAVORITE_COUNT, DEFAULT_TEXT_SIZE,
                        MAX_FAVORITE_COUNT, MAX_TEXT_SIZE, MIN_FAVORITE_COUNT,
                        MIN_TEXT_SIZE)

HHMM_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"
CUSTOM_LABEL_PREFIX = "custom_label_"


def _clamp_int(value: Any, low: int, high: int, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))


class LauncherConfig(BaseModel):
    """Complete BWLaunch configuration schema.

    Example:
        >>> validated = LauncherConfig(**json.load(open("config/production.json")))
        >>> validated.favorite_count
        5
    """

    # Display (consumed by the presentation layer only)
    display_mode: str = Field(default="text", description="text, icons_text or icons")
    font_type: str = Field(default="sans_serif", description="sans_serif or serif")
    text_size: int = Field(default=DEFAULT_TEXT_SIZE, description="Label text size")
    first_launch_done: bool = Field(default=False)

    # Favorites
    favorite_count: int = Field(default=DEFAULT_FAVORITE_COUNT, description="Number of favorite slots")
    favorites: list[str] = Field(default_factory=list, description="Ordered favorite app keys")
    custom_labels: Dict[str, str] = Field(default_factory=dict, description="App key -> user label")

    # Dark mode schedule
    dark_mode: bool = Field(default=False, description="Manual dark mode switch")
    dark_mode_schedule: str = Field(default="manual", description="manual, time_based or sunrise_sunset")
    dark_start: str = Field(default=DEFAULT_DARK_START, pattern=HHMM_PATTERN, description="Fixed window start (HH:MM)")
    dark_end: str = Field(default=DEFAULT_DARK_END, pattern=HHMM_PATTERN, description="Fixed window end (HH:MM)")

    # Location (0/0 means "not set")
    location_latitude: float = Field(default=0.0, ge=-90.0, le=90.0)
    location_longitude: float = Field(default=0.0, ge=-180.0, le=180.0)

    # Weather
    weather_enabled: bool = Field(default=False)
    use_celsius: bool = Field(default=False)
    weather_cache: Optional[str] = Field(default=None, description="Serialized last reading")
    weather_cache_time: float = Field(default=0.0, ge=0.0, description="Epoch seconds of weather_cache")

    # Runtime settings
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    timezone: str = Field(default="UTC", description="Timezone for schedule evaluation")

    model_config = {
        "extra": "allow",  # Allow extra fields for forward compatibility
        "str_strip_whitespace": True,
        "validate_assignment": True,
    }

    @field_validator('favorite_count', mode='before')
    @classmethod
    def clamp_favorite_count(cls, v: Any) -> int:
        return _clamp_int(v, MIN_FAVORITE_COUNT, MAX_FAVORITE_COUNT, DEFAULT_FAVORITE_COUNT)

    @field_validator('text_size', mode='before')
    @classmethod
    def clamp_text_size(cls, v: Any) -> int:
        return _clamp_int(v, MIN_TEXT_SIZE, MAX_TEXT_SIZE, DEFAULT_TEXT_SIZE)

    @field_validator('favorites')
    @classmethod
    def dedupe_favorites(cls, v: list[str]) -> list[str]:
        """Drop blanks and duplicates, keeping the first occurrence."""
        seen = set()
        result = []
        for key in v:
            key = key.strip()
            if key and key not in seen:
                seen.add(key)
                result.append(key)
        return result

    @field_validator('custom_labels')
    @classmethod
    def drop_empty_labels(cls, v: Dict[str, str]) -> Dict[str, str]:
        return {key: label for key, label in v.items() if label}

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
            return v
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Invalid timezone: {v}. Must be a valid IANA timezone (e.g., 'Europe/London')")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=False, mode='json')

    def to_json_safe(self) -> Dict[str, Any]:
        """Convert to JSON-safe dictionary (for saving to file)."""
        return {k: v for k, v in self.to_dict().items() if not k.startswith("_")}


def validate_config_dict(config_dict: Dict[str, Any]) -> tuple[LauncherConfig, list[str]]:
    """Validate a config dictionary against the schema.

    Returns:
        Tuple of (validated_config, warnings_list)

    Raises:
        ValueError: If config is invalid with detailed error messages
    """
    warnings = []
    payload = {k: v for k, v in config_dict.items() if not k.startswith("_")}

    schedule = payload.get("dark_mode_schedule")
    if schedule not in (None, "manual", "time_based", "sunrise_sunset"):
        warnings.append(f"Unknown dark_mode_schedule '{schedule}', using 'manual'")
        payload["dark_mode_schedule"] = "manual"

    try:
        validated = LauncherConfig(**payload)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {str(e)}")
    return validated, warnings


def migrate_legacy_config(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Migrate legacy config formats to current schema.

    - ``dark_start_hour``/``dark_start_minute`` (and ``dark_end_*``) -> ``HH:MM``
    - ``custom_label_<app>`` keys -> ``custom_labels``
    - pipe-joined ``favorites`` string -> list
    """
    migrated = config_dict.copy()

    for prefix in ("dark_start", "dark_end"):
        hour_key, minute_key = f"{prefix}_hour", f"{prefix}_minute"
        if hour_key in migrated or minute_key in migrated:
            hour = _clamp_int(migrated.pop(hour_key, 0), 0, 23, 0)
            minute = _clamp_int(migrated.pop(minute_key, 0), 0, 59, 0)
            migrated.setdefault(prefix, f"{hour:02d}:{minute:02d}")

    legacy_labels = {
        key[len(CUSTOM_LABEL_PREFIX):]: migrated.pop(key)
        for key in list(migrated)
        if key.startswith(CUSTOM_LABEL_PREFIX)
    }
    if legacy_labels:
        labels = dict(legacy_labels)
        labels.update(migrated.get("custom_labels") or {})
        migrated["custom_labels"] = labels

    favorites = migrated.get("favorites")
    if isinstance(favorites, str):
        migrated["favorites"] = [key for key in favorites.split("|") if key]

    return migrated
