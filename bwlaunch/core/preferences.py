#!/usr/bin/env python3
"""
⚙️ Typed access to launcher preferences.

Everything in ``core`` reads and writes settings through ``LauncherPreferences``;
raw config keys stay in this module. Read-modify-write operations run inside a
single config transaction so concurrent edits (a request handler and the
favorites reconciliation worker, for example) never interleave.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..constants import (DEFAULT_DARK_END, DEFAULT_DARK_START,
                         DEFAULT_FAVORITE_COUNT, DEFAULT_TEXT_SIZE,
                         MAX_FAVORITE_COUNT, MAX_TEXT_SIZE,
                         MIN_FAVORITE_COUNT, MIN_TEXT_SIZE)
from ..utils.thread_safety import ThreadSafeConfigManager
from .catalog import FavoritesView
from .schedule import (DarkModeSchedule, FixedWindow, Manual, ScheduleConfig,
                       SunRelative, parse_hhmm)

logger = logging.getLogger("preferences")


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, int(value)))


def _format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _slot_count(config: Dict[str, Any]) -> int:
    try:
        return _clamp(config.get("favorite_count", DEFAULT_FAVORITE_COUNT), MIN_FAVORITE_COUNT, MAX_FAVORITE_COUNT)
    except (TypeError, ValueError):
        return DEFAULT_FAVORITE_COUNT


class LauncherPreferences:
    """Typed boundary over the thread-safe config store."""

    def __init__(self, config_manager: ThreadSafeConfigManager):
        self._config = config_manager

    def _load(self) -> Dict[str, Any]:
        return self._config.load_config()

    def _update(self, mutate) -> Any:
        """Run ``mutate(config)`` in one transaction and save if it changed anything.

        ``mutate`` returns whatever the caller should get back.
        """
        with self._config.config_transaction() as transaction:
            config = transaction.load()
            before = repr(config)
            result = mutate(config)
            if repr(config) != before and not transaction.save(config):
                raise RuntimeError("Could not persist preferences")
            return result

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------
    def favorite_count(self) -> int:
        return _slot_count(self._load())

    def set_favorite_count(self, count: int) -> int:
        count = _clamp(count, MIN_FAVORITE_COUNT, MAX_FAVORITE_COUNT)

        def _apply(config):
            config["favorite_count"] = count
            config["favorites"] = list(config.get("favorites") or [])[:count]
            return count
        return self._update(_apply)

    def favorites(self) -> List[str]:
        return list(self._load().get("favorites") or [])

    def favorites_view(self) -> FavoritesView:
        config = self._load()
        return FavoritesView(
            favorites=tuple(config.get("favorites") or ()),
            favorite_count=_slot_count(config),
            custom_labels=dict(config.get("custom_labels") or {}),
        )

    def is_favorite(self, key: str) -> bool:
        return key in self.favorites()

    def add_favorite(self, key: str) -> bool:
        """Append ``key`` unless already present or the favorite slots are full."""
        def _apply(config):
            favorites = list(config.get("favorites") or [])
            count = _slot_count(config)
            if key in favorites or len(favorites) >= count:
                return False
            favorites.append(key)
            config["favorites"] = favorites
            return True
        return self._update(_apply)

    def remove_favorite(self, key: str) -> bool:
        def _apply(config):
            favorites = list(config.get("favorites") or [])
            if key not in favorites:
                return False
            favorites.remove(key)
            config["favorites"] = favorites
            return True
        return self._update(_apply)

    def move_favorite(self, from_index: int, to_index: int) -> bool:
        def _apply(config):
            favorites = list(config.get("favorites") or [])
            if not (0 <= from_index < len(favorites) and 0 <= to_index < len(favorites)):
                return False
            favorites.insert(to_index, favorites.pop(from_index))
            config["favorites"] = favorites
            return True
        return self._update(_apply)

    def set_favorites_ordered(self, keys: Sequence[str]) -> List[str]:
        """Replace the favorite list, dropping duplicates and truncating to the slot count."""
        def _apply(config):
            count = _slot_count(config)
            ordered: List[str] = []
            for key in keys:
                if key and key not in ordered:
                    ordered.append(key)
            config["favorites"] = ordered[:count]
            return list(config["favorites"])
        return self._update(_apply)

    def prune_apps(self, stale_keys: Sequence[str]) -> None:
        """Forget apps that are no longer installed: favorite slots and label overrides."""
        stale = set(stale_keys)
        if not stale:
            return

        def _apply(config):
            favorites = [key for key in config.get("favorites") or [] if key not in stale]
            labels = {key: label for key, label in (config.get("custom_labels") or {}).items() if key not in stale}
            config["favorites"] = favorites[:_slot_count(config)]
            config["custom_labels"] = labels
        self._update(_apply)
        logger.debug("Pruned stale app keys: %s", sorted(stale))

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------
    def custom_labels(self) -> Dict[str, str]:
        return dict(self._load().get("custom_labels") or {})

    def get_custom_label(self, key: str) -> Optional[str]:
        return self.custom_labels().get(key) or None

    def set_custom_label(self, key: str, label: Optional[str]) -> None:
        """Store an override label; an empty label clears it."""
        label = (label or "").strip()

        def _apply(config):
            labels = dict(config.get("custom_labels") or {})
            if label:
                labels[key] = label
            else:
                labels.pop(key, None)
            config["custom_labels"] = labels
        self._update(_apply)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def text_size(self) -> int:
        try:
            return _clamp(self._load().get("text_size", DEFAULT_TEXT_SIZE), MIN_TEXT_SIZE, MAX_TEXT_SIZE)
        except (TypeError, ValueError):
            return DEFAULT_TEXT_SIZE

    def set_text_size(self, size: int) -> int:
        size = _clamp(size, MIN_TEXT_SIZE, MAX_TEXT_SIZE)

        def _apply(config):
            config["text_size"] = size
            return size
        return self._update(_apply)

    # ------------------------------------------------------------------
    # Dark mode schedule
    # ------------------------------------------------------------------
    def schedule_mode(self) -> DarkModeSchedule:
        return DarkModeSchedule.from_key(self._load().get("dark_mode_schedule"))

    def schedule_config(self) -> ScheduleConfig:
        config = self._load()
        mode = DarkModeSchedule.from_key(config.get("dark_mode_schedule"))
        manual_dark = bool(config.get("dark_mode", False))

        if mode is DarkModeSchedule.TIME_BASED:
            start = parse_hhmm(config.get("dark_start", DEFAULT_DARK_START))
            end = parse_hhmm(config.get("dark_end", DEFAULT_DARK_END))
            if start is None:
                start = parse_hhmm(DEFAULT_DARK_START)
            if end is None:
                end = parse_hhmm(DEFAULT_DARK_END)
            return FixedWindow(start=start, end=end)

        if mode is DarkModeSchedule.SUNRISE_SUNSET:
            location = self.location()
            if location is None:
                return SunRelative(fallback_dark=manual_dark)
            return SunRelative(latitude=location[0], longitude=location[1], fallback_dark=manual_dark)

        return Manual(dark=manual_dark)

    def set_schedule(self, mode: DarkModeSchedule) -> None:
        def _apply(config):
            config["dark_mode_schedule"] = mode.value
        self._update(_apply)

    def dark_mode(self) -> bool:
        """The manual switch, also the fallback for sunrise/sunset without a location."""
        return bool(self._load().get("dark_mode", False))

    def set_dark_mode(self, dark: bool) -> None:
        def _apply(config):
            config["dark_mode"] = bool(dark)
        self._update(_apply)

    def dark_window(self) -> Tuple[str, str]:
        """Fixed window bounds as stored (``HH:MM``)."""
        config = self._load()
        return config.get("dark_start", DEFAULT_DARK_START), config.get("dark_end", DEFAULT_DARK_END)

    def set_dark_window(self, start: str, end: str) -> Tuple[str, str]:
        """Store the fixed window bounds.

        Raises:
            ValueError: If either bound is not a valid ``HH:MM`` time
        """
        start_minutes, end_minutes = parse_hhmm(start), parse_hhmm(end)
        if start_minutes is None or end_minutes is None:
            raise ValueError(f"Invalid dark mode window {start!r}-{end!r}")
        bounds = _format_hhmm(start_minutes), _format_hhmm(end_minutes)

        def _apply(config):
            config["dark_start"], config["dark_end"] = bounds
            return bounds
        return self._update(_apply)

    # ------------------------------------------------------------------
    # Location
    # ------------------------------------------------------------------
    def location(self) -> Optional[Tuple[float, float]]:
        """Stored coordinates, or None when unset (0/0)."""
        config = self._load()
        try:
            latitude = float(config.get("location_latitude") or 0.0)
            longitude = float(config.get("location_longitude") or 0.0)
        except (TypeError, ValueError):
            return None
        if latitude == 0.0 and longitude == 0.0:
            return None
        return latitude, longitude

    def has_location(self) -> bool:
        return self.location() is not None

    def set_location(self, latitude: float, longitude: float) -> None:
        def _apply(config):
            config["location_latitude"] = float(latitude)
            config["location_longitude"] = float(longitude)
        self._update(_apply)

    # ------------------------------------------------------------------
    # Weather
    # ------------------------------------------------------------------
    def weather_enabled(self) -> bool:
        return bool(self._load().get("weather_enabled", False))

    def set_weather_enabled(self, enabled: bool) -> None:
        def _apply(config):
            config["weather_enabled"] = bool(enabled)
        self._update(_apply)

    def use_celsius(self) -> bool:
        return bool(self._load().get("use_celsius", False))

    def set_use_celsius(self, use_celsius: bool) -> None:
        def _apply(config):
            config["use_celsius"] = bool(use_celsius)
        self._update(_apply)

    def load_weather_cache(self) -> Tuple[Optional[str], float]:
        config = self._load()
        try:
            cached_at = float(config.get("weather_cache_time") or 0.0)
        except (TypeError, ValueError):
            cached_at = 0.0
        return config.get("weather_cache"), cached_at

    def save_weather_cache(self, record: str, timestamp: float) -> None:
        def _apply(config):
            config["weather_cache"] = record
            config["weather_cache_time"] = float(timestamp)
        self._update(_apply)
