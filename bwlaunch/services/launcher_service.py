"""
📱 Launcher Service - App Catalog & Favorites
=============================================

Lists installed apps, resolves the favorites shown on the home screen and
applies user edits (favorite slots, custom labels).
"""

from typing import Any, Dict, List, Optional, Sequence

from . import BaseService, ServiceResult
from ..core.catalog import ApplicationCatalogCache, CatalogEntry, with_override
from ..core.preferences import LauncherPreferences


def _entries_payload(entries: Sequence[CatalogEntry]) -> List[Dict[str, Any]]:
    return [entry.to_dict() for entry in entries]


class LauncherService(BaseService):
    """Service for the app drawer and favorites list."""

    def __init__(self, catalog: ApplicationCatalogCache, preferences: LauncherPreferences):
        super().__init__("launcher")
        self.catalog = catalog
        self.preferences = preferences

    def get_all_apps(self, force_reload: bool = False) -> ServiceResult:
        try:
            snapshot = self.catalog.get_all(force_reload=force_reload)
            labels = self.preferences.custom_labels()
            entries = [with_override(entry, labels) for entry in snapshot]
            return self._success_result(
                data={
                    "apps": _entries_payload(entries),
                    "count": len(entries),
                    "complete": snapshot.complete,
                    "captured_at": snapshot.captured_at,
                },
                message=None if snapshot.complete else "App list temporarily unavailable",
            )
        except Exception as e:
            return self._handle_error(e, "get_all_apps")

    def get_favorites(self) -> ServiceResult:
        try:
            favorites = self.catalog.get_favorites(self.preferences)
            return self._success_result(data={
                "favorites": _entries_payload(favorites),
                "favorite_count": self.preferences.favorite_count(),
            })
        except Exception as e:
            return self._handle_error(e, "get_favorites")

    def add_favorite(self, key: str) -> ServiceResult:
        try:
            entry = self.catalog.find_by_key(key)
            if entry is None:
                return self._error_result(f"App '{key}' is not installed", "APP_NOT_FOUND")
            if self.preferences.is_favorite(entry.key):
                return self._error_result(f"'{entry.label}' is already a favorite", "ALREADY_FAVORITE")
            if not self.preferences.add_favorite(entry.key):
                return self._error_result(
                    f"All {self.preferences.favorite_count()} favorite slots are in use",
                    "FAVORITES_FULL",
                )
            self.logger.info(f"⭐ Added favorite {entry.key}")
            return self.get_favorites()
        except Exception as e:
            return self._handle_error(e, "add_favorite")

    def remove_favorite(self, key: str) -> ServiceResult:
        try:
            if not self.preferences.remove_favorite(key):
                return self._error_result(f"'{key}' is not a favorite", "NOT_FAVORITE")
            self.logger.info(f"✂️ Removed favorite {key}")
            return self.get_favorites()
        except Exception as e:
            return self._handle_error(e, "remove_favorite")

    def set_favorites(self, keys: Sequence[str]) -> ServiceResult:
        """Replace the favorites with ``keys`` (in order, truncated to the slot count)."""
        try:
            self.preferences.set_favorites_ordered(list(keys))
            return self.get_favorites()
        except Exception as e:
            return self._handle_error(e, "set_favorites")

    def move_favorite(self, from_index: int, to_index: int) -> ServiceResult:
        try:
            if not self.preferences.move_favorite(from_index, to_index):
                return self._error_result("Favorite position out of range", "INVALID_POSITION")
            return self.get_favorites()
        except Exception as e:
            return self._handle_error(e, "move_favorite")

    def set_custom_label(self, key: str, label: Optional[str]) -> ServiceResult:
        try:
            self.preferences.set_custom_label(key, label)
            return self._success_result(
                data={"key": key, "custom_label": self.preferences.get_custom_label(key)},
                message="Label cleared" if not (label or "").strip() else "Label saved",
            )
        except Exception as e:
            return self._handle_error(e, "set_custom_label")

    def invalidate_catalog(self) -> ServiceResult:
        self.catalog.invalidate()
        return self._success_result(message="App catalog invalidated")

    def health_check(self) -> ServiceResult:
        base = super().health_check()
        if not base.success:
            return base
        stats = self.catalog.get_statistics()
        status = "healthy" if stats.get("failures", 0) == 0 or stats.get("cached_apps") else "degraded"
        return self._success_result(data={"status": status, "service": self.name, "catalog": stats})

    def shutdown(self) -> None:
        self.catalog.shutdown()
        super().shutdown()
