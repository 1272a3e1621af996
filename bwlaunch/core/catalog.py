#!/usr/bin/env python3
"""
📱 Installed application catalog with time-boxed caching.

- Enumerating launchable apps is expensive, so the sorted result is kept for a
  short freshness window and replaced atomically on refresh
- A single broken app (label/icon fails to resolve) is skipped, a failing
  enumeration yields an empty, non-cached snapshot
- Favorites are resolved against the live catalog; references to apps that
  disappeared are dropped and pruned from the preferences store in the
  background
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field, replace
from typing import (Any, Callable, Dict, Iterable, Iterator, List, Mapping,
                    NamedTuple, Optional, Protocol, Sequence, Tuple)

from ..constants import APP_CATALOG_TTL_SECONDS

logger = logging.getLogger("app_catalog")

KEY_SEPARATOR = "/"


class AppId(NamedTuple):
    """Stable identifier pair of a launchable entry point."""
    package_name: str
    activity_name: str

    @property
    def key(self) -> str:
        return f"{self.package_name}{KEY_SEPARATOR}{self.activity_name}"

    @classmethod
    def from_key(cls, key: str) -> "AppId":
        package_name, _, activity_name = key.partition(KEY_SEPARATOR)
        return cls(package_name, activity_name)


@dataclass(frozen=True)
class CatalogEntry:
    """One launchable application."""
    app_id: AppId
    label: str
    custom_label: Optional[str] = None
    icon: Any = field(default=None, compare=False, repr=False)

    @property
    def package_name(self) -> str:
        return self.app_id.package_name

    @property
    def activity_name(self) -> str:
        return self.app_id.activity_name

    @property
    def key(self) -> str:
        return self.app_id.key

    @property
    def display_label(self) -> str:
        return self.custom_label or self.label

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "package_name": self.package_name,
            "activity_name": self.activity_name,
            "label": self.label,
            "custom_label": self.custom_label,
            "display_label": self.display_label,
            "has_icon": self.icon is not None,
        }


@dataclass(frozen=True)
class CatalogSnapshot:
    """Sorted catalog captured at ``captured_at``.

    ``complete`` is False for the empty placeholder returned when enumeration
    failed; such a snapshot is never cached and never used for reconciliation.
    """
    entries: Tuple[CatalogEntry, ...]
    captured_at: float
    complete: bool = True

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class FavoritesView:
    """Consistent read of the favorite-related preferences."""
    favorites: Tuple[str, ...]
    favorite_count: int
    custom_labels: Mapping[str, str]


class LaunchableApp(Protocol):
    package_name: str
    activity_name: str

    def load_label(self) -> str: ...

    def load_icon(self) -> Any: ...


class AppEnumerator(Protocol):
    def enumerate_launchable_apps(self) -> Iterable[LaunchableApp]: ...


class FavoritesStore(Protocol):
    def favorites_view(self) -> FavoritesView: ...

    def prune_apps(self, stale_keys: Sequence[str]) -> None: ...


def resolve_label(entry: CatalogEntry, overrides: Mapping[str, str]) -> str:
    """Return the label to display for ``entry`` given the stored overrides.

    Overrides are looked up by entry key first, then by bare package name
    (the format older preference files used).
    """
    for key in (entry.key, entry.package_name):
        label = overrides.get(key)
        if label:
            return label
    return entry.display_label


def with_override(entry: CatalogEntry, overrides: Mapping[str, str]) -> CatalogEntry:
    label = resolve_label(entry, overrides)
    if label == entry.label:
        return entry
    return replace(entry, custom_label=label)


class ApplicationCatalogCache:
    """Thread-safe TTL cache over the launchable-app enumeration."""

    def __init__(
        self,
        enumerator: AppEnumerator,
        ttl_seconds: float = APP_CATALOG_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.time,
        exclude_packages: Iterable[str] = (),
        reconcile_executor: Optional[ThreadPoolExecutor] = None,
    ):
        self._enumerator = enumerator
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._exclude_packages = frozenset(exclude_packages)
        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._snapshot: Optional[CatalogSnapshot] = None
        self._executor = reconcile_executor
        self._owns_executor = reconcile_executor is None
        self._pending_reconcile: Optional[Future] = None
        self._stats = {
            'hits': 0,
            'refreshes': 0,
            'failures': 0,
            'skipped_entries': 0,
            'reconciliations': 0,
        }

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------
    def _fresh_snapshot(self) -> Optional[CatalogSnapshot]:
        with self._lock:
            snapshot = self._snapshot
            if snapshot is None:
                return None
            if (self._clock() - snapshot.captured_at) >= self._ttl:
                return None
            self._stats['hits'] += 1
            return snapshot

    def get_all(self, force_reload: bool = False) -> CatalogSnapshot:
        """Return all launchable apps, using the cached snapshot when fresh.

        Args:
            force_reload: Bypass the freshness window

        Returns:
            CatalogSnapshot sorted by case-insensitive label
        """
        if not force_reload:
            cached = self._fresh_snapshot()
            if cached is not None:
                return cached

        with self._refresh_lock:
            if not force_reload:
                # Another caller may have refreshed while we waited
                cached = self._fresh_snapshot()
                if cached is not None:
                    return cached
            return self._refresh()

    def _refresh(self) -> CatalogSnapshot:
        now = self._clock()
        try:
            discovered = list(self._enumerator.enumerate_launchable_apps())
        except Exception as exc:
            with self._lock:
                self._stats['failures'] += 1
            logger.warning("⚠️ App enumeration failed: %s", exc)
            return CatalogSnapshot(entries=(), captured_at=now, complete=False)

        entries: List[CatalogEntry] = []
        seen: set[AppId] = set()
        skipped = 0
        for app in discovered:
            entry = self._to_entry(app)
            if entry is None:
                skipped += 1
                continue
            if entry.package_name in self._exclude_packages or entry.app_id in seen:
                continue
            seen.add(entry.app_id)
            entries.append(entry)

        entries.sort(key=lambda e: e.label.lower())
        snapshot = CatalogSnapshot(entries=tuple(entries), captured_at=now)

        with self._lock:
            self._snapshot = snapshot
            self._stats['refreshes'] += 1
            self._stats['skipped_entries'] += skipped
        logger.debug("🔄 App catalog refreshed (%d apps, %d skipped)", len(entries), skipped)
        return snapshot

    def _to_entry(self, app: LaunchableApp) -> Optional[CatalogEntry]:
        try:
            app_id = AppId(app.package_name, app.activity_name)
            label = str(app.load_label())
            icon = app.load_icon()
        except Exception as exc:
            logger.debug("Skipping app %r: %s", getattr(app, "package_name", app), exc)
            return None
        return CatalogEntry(app_id=app_id, label=label, icon=icon)

    def find(self, package_name: str) -> Optional[CatalogEntry]:
        """Return the first catalog entry of ``package_name``."""
        for entry in self.get_all():
            if entry.package_name == package_name:
                return entry
        return None

    def find_by_key(self, key: str) -> Optional[CatalogEntry]:
        return _index(self.get_all()).get(key)

    def invalidate(self) -> None:
        """Drop the snapshot so the next read re-enumerates."""
        with self._lock:
            self._snapshot = None
        logger.debug("🗑️ App catalog invalidated")

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------
    def get_favorites(self, store: FavoritesStore) -> List[CatalogEntry]:
        """Resolve the stored favorites against the current catalog.

        Favorites pointing at uninstalled apps are left out of the result and
        removed (with their label overrides) from ``store`` in the background.
        """
        snapshot = self.get_all()
        view = store.favorites_view()
        index = _index(snapshot)

        favorites: List[CatalogEntry] = []
        stale: List[str] = []
        seen: set[AppId] = set()
        for key in view.favorites[:max(0, view.favorite_count)]:
            entry = index.get(key)
            if entry is None:
                if key not in stale:
                    stale.append(key)
                continue
            # A legacy package-only key and its full key resolve to the same app
            if entry.app_id in seen:
                continue
            seen.add(entry.app_id)
            favorites.append(with_override(entry, view.custom_labels))

        if stale and snapshot.complete:
            self._schedule_reconcile(store, stale)
        return favorites

    def _schedule_reconcile(self, store: FavoritesStore, stale_keys: List[str]) -> None:
        logger.info("🧹 Pruning %d favorite(s) no longer installed: %s", len(stale_keys), ", ".join(stale_keys))

        def _run() -> None:
            try:
                store.prune_apps(stale_keys)
                with self._lock:
                    self._stats['reconciliations'] += 1
            except Exception as exc:
                logger.warning("⚠️ Favorite reconciliation failed: %s", exc)

        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="catalog-reconcile")
            self._pending_reconcile = self._executor.submit(_run)

    def wait_for_reconciliation(self, timeout: Optional[float] = None) -> bool:
        """Block until the last scheduled reconciliation finished.

        Returns:
            True if nothing is pending or it completed within ``timeout``
        """
        with self._lock:
            pending = self._pending_reconcile
        if pending is None:
            return True
        try:
            pending.result(timeout=timeout)
        except FutureTimeoutError:
            return False
        return True

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            snapshot = self._snapshot
            stats = dict(self._stats)
        stats['ttl'] = self._ttl
        stats['cached_apps'] = len(snapshot) if snapshot else 0
        stats['age'] = max(0.0, self._clock() - snapshot.captured_at) if snapshot else None
        return stats

    def shutdown(self) -> None:
        with self._lock:
            executor = self._executor if self._owns_executor else None
            self._executor = None if self._owns_executor else self._executor
        if executor is not None:
            executor.shutdown(wait=True)


def _index(snapshot: CatalogSnapshot) -> Dict[str, CatalogEntry]:
    """Map entry keys, and bare package names for legacy keys, to entries."""
    index: Dict[str, CatalogEntry] = {}
    for entry in snapshot:
        index.setdefault(entry.key, entry)
        index.setdefault(entry.package_name, entry)
    return index
