"""Shared pytest fixtures for the BWLaunch test suite."""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

import pytest

from bwlaunch.app import create_app
from bwlaunch.config_schema import LauncherConfig
from bwlaunch.core.preferences import LauncherPreferences
from bwlaunch.core.weather import WeatherReading
from bwlaunch.services.service_manager import ServiceManager
from bwlaunch.utils.thread_safety import ThreadSafeConfigManager


class InMemoryConfigManager:
    """Stand-in for ConfigManager that keeps the config in a dict."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.data = LauncherConfig(**(initial or {})).to_dict()
        self.saves = 0
        self.fail_saves = False

    def load_config(self) -> Dict[str, Any]:
        return copy.deepcopy(self.data)

    def save_config(self, config: Dict[str, Any]) -> bool:
        if self.fail_saves:
            return False
        self.data = copy.deepcopy(config)
        self.saves += 1
        return True


class FakeApp:
    def __init__(self, package_name: str, activity_name: str = "Main", label: Optional[str] = None,
                 icon: Any = "icon", fail: bool = False):
        self.package_name = package_name
        self.activity_name = activity_name
        self._label = label if label is not None else package_name.rsplit(".", 1)[-1].title()
        self._icon = icon
        self._fail = fail

    def load_label(self) -> str:
        if self._fail:
            raise RuntimeError(f"cannot resolve {self.package_name}")
        return self._label

    def load_icon(self) -> Any:
        return self._icon


class FakeEnumerator:
    """Returns ``apps`` and counts calls; ``fail`` makes the whole call raise."""

    def __init__(self, apps: Optional[List[FakeApp]] = None):
        self.apps = list(apps or [])
        self.calls = 0
        self.fail = False

    def enumerate_launchable_apps(self):
        self.calls += 1
        if self.fail:
            raise OSError("package manager unavailable")
        return list(self.apps)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher:
    """Weather fetcher double: returns ``reading`` or raises ``error``."""

    def __init__(self, reading: Optional[WeatherReading] = None, error: Optional[Exception] = None):
        self.reading = reading
        self.error = error
        self.calls: List[tuple] = []

    def __call__(self, latitude: float, longitude: float, use_celsius: bool) -> Optional[WeatherReading]:
        self.calls.append((latitude, longitude, use_celsius))
        if self.error is not None:
            raise self.error
        return self.reading


def default_apps() -> List[FakeApp]:
    return [
        FakeApp("org.example.mail", label="mail"),
        FakeApp("org.example.calendar", label="Calendar"),
        FakeApp("org.example.books", label="Books"),
        FakeApp("com.bwlaunch.launcher", label="BWLaunch"),
    ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def base_config() -> InMemoryConfigManager:
    return InMemoryConfigManager()


@pytest.fixture
def config_store(base_config) -> ThreadSafeConfigManager:
    return ThreadSafeConfigManager(base_config)


@pytest.fixture
def preferences(config_store) -> LauncherPreferences:
    return LauncherPreferences(config_store)


@pytest.fixture
def enumerator() -> FakeEnumerator:
    return FakeEnumerator(default_apps())


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher(WeatherReading(temperature=64, weather_code=2, is_day=True))


@pytest.fixture
def services(config_store, enumerator, fetcher):
    manager = ServiceManager(config_manager=config_store, enumerator=enumerator, weather_fetcher=fetcher)
    yield manager
    manager.shutdown()


@pytest.fixture
def client(services):
    """Provide a fresh Flask test client for each test."""
    app = create_app(services, {"TESTING": True})
    with app.test_client() as test_client:
        yield test_client
