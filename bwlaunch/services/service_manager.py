"""
🔧 Service Manager - Central Service Coordination
===============================================

Wires the launcher core to its collaborators and exposes the services to the
Flask application.
"""

import logging
from typing import Any, Dict, Optional

from . import ServiceResult
from ..api.apps import DesktopEntryEnumerator
from ..constants import SELF_PACKAGE_NAME
from ..core.catalog import AppEnumerator, ApplicationCatalogCache
from ..core.preferences import LauncherPreferences
from ..core.weather import WeatherFetcher
from ..utils.thread_safety import ThreadSafeConfigManager
from .launcher_service import LauncherService
from .settings_service import SettingsService
from .theme_service import ThemeService
from .weather_service import WeatherService

DEGRADED_STATES = {"degraded", "warning", "warn", "error", "fail", "failed", "unhealthy"}


class ServiceManager:
    """Central manager for all application services."""

    def __init__(
        self,
        config_manager: Optional[ThreadSafeConfigManager] = None,
        enumerator: Optional[AppEnumerator] = None,
        weather_fetcher: Optional[WeatherFetcher] = None,
    ):
        self.logger = logging.getLogger("service_manager")
        if config_manager is None:
            # Importing the config module initializes the global store
            from ..config import get_thread_safe_config_manager
            config_manager = get_thread_safe_config_manager()
        self.config_manager = config_manager
        self.preferences = LauncherPreferences(self.config_manager)

        catalog = ApplicationCatalogCache(
            enumerator or DesktopEntryEnumerator(),
            exclude_packages=(SELF_PACKAGE_NAME,),
        )
        self.launcher = LauncherService(catalog, self.preferences)
        self.weather = WeatherService(self.preferences, fetcher=weather_fetcher)
        self.theme = ThemeService(self.preferences)
        self.settings = SettingsService(self.preferences)

        self.services = {
            "launcher": self.launcher,
            "weather": self.weather,
            "theme": self.theme,
            "settings": self.settings,
        }

        self._initialize_all()
        self.config_manager.add_change_listener(self.theme.on_config_changed)

    def _initialize_all(self) -> None:
        self.logger.info("🚀 Initializing service manager...")
        for name, service in self.services.items():
            result = service.initialize()
            if result.success:
                self.logger.debug(f"✅ {name} service initialized")
            else:
                self.logger.error(f"❌ {name} service initialization failed: {result.message}")
        self.logger.info("🎯 Service manager initialization completed")

    def get_service(self, name: str) -> Optional[Any]:
        return self.services.get(name)

    def health_check_all(self) -> ServiceResult:
        """Perform health check on all services."""
        results: Dict[str, Dict[str, Any]] = {}
        overall_healthy = True

        for name, service in self.services.items():
            try:
                health = service.health_check()
            except Exception as e:
                self.logger.error(f"Error during {name} health check: {e}")
                health = ServiceResult(success=False, message=str(e), error_code="HEALTH_CHECK_FAILED")

            if health.success and isinstance(health.data, dict):
                status_payload: Dict[str, Any] = health.data
            elif health.success:
                status_payload = {"status": "healthy", "details": health.data}
            else:
                status_payload = {"error": health.message}

            raw_status = status_payload.get("status")
            status_value = raw_status.lower() if isinstance(raw_status, str) else None

            service_healthy = health.success and status_value not in DEGRADED_STATES
            results[name] = {"healthy": service_healthy, "status": status_payload}
            if status_value:
                results[name]["status_summary"] = status_value
            if not service_healthy:
                overall_healthy = False

        return ServiceResult(
            success=True,
            data={
                "overall_healthy": overall_healthy,
                "services": results,
                "total_services": len(self.services),
                "healthy_services": sum(1 for r in results.values() if r["healthy"]),
            },
            message="Health check completed for all services"
        )

    def shutdown(self) -> None:
        self.config_manager.remove_change_listener(self.theme.on_config_changed)
        for name, service in self.services.items():
            try:
                service.shutdown()
            except Exception as e:
                self.logger.warning(f"⚠️ {name} service shutdown failed: {e}")


_service_manager: Optional[ServiceManager] = None


def get_service_manager() -> ServiceManager:
    """Get the global service manager instance."""
    global _service_manager
    if _service_manager is None:
        _service_manager = ServiceManager()
    return _service_manager


def get_service(name: str) -> Optional[Any]:
    return get_service_manager().get_service(name)
