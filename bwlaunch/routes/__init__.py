"""
BWLaunch Route Blueprints
"""

from .apps import apps_bp
from .health import health_bp
from .settings import settings_bp
from .theme import theme_bp
from .weather import weather_bp

__all__ = [
    "apps_bp",
    "health_bp",
    "settings_bp",
    "theme_bp",
    "weather_bp",
]
