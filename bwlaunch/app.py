"""
BWLaunch Application
Flask JSON API the launcher front-end talks to
"""

import logging
import os
from typing import Any, Dict, Optional

from flask import Flask
from flask_compress import Compress

from .routes import apps_bp, health_bp, settings_bp, theme_bp, weather_bp
from .routes.errors import register_error_handlers
from .routes.helpers import SERVICES_EXTENSION
from .services.service_manager import ServiceManager, get_service_manager

logger = logging.getLogger("bwlaunch")

compress = Compress()


def _configure_compression(app: Flask) -> None:
    app.config.setdefault('COMPRESS_REGISTER', True)
    app.config.setdefault('COMPRESS_ALGORITHM', os.getenv('BWLAUNCH_COMPRESS_ALGO', 'gzip'))
    app.config.setdefault('COMPRESS_MIMETYPES', ('application/json',))
    try:
        app.config['COMPRESS_LEVEL'] = max(1, min(9, int(os.getenv('BWLAUNCH_COMPRESS_LEVEL', '6'))))
    except ValueError:
        app.config['COMPRESS_LEVEL'] = 6
    try:
        app.config['COMPRESS_MIN_SIZE'] = max(256, int(os.getenv('BWLAUNCH_COMPRESS_MIN_BYTES', '1024')))
    except ValueError:
        app.config['COMPRESS_MIN_SIZE'] = 1024


def create_app(
    service_manager: Optional[ServiceManager] = None,
    config_overrides: Optional[Dict[str, Any]] = None,
) -> Flask:
    """Build the Flask application.

    Args:
        service_manager: Services to expose (defaults to the global manager)
        config_overrides: Extra Flask config values (e.g. ``TESTING``)

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    app.config['JSON_SORT_KEYS'] = False
    _configure_compression(app)
    if config_overrides:
        app.config.update(config_overrides)

    compress.init_app(app)

    app.extensions[SERVICES_EXTENSION] = service_manager or get_service_manager()

    for blueprint in (apps_bp, weather_bp, theme_bp, settings_bp, health_bp):
        app.register_blueprint(blueprint)
    register_error_handlers(app)

    logger.debug("🧩 Flask app created with %d blueprints", len(app.blueprints))
    return app


__all__ = ["create_app"]
