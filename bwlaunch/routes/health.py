"""
🩺 Health & Status Routes Blueprint
Handles health checks and service status endpoints.
"""

import logging

from flask import Blueprint, jsonify

from ..version import VERSION
from .helpers import api_error, api_response, get_services

health_bp = Blueprint("health", __name__)
logger = logging.getLogger(__name__)


@health_bp.route("/healthz")
def healthz():
    """Basic health check endpoint."""
    return jsonify({"ok": True, "version": str(VERSION)})


@health_bp.route("/api/services/health")
def api_services_health():
    """📊 Get health status of all services."""
    try:
        result = get_services().health_check_all()
    except Exception as e:
        logger.error(f"Error in services health check: {e}")
        return api_error(str(e), status=500, error_code="services_health_exception")
    if not result.success:
        return api_error(result.message or "Health check failed", status=500, error_code="services_health_error")
    return api_response(True, data={"timestamp": result.timestamp.isoformat(), "health": result.data})


@health_bp.route("/api/config/status")
def api_config_status():
    """📊 Thread-safe config cache statistics."""
    return api_response(True, data={"config": get_services().config_manager.get_stats()})
