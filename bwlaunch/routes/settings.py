"""
⚙️ Settings Routes Blueprint
Read and update the settings screen values.
"""

from flask import Blueprint, request

from .helpers import api_error, api_error_handler, get_services, result_response

settings_bp = Blueprint("settings", __name__)


@settings_bp.route("/api/settings")
@api_error_handler
def get_settings():
    return result_response(get_services().settings.get_settings())


@settings_bp.route("/api/settings", methods=["PUT", "PATCH"])
@api_error_handler
def update_settings():
    """⚙️ Update any subset of the settings; unknown or invalid values reject the whole request."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or not payload:
        return api_error("Expected a JSON object with at least one setting", error_code="invalid_request")
    return result_response(get_services().settings.update_settings(payload))
