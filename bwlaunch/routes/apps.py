"""
📱 App Catalog Routes Blueprint
Handles the app drawer, favorites and custom labels.
"""

import logging

from flask import Blueprint, request

from .helpers import api_error, api_error_handler, get_services, result_response

apps_bp = Blueprint("apps", __name__)
logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


@apps_bp.route("/api/apps")
@api_error_handler
def list_apps():
    """📋 All launchable apps, sorted by label."""
    force = request.args.get("refresh", "").lower() in _TRUTHY
    return result_response(get_services().launcher.get_all_apps(force_reload=force))


@apps_bp.route("/api/apps/favorites")
@api_error_handler
def list_favorites():
    return result_response(get_services().launcher.get_favorites())


@apps_bp.route("/api/apps/favorites", methods=["POST"])
@api_error_handler
def update_favorites():
    """⭐ Add one favorite (``{"key": ...}``) or replace the list (``{"keys": [...]}``)."""
    payload = request.get_json(silent=True) or {}
    launcher = get_services().launcher

    if "keys" in payload:
        keys = payload["keys"]
        if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
            return api_error("'keys' must be a list of app keys", error_code="invalid_keys")
        return result_response(launcher.set_favorites(keys))

    if "from" in payload and "to" in payload:
        try:
            from_index, to_index = int(payload["from"]), int(payload["to"])
        except (TypeError, ValueError):
            return api_error("'from' and 'to' must be integers", error_code="invalid_position")
        return result_response(launcher.move_favorite(from_index, to_index))

    key = payload.get("key")
    if not isinstance(key, str) or not key.strip():
        return api_error("Missing app key", error_code="missing_key")
    return result_response(launcher.add_favorite(key.strip()))


@apps_bp.route("/api/apps/favorites/<path:key>", methods=["DELETE"])
@api_error_handler
def delete_favorite(key: str):
    return result_response(get_services().launcher.remove_favorite(key))


@apps_bp.route("/api/apps/labels/<path:key>", methods=["PUT"])
@api_error_handler
def put_label(key: str):
    """🏷️ Set a custom label; an empty label restores the app's own name."""
    payload = request.get_json(silent=True) or {}
    label = payload.get("label")
    if label is not None and not isinstance(label, str):
        return api_error("'label' must be a string", error_code="invalid_label")
    return result_response(get_services().launcher.set_custom_label(key, label))


@apps_bp.route("/api/apps/invalidate", methods=["POST"])
@api_error_handler
def invalidate_apps():
    """🔄 Forget the cached app list (e.g. after installing an app)."""
    return result_response(get_services().launcher.invalidate_catalog())
