"""
🌓 Theme Routes Blueprint
Dark mode state and sunrise/sunset info.
"""

from flask import Blueprint

from .helpers import api_error_handler, get_services, result_response

theme_bp = Blueprint("theme", __name__)


@theme_bp.route("/api/theme")
@api_error_handler
def get_theme():
    return result_response(get_services().theme.get_theme())


@theme_bp.route("/api/theme/sun")
@api_error_handler
def get_sun_times():
    """🌅 Today's sunrise and sunset for the stored location."""
    return result_response(get_services().theme.get_sun_times())
