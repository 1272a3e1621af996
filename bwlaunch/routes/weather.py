"""
🌦️ Weather Routes Blueprint
"""

from flask import Blueprint

from .helpers import api_error_handler, get_services, result_response

weather_bp = Blueprint("weather", __name__)


@weather_bp.route("/api/weather")
@api_error_handler
def get_weather():
    """Weather widget payload; ``data.status`` tells the UI what to show."""
    return result_response(get_services().weather.get_weather())
