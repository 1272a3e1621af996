"""
HTTP API tests through the Flask test client.

Covers the response envelope, the app drawer and favorites endpoints, the
weather widget states, theme/sun info and the health endpoints.
"""

import pytest

from bwlaunch.core.schedule import DarkModeSchedule
from bwlaunch.core.weather import CachedWeather, WeatherReading
from bwlaunch.version import VERSION

MAIL = "org.example.mail/Main"
BOOKS = "org.example.books/Main"
CALENDAR = "org.example.calendar/Main"


def favorite_keys(response):
    return [entry["key"] for entry in response.get_json()["data"]["favorites"]]


class TestEnvelope:
    def test_success_envelope(self, client):
        response = client.get("/api/apps")
        payload = response.get_json()

        assert response.status_code == 200
        assert payload["success"] is True
        assert payload["timestamp"].endswith("Z")
        assert response.headers["X-Request-ID"] == payload["request_id"]

    def test_unknown_route_is_json(self, client):
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert response.get_json()["error_code"] == "not_found"

    def test_wrong_method_is_json(self, client):
        response = client.delete("/api/apps")

        assert response.status_code == 405
        assert response.get_json()["error_code"] == "method_not_allowed"


class TestAppsEndpoint:
    def test_lists_sorted_apps_without_launcher(self, client):
        data = client.get("/api/apps").get_json()["data"]

        assert [app["label"] for app in data["apps"]] == ["Books", "Calendar", "mail"]
        assert data["count"] == 3
        assert data["complete"] is True

    def test_refresh_forces_enumeration(self, client, enumerator):
        client.get("/api/apps")
        client.get("/api/apps")
        assert enumerator.calls == 1

        client.get("/api/apps?refresh=1")
        assert enumerator.calls == 2

    def test_custom_label_applied(self, client, preferences):
        preferences.set_custom_label(BOOKS, "Reading")

        apps = client.get("/api/apps").get_json()["data"]["apps"]
        books = next(app for app in apps if app["key"] == BOOKS)

        assert books["display_label"] == "Reading"
        assert books["label"] == "Books"

    def test_enumeration_failure_reports_incomplete(self, client, enumerator):
        enumerator.fail = True
        payload = client.get("/api/apps").get_json()

        assert payload["success"] is True
        assert payload["data"]["complete"] is False
        assert payload["data"]["apps"] == []

    def test_invalidate(self, client, enumerator):
        client.get("/api/apps")
        assert client.post("/api/apps/invalidate").status_code == 200
        client.get("/api/apps")

        assert enumerator.calls == 2


class TestFavoritesEndpoint:
    def test_empty_by_default(self, client):
        data = client.get("/api/apps/favorites").get_json()["data"]

        assert data["favorites"] == []
        assert data["favorite_count"] == 5

    def test_add_favorite(self, client, preferences):
        response = client.post("/api/apps/favorites", json={"key": MAIL})

        assert response.status_code == 200
        assert favorite_keys(response) == [MAIL]
        assert preferences.favorites() == [MAIL]

    def test_add_by_package_name_stores_full_key(self, client, preferences):
        client.post("/api/apps/favorites", json={"key": "org.example.books"})
        assert preferences.favorites() == [BOOKS]

    def test_add_duplicate_conflicts(self, client):
        client.post("/api/apps/favorites", json={"key": MAIL})
        response = client.post("/api/apps/favorites", json={"key": MAIL})

        assert response.status_code == 409
        assert response.get_json()["error_code"] == "already_favorite"

    def test_add_when_full_conflicts(self, client, preferences):
        preferences.set_favorite_count(1)
        client.post("/api/apps/favorites", json={"key": MAIL})

        response = client.post("/api/apps/favorites", json={"key": BOOKS})

        assert response.status_code == 409
        assert response.get_json()["error_code"] == "favorites_full"

    def test_add_unknown_app(self, client):
        response = client.post("/api/apps/favorites", json={"key": "org.example.ghost/Main"})

        assert response.status_code == 404
        assert response.get_json()["error_code"] == "app_not_found"

    @pytest.mark.parametrize("body", [{}, {"key": ""}, {"key": 5}])
    def test_add_requires_key(self, client, body):
        response = client.post("/api/apps/favorites", json=body)

        assert response.status_code == 400
        assert response.get_json()["error_code"] == "missing_key"

    def test_replace_list(self, client):
        response = client.post("/api/apps/favorites", json={"keys": [CALENDAR, MAIL, CALENDAR]})

        assert response.status_code == 200
        assert favorite_keys(response) == [CALENDAR, MAIL]

    def test_replace_rejects_non_list(self, client):
        response = client.post("/api/apps/favorites", json={"keys": MAIL})

        assert response.status_code == 400
        assert response.get_json()["error_code"] == "invalid_keys"

    def test_move(self, client):
        client.post("/api/apps/favorites", json={"keys": [MAIL, BOOKS, CALENDAR]})

        response = client.post("/api/apps/favorites", json={"from": 0, "to": 2})

        assert favorite_keys(response) == [BOOKS, CALENDAR, MAIL]

    @pytest.mark.parametrize("body", [{"from": 0, "to": 9}, {"from": "first", "to": 1}])
    def test_move_rejects_bad_positions(self, client, body):
        client.post("/api/apps/favorites", json={"keys": [MAIL, BOOKS]})

        response = client.post("/api/apps/favorites", json=body)

        assert response.status_code == 400
        assert response.get_json()["error_code"] == "invalid_position"

    def test_delete(self, client):
        client.post("/api/apps/favorites", json={"keys": [MAIL, BOOKS]})

        response = client.delete(f"/api/apps/favorites/{MAIL}")

        assert response.status_code == 200
        assert favorite_keys(response) == [BOOKS]

    def test_delete_non_favorite(self, client):
        response = client.delete(f"/api/apps/favorites/{MAIL}")

        assert response.status_code == 404
        assert response.get_json()["error_code"] == "not_favorite"

    def test_uninstalled_favorite_hidden_and_pruned(self, client, preferences, services):
        preferences.set_favorites_ordered(["org.example.gone/Main", MAIL])

        response = client.get("/api/apps/favorites")
        services.launcher.catalog.wait_for_reconciliation(timeout=2)

        assert favorite_keys(response) == [MAIL]
        assert preferences.favorites() == [MAIL]


class TestLabelsEndpoint:
    def test_set_label(self, client, preferences):
        response = client.put(f"/api/apps/labels/{MAIL}", json={"label": "Post"})

        assert response.status_code == 200
        assert response.get_json()["data"]["custom_label"] == "Post"
        assert preferences.get_custom_label(MAIL) == "Post"

    def test_empty_label_clears(self, client, preferences):
        preferences.set_custom_label(MAIL, "Post")

        response = client.put(f"/api/apps/labels/{MAIL}", json={"label": ""})

        assert response.get_json()["data"]["custom_label"] is None
        assert response.get_json()["message"] == "Label cleared"

    def test_non_string_label_rejected(self, client):
        response = client.put(f"/api/apps/labels/{MAIL}", json={"label": ["Post"]})

        assert response.status_code == 400
        assert response.get_json()["error_code"] == "invalid_label"


class TestWeatherEndpoint:
    def weather(self, client):
        return client.get("/api/weather").get_json()["data"]

    def test_disabled_by_default(self, client):
        assert self.weather(client) == {"status": "disabled"}

    def test_location_required(self, client, config_store):
        config_store.set_config_value("weather_enabled", True)
        assert self.weather(client)["status"] == "location_required"

    def test_current_reading(self, client, config_store, preferences, fetcher):
        config_store.set_config_value("weather_enabled", True)
        preferences.set_location(51.5, -0.12)

        data = self.weather(client)

        assert data["status"] == "ok"
        assert data["display"] == "64° Cloudy"
        assert data["source"] == "network"
        assert fetcher.calls == [(51.5, -0.12, False)]

        assert self.weather(client)["source"] == "cache"
        assert len(fetcher.calls) == 1

    def test_source_belongs_to_this_request(self, client, config_store, preferences, services, monkeypatch):
        config_store.set_config_value("weather_enabled", True)
        preferences.set_location(51.5, -0.12)
        cache = services.weather.cache

        def get_while_another_request_falls_back(coords, use_celsius, fetcher):
            cache.last_source = "fallback"
            return CachedWeather(WeatherReading(64, 2, True), "network")

        monkeypatch.setattr(cache, "get", get_while_another_request_falls_back)

        assert self.weather(client)["source"] == "network"

    def test_unavailable_without_reading(self, client, config_store, preferences, fetcher):
        config_store.set_config_value("weather_enabled", True)
        preferences.set_location(51.5, -0.12)
        fetcher.reading = None

        assert self.weather(client) == {"status": "weather_unavailable", "display": "Unavailable"}


class TestThemeEndpoint:
    def test_manual_light_by_default(self, client):
        data = client.get("/api/theme").get_json()["data"]

        assert data["dark"] is False
        assert data["theme"] == "light"
        assert data["schedule"] == "manual"
        assert data["monitor"] == "idle"

    def test_manual_dark(self, client, preferences):
        preferences.set_dark_mode(True)
        assert client.get("/api/theme").get_json()["data"]["theme"] == "dark"

    def test_reports_theme_applied_by_monitor(self, client, preferences, services):
        assert client.get("/api/theme").get_json()["data"]["applied_dark"] is None

        services.theme.monitor.evaluate_once()
        preferences.set_dark_mode(True)
        services.theme.monitor.evaluate_once()

        assert client.get("/api/theme").get_json()["data"]["applied_dark"] is True

    def test_automatic_schedule_starts_monitor(self, client, preferences, services):
        preferences.set_schedule(DarkModeSchedule.TIME_BASED)
        assert client.get("/api/theme").get_json()["data"]["monitor"] == "polling"

        preferences.set_schedule(DarkModeSchedule.MANUAL)
        assert services.theme.monitor.state == "idle"

    def test_sun_requires_location(self, client):
        response = client.get("/api/theme/sun")

        assert response.status_code == 409
        assert response.get_json()["error_code"] == "location_required"

    def test_sun_times(self, client, preferences):
        preferences.set_location(48.2, 16.37)

        data = client.get("/api/theme/sun").get_json()["data"]

        assert data["sunrise_minutes"] < data["sunset_minutes"]
        assert len(data["sunrise"]) == 5
        assert data["latitude"] == 48.2


class TestHealthEndpoints:
    def test_healthz(self, client):
        assert client.get("/healthz").get_json() == {"ok": True, "version": VERSION}

    def test_services_health(self, client):
        data = client.get("/api/services/health").get_json()["data"]

        assert data["health"]["overall_healthy"] is True
        assert data["health"]["total_services"] == 4
        assert set(data["health"]["services"]) == {"launcher", "weather", "theme", "settings"}

    def test_degraded_weather_reported(self, client, config_store, preferences, fetcher):
        config_store.set_config_value("weather_enabled", True)
        preferences.set_location(51.5, -0.12)
        fetcher.reading = None
        client.get("/api/weather")

        health = client.get("/api/services/health").get_json()["data"]["health"]

        assert health["overall_healthy"] is False
        assert health["services"]["weather"]["status_summary"] == "degraded"

    def test_config_status(self, client, preferences):
        preferences.set_dark_mode(True)

        stats = client.get("/api/config/status").get_json()["data"]["config"]

        assert stats["generation"] >= 1
        assert stats["change_listeners_count"] == 1
