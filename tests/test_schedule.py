"""Dark mode schedule policy tests."""

import datetime as dt
from zoneinfo import ZoneInfo

import pytest

from bwlaunch.core.schedule import (DarkModeSchedule, FixedWindow, Manual,
                                    SunRelative, is_dark_active,
                                    is_in_dark_window, parse_hhmm,
                                    should_use_dark_mode)
from bwlaunch.core.sun import compute_sun_times

TODAY = dt.date(2024, 6, 20)


def hm(value: str) -> int:
    return parse_hhmm(value)


class TestManual:
    @pytest.mark.parametrize("dark", [True, False])
    def test_returns_stored_switch(self, dark):
        assert is_dark_active(Manual(dark), hm("12:00"), TODAY) is dark


class TestFixedWindow:
    @pytest.mark.parametrize("now,expected", [
        ("23:00", True),
        ("10:00", False),
        ("06:00", False),
        ("05:59", True),
        ("22:00", True),
        ("21:59", False),
    ])
    def test_window_wrapping_midnight(self, now, expected):
        config = FixedWindow(start=hm("22:00"), end=hm("06:00"))
        assert is_dark_active(config, hm(now), TODAY) is expected

    @pytest.mark.parametrize("now,expected", [
        ("08:00", False),
        ("07:59", True),
        ("17:59", False),
        ("18:00", True),
        ("00:00", True),
    ])
    def test_window_within_one_day(self, now, expected):
        config = FixedWindow(start=hm("08:00"), end=hm("18:00"))
        assert is_dark_active(config, hm(now), TODAY) is expected

    def test_equal_bounds_is_always_dark(self):
        assert is_in_dark_window(600, 600, 0) is True
        assert is_in_dark_window(600, 600, 600) is True


class TestSunRelative:
    def test_dark_before_sunrise_and_after_sunset(self):
        config = SunRelative(latitude=51.5, longitude=-0.12)
        sunrise, sunset = compute_sun_times(51.5, -0.12, TODAY.timetuple().tm_yday, 60)

        assert is_dark_active(config, sunrise - 1, TODAY, 60) is True
        assert is_dark_active(config, sunrise, TODAY, 60) is False
        assert is_dark_active(config, hm("13:00"), TODAY, 60) is False
        assert is_dark_active(config, sunset, TODAY, 60) is True

    @pytest.mark.parametrize("fallback", [True, False])
    def test_missing_coordinates_fall_back_to_manual_switch(self, fallback):
        config = SunRelative(fallback_dark=fallback)
        assert config.has_location is False
        assert is_dark_active(config, hm("03:00"), TODAY) is fallback
        assert is_dark_active(config, hm("13:00"), TODAY) is fallback

    def test_partial_coordinates_count_as_missing(self):
        assert SunRelative(latitude=10.0).has_location is False


def test_unknown_config_type_rejected():
    with pytest.raises(TypeError):
        is_dark_active("manual", 0, TODAY)


class TestParseHHMM:
    def test_valid(self):
        assert parse_hhmm("00:00") == 0
        assert parse_hhmm("7:05") == 425
        assert parse_hhmm("23:59") == 1439

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", None, "12"])
    def test_invalid(self, value):
        assert parse_hhmm(value) is None


def test_schedule_keys():
    assert DarkModeSchedule.from_key("time_based") is DarkModeSchedule.TIME_BASED
    assert DarkModeSchedule.from_key("sunrise_sunset") is DarkModeSchedule.SUNRISE_SUNSET
    assert DarkModeSchedule.from_key("bogus") is DarkModeSchedule.MANUAL
    assert DarkModeSchedule.from_key(None) is DarkModeSchedule.MANUAL


class TestShouldUseDarkMode:
    def test_uses_local_clock_of_aware_datetime(self):
        config = FixedWindow(start=hm("22:00"), end=hm("06:00"))
        vienna = ZoneInfo("Europe/Vienna")

        assert should_use_dark_mode(config, dt.datetime(2024, 6, 20, 23, 30, tzinfo=vienna)) is True
        assert should_use_dark_mode(config, dt.datetime(2024, 6, 20, 12, 0, tzinfo=vienna)) is False

    def test_sun_relative_uses_offset_of_datetime(self):
        config = SunRelative(latitude=51.5, longitude=-0.12)
        london = ZoneInfo("Europe/London")

        # 04:00 BST is before sunrise at midsummer, 05:30 BST is after
        assert should_use_dark_mode(config, dt.datetime(2024, 6, 20, 4, 0, tzinfo=london)) is True
        assert should_use_dark_mode(config, dt.datetime(2024, 6, 20, 5, 30, tzinfo=london)) is False
