"""Tests for filter presets and environment-driven startup settings."""

from datetime import datetime

import pytest

from core.settings import (
    CoreSettingsManager,
    FilterSettings,
    RestSettings,
    is_daytime,
    resolve_preset,
)

NOON = datetime(2024, 6, 1, 12, 0)
MIDNIGHT = datetime(2024, 6, 1, 23, 30)


@pytest.mark.parametrize(
    "name, daytime, expected",
    [
        ("Smart", True, (4700, 30)),
        ("Smart", False, (3400, 30)),
        ("Office", True, (5200, 50)),
        ("Office", False, (5200, 50)),
        ("Cinema", True, (5600, 45)),
        ("Gaming", False, (6000, 35)),
        ("Unknown", True, (4700, 30)),
    ],
)
def test_resolve_preset(name, daytime, expected):
    assert resolve_preset(name, daytime) == expected


@pytest.mark.parametrize("hour, expected", [(5, False), (6, True), (17, True), (18, False)])
def test_daytime_boundaries(hour, expected):
    assert is_daytime(datetime(2024, 6, 1, hour, 0)) is expected


def test_filter_values_are_clamped():
    settings = FilterSettings(strength=140, color_temp=1200)
    assert (settings.strength, settings.color_temp) == (100, 2000)


def test_selecting_preset_turns_filter_on():
    settings = FilterSettings(enabled=False).with_preset("Cinema", True)
    assert settings == FilterSettings(enabled=True, strength=45, color_temp=5600, active_preset="Cinema")


def test_smart_preset_follows_time_of_day():
    day = FilterSettings().with_preset("Smart", True)
    assert day.refreshed_for(False).color_temp == 3400

    office = FilterSettings().with_preset("Office", True)
    assert office.refreshed_for(False) is office


def test_rest_values_are_clamped():
    settings = RestSettings(interval_minutes=1, duration_minutes=99)
    assert (settings.interval_minutes, settings.duration_minutes) == (15, 20)


def test_defaults_without_environment():
    settings = CoreSettingsManager(environ={}).read_settings(now=NOON)

    assert settings.filter == FilterSettings()
    assert settings.rest == RestSettings()


def test_environment_overrides():
    environ = {
        "EYE_REST_PRESET": "Office",
        "EYE_REST_FILTER_ENABLED": "off",
        "EYE_REST_INTERVAL_MINUTES": "45",
        "EYE_REST_DURATION_MINUTES": "3",
        "EYE_REST_ALLOW_ESC": "false",
    }

    settings = CoreSettingsManager(environ=environ).read_settings(now=MIDNIGHT)

    assert settings.filter == FilterSettings(enabled=False, strength=50, color_temp=5200, active_preset="Office")
    assert settings.rest == RestSettings(interval_minutes=45, duration_minutes=3, allow_esc_exit=False)


def test_invalid_environment_values_fall_back_or_clamp():
    environ = {
        "EYE_REST_PRESET": "Disco",
        "EYE_REST_ENABLED": "maybe",
        "EYE_REST_INTERVAL_MINUTES": "500",
        "EYE_REST_DURATION_MINUTES": "abc",
        "EYE_REST_COLOR_TEMP": "9000",
    }

    settings = CoreSettingsManager(environ=environ).read_settings(now=MIDNIGHT)

    assert settings.filter.active_preset == "Smart"
    assert settings.filter.strength == 30
    assert settings.filter.color_temp == 6500
    assert settings.rest.enabled
    assert settings.rest.interval_minutes == 120
    assert settings.rest.duration_minutes == 1
