"""
Filter and rest settings for the control process.

Startup defaults come from the environment; values changed at runtime live
only in memory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Mapping, Optional, Tuple

from shared import logger as app_logger

_LOGGER = app_logger.get_logger()

MIN_STRENGTH = 0
MAX_STRENGTH = 100
MIN_COLOR_TEMP = 2000
MAX_COLOR_TEMP = 6500
COLOR_TEMP_STEP = 100
MIN_REST_INTERVAL = 15
MAX_REST_INTERVAL = 120
MIN_REST_DURATION = 1
MAX_REST_DURATION = 20

DAY_STARTS_AT_HOUR = 6
NIGHT_STARTS_AT_HOUR = 18

SMART_PRESET = "Smart"
# name -> ((day temp, day strength), (night temp, night strength))
PRESETS: Dict[str, Tuple[Tuple[int, int], Tuple[int, int]]] = {
    SMART_PRESET: ((4700, 30), (3400, 30)),
    "Office": ((5200, 50), (4700, 60)),
    "Cinema": ((5600, 45), (5200, 55)),
    "Gaming": ((6000, 35), (5600, 45)),
}
_FALLBACK_PRESET_VALUES = (4700, 30)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def is_daytime(moment: datetime) -> bool:
    return DAY_STARTS_AT_HOUR <= moment.hour < NIGHT_STARTS_AT_HOUR


def resolve_preset(name: str, daytime: bool) -> Tuple[int, int]:
    """
    Return ``(color_temp, strength)`` for a preset. Only the Smart preset
    distinguishes day from night; the others always use their day values.
    """
    values = PRESETS.get(name)
    if values is None:
        return _FALLBACK_PRESET_VALUES
    day, night = values
    if name == SMART_PRESET and not daytime:
        return night
    return day


@dataclass(frozen=True)
class FilterSettings:
    enabled: bool = True
    strength: int = 30
    color_temp: int = 4700
    active_preset: str = SMART_PRESET

    def __post_init__(self) -> None:
        object.__setattr__(self, "strength", clamp(int(self.strength), MIN_STRENGTH, MAX_STRENGTH))
        object.__setattr__(self, "color_temp", clamp(int(self.color_temp), MIN_COLOR_TEMP, MAX_COLOR_TEMP))

    def with_preset(self, name: str, daytime: bool) -> "FilterSettings":
        """Select a preset; selecting one always turns the filter on."""
        color_temp, strength = resolve_preset(name, daytime)
        return replace(self, enabled=True, strength=strength, color_temp=color_temp, active_preset=name)

    def refreshed_for(self, daytime: bool) -> "FilterSettings":
        """Recompute Smart preset values for the current half of the day."""
        if self.active_preset != SMART_PRESET:
            return self
        color_temp, strength = resolve_preset(SMART_PRESET, daytime)
        return replace(self, strength=strength, color_temp=color_temp)


@dataclass(frozen=True)
class RestSettings:
    enabled: bool = True
    interval_minutes: int = 30
    duration_minutes: int = 1
    allow_esc_exit: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "interval_minutes",
            clamp(int(self.interval_minutes), MIN_REST_INTERVAL, MAX_REST_INTERVAL),
        )
        object.__setattr__(
            self,
            "duration_minutes",
            clamp(int(self.duration_minutes), MIN_REST_DURATION, MAX_REST_DURATION),
        )


@dataclass(frozen=True)
class CoreSettings:
    filter: FilterSettings = field(default_factory=FilterSettings)
    rest: RestSettings = field(default_factory=RestSettings)


class CoreSettingsManager:
    """Loads startup settings from environment variables and clamps invalid data."""

    def __init__(self, *, environ: Optional[Mapping[str, str]] = None) -> None:
        self._environ = os.environ if environ is None else environ

    def read_settings(self, *, now: Optional[datetime] = None) -> CoreSettings:
        moment = now or datetime.now()
        preset = self._environ.get("EYE_REST_PRESET", SMART_PRESET).strip() or SMART_PRESET
        if preset not in PRESETS:
            _LOGGER.warning("Unknown preset '{}' in environment; using {}.", preset, SMART_PRESET)
            preset = SMART_PRESET
        color_temp, strength = resolve_preset(preset, is_daytime(moment))

        filter_settings = FilterSettings(
            enabled=self._read_bool("EYE_REST_FILTER_ENABLED", True),
            strength=self._read_int("EYE_REST_FILTER_STRENGTH", strength, MIN_STRENGTH, MAX_STRENGTH),
            color_temp=self._read_int("EYE_REST_COLOR_TEMP", color_temp, MIN_COLOR_TEMP, MAX_COLOR_TEMP),
            active_preset=preset,
        )
        rest_settings = RestSettings(
            enabled=self._read_bool("EYE_REST_ENABLED", True),
            interval_minutes=self._read_int(
                "EYE_REST_INTERVAL_MINUTES", 30, MIN_REST_INTERVAL, MAX_REST_INTERVAL
            ),
            duration_minutes=self._read_int(
                "EYE_REST_DURATION_MINUTES", 1, MIN_REST_DURATION, MAX_REST_DURATION
            ),
            allow_esc_exit=self._read_bool("EYE_REST_ALLOW_ESC", True),
        )
        return CoreSettings(filter=filter_settings, rest=rest_settings)

    def _read_bool(self, name: str, default: bool) -> bool:
        raw = self._environ.get(name)
        if raw is None or not raw.strip():
            return default
        value = raw.strip().lower()
        if value in {"1", "true", "yes", "on"}:
            return True
        if value in {"0", "false", "no", "off"}:
            return False
        _LOGGER.warning("Environment value {}={!r} is not a boolean; using {}.", name, raw, default)
        return default

    def _read_int(self, name: str, default: int, low: int, high: int) -> int:
        raw = self._environ.get(name)
        if raw is None or not raw.strip():
            return default
        try:
            value = int(raw.strip())
        except ValueError:
            _LOGGER.warning("Environment value {}={!r} is not a number; using {}.", name, raw, default)
            return default
        if value < low or value > high:
            _LOGGER.warning(
                "Invalid value {} for {} found in environment. Clamping to safe bounds.",
                value,
                name,
            )
        return clamp(value, low, high)
