"""
Rest-break scheduling state machine.

Everything here is a pure function of the current cycle, the rest settings
and a wall-clock timestamp (epoch seconds), so a missed tick is corrected by
the next one without accumulating drift.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from core.settings import RestSettings


class RestPhase(Enum):
    IDLE = "Idle"
    WAITING = "Waiting"
    RESTING = "Resting"
    PAUSED = "Paused"


@dataclass(frozen=True)
class RestCycle:
    """
    Current break-scheduling state. Exactly one of ``next_rest_at``,
    ``end_at`` and ``remaining_seconds`` is set, matching ``phase``; all three
    are None while idle.
    """

    phase: RestPhase = RestPhase.IDLE
    next_rest_at: Optional[float] = None
    end_at: Optional[float] = None
    remaining_seconds: Optional[int] = None

    @classmethod
    def idle(cls) -> "RestCycle":
        return cls()

    @classmethod
    def waiting(cls, next_rest_at: float) -> "RestCycle":
        return cls(phase=RestPhase.WAITING, next_rest_at=next_rest_at)

    @classmethod
    def resting(cls, end_at: float) -> "RestCycle":
        return cls(phase=RestPhase.RESTING, end_at=end_at)

    @classmethod
    def paused(cls, remaining_seconds: int) -> "RestCycle":
        return cls(phase=RestPhase.PAUSED, remaining_seconds=max(0, int(remaining_seconds)))

    @property
    def overlay_visible(self) -> bool:
        return self.phase in (RestPhase.RESTING, RestPhase.PAUSED)

    def seconds_until_rest(self, now: float) -> Optional[float]:
        if self.phase is not RestPhase.WAITING or self.next_rest_at is None:
            return None
        return max(0.0, self.next_rest_at - now)

    def rest_seconds_left(self, now: float) -> Optional[float]:
        if self.phase is RestPhase.PAUSED:
            return float(self.remaining_seconds or 0)
        if self.phase is RestPhase.RESTING and self.end_at is not None:
            return max(0.0, self.end_at - now)
        return None


def rearmed(settings: RestSettings, now: float) -> RestCycle:
    """State right after enabling, an interval change, or the end of a break."""
    if not settings.enabled:
        return RestCycle.idle()
    return RestCycle.waiting(now + settings.interval_minutes * 60)


def begin_break(settings: RestSettings, now: float) -> RestCycle:
    return RestCycle.resting(now + settings.duration_minutes * 60)


def pause_or_resume(cycle: RestCycle, now: float) -> RestCycle:
    """Freeze a running break or restart a frozen one; other phases are untouched."""
    if cycle.phase is RestPhase.RESTING and cycle.end_at is not None:
        return RestCycle.paused(max(0, math.floor(cycle.end_at - now)))
    if cycle.phase is RestPhase.PAUSED:
        return RestCycle.resting(now + (cycle.remaining_seconds or 0))
    return cycle


def advance(cycle: RestCycle, settings: RestSettings, now: float) -> RestCycle:
    """
    One clock tick: start a due break, or end a break whose time ran out.
    Paused breaks never end on their own.
    """
    if cycle.phase is RestPhase.WAITING:
        if cycle.next_rest_at is not None and now >= cycle.next_rest_at:
            return begin_break(settings, now)
        return cycle
    if cycle.phase is RestPhase.RESTING:
        if cycle.end_at is not None and now >= cycle.end_at:
            return rearmed(settings, now)
        return cycle
    return cycle


class RestScheduler:
    """
    Holds the rest settings and the authoritative RestCycle, and applies the
    settings-change rules. Break start/stop side effects belong to the lock
    session controller.
    """

    def __init__(self, settings: Optional[RestSettings] = None, *, now: Optional[float] = None) -> None:
        self.settings = settings or RestSettings()
        self.cycle = RestCycle.idle()
        if now is not None:
            self.cycle = rearmed(self.settings, now)

    @property
    def next_rest_at(self) -> Optional[float]:
        return self.cycle.next_rest_at

    def set_enabled(self, enabled: bool, now: float) -> RestCycle:
        self.settings = replace(self.settings, enabled=enabled)
        if not self.cycle.overlay_visible:
            self.cycle = rearmed(self.settings, now)
        return self.cycle

    def set_interval(self, minutes: int, now: float) -> RestCycle:
        self.settings = replace(self.settings, interval_minutes=minutes)
        if self.settings.enabled and not self.cycle.overlay_visible:
            self.cycle = rearmed(self.settings, now)
        return self.cycle

    def set_duration(self, minutes: int, now: float) -> RestCycle:
        """
        A break in progress restarts from ``now`` with the new length; a
        paused break gets the new full length as its remaining time.
        """
        self.settings = replace(self.settings, duration_minutes=minutes)
        if self.cycle.phase is RestPhase.RESTING:
            self.cycle = begin_break(self.settings, now)
        elif self.cycle.phase is RestPhase.PAUSED:
            self.cycle = RestCycle.paused(self.settings.duration_minutes * 60)
        return self.cycle

    def set_allow_esc_exit(self, allowed: bool) -> None:
        self.settings = replace(self.settings, allow_esc_exit=allowed)

    def tick(self, now: float) -> RestCycle:
        self.cycle = advance(self.cycle, self.settings, now)
        return self.cycle
