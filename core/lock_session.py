"""
Lock session controller: owns break start/exit/pause and overlay visibility.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from core.rest_scheduler import RestCycle, RestScheduler, begin_break, pause_or_resume, rearmed
from shared import logger as app_logger


class LockSessionController(QObject):
    """
    Applies user and clock events to the RestScheduler and reports the
    consequences as signals. Every transition happens on the caller's thread
    (the Qt event loop), so handlers never interleave.
    """

    stateChanged = Signal(object)
    overlayShown = Signal(object)
    overlayHidden = Signal()
    breakEnded = Signal()

    def __init__(
        self,
        scheduler: RestScheduler,
        *,
        clock: Optional[Callable[[], float]] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = app_logger.get_logger()
        self._scheduler = scheduler
        self._clock = clock or time.time

    @property
    def scheduler(self) -> RestScheduler:
        return self._scheduler

    @property
    def cycle(self) -> RestCycle:
        return self._scheduler.cycle

    @property
    def overlay_visible(self) -> bool:
        return self._scheduler.cycle.overlay_visible

    def now(self) -> float:
        return self._clock()

    def start(self) -> None:
        """Begin a break immediately, discarding any paused state."""
        was_visible = self.overlay_visible
        self._scheduler.cycle = begin_break(self._scheduler.settings, self.now())
        self._logger.info(
            "Rest break started for {} minute(s).", self._scheduler.settings.duration_minutes
        )
        if not was_visible:
            self.overlayShown.emit(self.cycle)
        self.stateChanged.emit(self.cycle)

    def exit(self) -> None:
        """End the current break. Does nothing when no break is showing."""
        if not self.overlay_visible:
            self._logger.debug("Exit requested while no break is active; ignoring.")
            return
        self._finish_break(rearmed(self._scheduler.settings, self.now()), reason="manual exit")

    def toggle_pause(self) -> None:
        if not self.overlay_visible:
            return
        self._scheduler.cycle = pause_or_resume(self._scheduler.cycle, self.now())
        self._logger.info("Rest break {}.", "paused" if self.cycle.remaining_seconds is not None else "resumed")
        self.stateChanged.emit(self.cycle)

    def tick(self) -> RestCycle:
        """Advance the state machine to the current wall-clock time."""
        before = self._scheduler.cycle
        after = self._scheduler.tick(self.now())
        if after == before:
            return after
        if after.overlay_visible and not before.overlay_visible:
            self._logger.info("Rest interval elapsed; starting scheduled break.")
            self.overlayShown.emit(after)
            self.stateChanged.emit(after)
        elif before.overlay_visible and not after.overlay_visible:
            self._scheduler.cycle = before
            self._finish_break(after, reason="countdown finished")
        else:
            self.stateChanged.emit(after)
        return self._scheduler.cycle

    def set_rest_enabled(self, enabled: bool) -> None:
        self._apply(lambda now: self._scheduler.set_enabled(enabled, now))

    def set_interval(self, minutes: int) -> None:
        self._apply(lambda now: self._scheduler.set_interval(minutes, now))

    def set_duration(self, minutes: int) -> None:
        self._apply(lambda now: self._scheduler.set_duration(minutes, now))

    def set_allow_esc_exit(self, allowed: bool) -> None:
        if self._scheduler.settings.allow_esc_exit == allowed:
            return
        self._scheduler.set_allow_esc_exit(allowed)
        self.stateChanged.emit(self.cycle)

    def _apply(self, change: Callable[[float], RestCycle]) -> None:
        before = self._scheduler.cycle
        after = change(self.now())
        if after != before:
            self.stateChanged.emit(after)

    def _finish_break(self, next_cycle: RestCycle, *, reason: str) -> None:
        self._scheduler.cycle = next_cycle
        self._logger.info("Rest break ended ({}).", reason)
        self.overlayHidden.emit()
        self.breakEnded.emit()
        self.stateChanged.emit(next_cycle)
