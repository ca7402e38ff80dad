"""
Keeps the lock overlay in step with the control process.

The control process is authoritative: whenever the overlay is visible it
pushes a fresh ``LockBroadcastPayload`` on every state change and once per
second, and it applies the overlay's action messages through the lock
session controller.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from PySide6.QtCore import QObject, QTimer

from core.lock_session import LockSessionController
from core.overlay_host import OverlayHost
from core.rest_scheduler import RestCycle, RestPhase
from core.settings import RestSettings
from shared import logger as app_logger
from shared.lock_protocol import (
    ACTION_EXIT,
    ACTION_TOGGLE_PAUSE,
    LaunchParams,
    LockBroadcastPayload,
    clock_texts,
    format_duration,
    is_escape_exit,
)

BROADCAST_INTERVAL_MS = 1000
# Relaunches allowed per break before the break is ended instead.
MAX_OVERLAY_RELAUNCHES = 3


def build_payload(cycle: RestCycle, settings: RestSettings, now: float) -> LockBroadcastPayload:
    """Project the rest cycle and wall clock onto the overlay's display fields."""
    time_text, date_text = clock_texts(datetime.fromtimestamp(now))
    left = cycle.rest_seconds_left(now)
    if left is None:
        left = settings.duration_minutes * 60
    return LockBroadcastPayload(
        time_text=time_text,
        date_text=date_text,
        rest_countdown=format_duration(left),
        rest_paused=cycle.phase is RestPhase.PAUSED,
        allow_esc_exit=settings.allow_esc_exit,
    )


def launch_params_for(cycle: RestCycle, settings: RestSettings, now: float) -> LaunchParams:
    """Initial overlay state, handed over before the channel exists."""
    if cycle.phase is RestPhase.PAUSED:
        return LaunchParams(
            end_at_ms=None,
            paused=True,
            remaining_seconds=cycle.remaining_seconds or 0,
            allow_esc=settings.allow_esc_exit,
        )
    end_at = cycle.end_at if cycle.end_at is not None else now + settings.duration_minutes * 60
    return LaunchParams(
        end_at_ms=int(math.floor(end_at * 1000)),
        paused=False,
        remaining_seconds=0,
        allow_esc=settings.allow_esc_exit,
    )


class CrossWindowSync(QObject):
    def __init__(
        self,
        session: LockSessionController,
        host: OverlayHost,
        *,
        interval_ms: int = BROADCAST_INTERVAL_MS,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = app_logger.get_logger()
        self._session = session
        self._host = host
        self._relaunches = 0
        self._stopped = False

        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.broadcast_now)  # type: ignore[arg-type]

        session.overlayShown.connect(self._on_overlay_shown)
        session.overlayHidden.connect(self._on_overlay_hidden)
        session.stateChanged.connect(self._on_state_changed)
        host.actionReceived.connect(self.handle_action)
        host.overlayLost.connect(self.handle_overlay_lost)

    @property
    def broadcasting(self) -> bool:
        return self._timer.isActive()

    def current_payload(self) -> LockBroadcastPayload:
        return build_payload(self._session.cycle, self._session.scheduler.settings, self._session.now())

    def broadcast_now(self) -> None:
        if not self._session.overlay_visible:
            return
        self._host.broadcast(self.current_payload())

    def handle_action(self, action: str) -> None:
        """Apply an action relayed from the overlay process."""
        if action == ACTION_EXIT:
            self._session.exit()
        elif action == ACTION_TOGGLE_PAUSE:
            self._session.toggle_pause()
        else:
            self._logger.warning("Ignoring unknown overlay action '{}'", action)

    def handle_escape(self) -> bool:
        """Escape pressed in a control-process window. Returns True if the break ended."""
        allowed = self._session.scheduler.settings.allow_esc_exit
        if not self._session.overlay_visible or not is_escape_exit(True, allowed):
            return False
        self._session.exit()
        return True

    def handle_overlay_lost(self) -> None:
        """
        The overlay process went away on its own (crash or closed windows).
        Relaunch it from the current state, or end the break once relaunching
        keeps failing, so a break is never running without a lock screen.
        """
        if self._stopped or not self._session.overlay_visible:
            return
        if self._relaunches >= MAX_OVERLAY_RELAUNCHES:
            self._logger.error(
                "Lock overlay lost {} times during this break; ending the break.", self._relaunches
            )
            self._session.exit()
            return
        self._relaunches += 1
        self._logger.warning(
            "Lock overlay lost during a break; relaunching ({}/{}).", self._relaunches, MAX_OVERLAY_RELAUNCHES
        )
        self._launch(self._session.cycle)

    def stop(self) -> None:
        self._stopped = True
        self._timer.stop()

    def _launch(self, cycle: RestCycle) -> None:
        params = launch_params_for(cycle, self._session.scheduler.settings, self._session.now())
        self._host.show_overlay(params)
        self._timer.start()

    def _on_overlay_shown(self, cycle: RestCycle) -> None:
        self._relaunches = 0
        self._launch(cycle)

    def _on_overlay_hidden(self) -> None:
        self._timer.stop()
        self._host.hide_overlay()

    def _on_state_changed(self, cycle: RestCycle) -> None:
        if not cycle.overlay_visible:
            return
        if not self._stopped and not self._host.overlay_running:
            # e.g. "Rest now" while a lost overlay was being relaunched
            self._launch(cycle)
        self.broadcast_now()
