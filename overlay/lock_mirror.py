"""
The overlay's local copy of the rest countdown.

It starts from the launch parameters, re-derives the countdown on its own
timer and lets a pause click take effect immediately. Every broadcast from the
control process overwrites it, since the control process owns the real state.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from shared.lock_protocol import (
    LaunchParams,
    LockBroadcastPayload,
    ProtocolError,
    clock_texts,
    format_duration,
    parse_duration,
)

# A local end time within this many seconds of a broadcast countdown is kept,
# since the broadcast value is truncated to whole seconds.
RECONCILE_TOLERANCE_SECONDS = 1.0


class LockMirror:
    def __init__(self, params: LaunchParams) -> None:
        self.end_at: Optional[float] = params.end_at_ms / 1000.0 if params.end_at_ms else None
        self.paused = params.paused
        self.remaining_seconds = params.remaining_seconds
        self.allow_esc_exit = params.allow_esc
        self.last_broadcast: Optional[LockBroadcastPayload] = None

    def countdown_seconds(self, now: float) -> float:
        if self.paused:
            return float(self.remaining_seconds)
        if self.end_at is not None:
            return max(0.0, self.end_at - now)
        return 0.0

    def toggle_pause_local(self, now: float) -> None:
        """Mirror a pause click before the control process confirms it."""
        if self.paused:
            self.end_at = now + self.remaining_seconds
            self.paused = False
            return
        self.remaining_seconds = int(self.countdown_seconds(now))
        self.paused = True

    def apply_broadcast(self, payload: LockBroadcastPayload, now: float) -> None:
        """Adopt the control process's view of pause state and countdown."""
        self.last_broadcast = payload
        self.allow_esc_exit = payload.allow_esc_exit
        try:
            seconds = parse_duration(payload.rest_countdown)
        except ProtocolError:
            self.paused = payload.rest_paused
            return
        if payload.rest_paused:
            self.paused = True
            self.remaining_seconds = seconds
            return
        self.paused = False
        candidate = now + seconds
        if self.end_at is None or abs(self.end_at - candidate) > RECONCILE_TOLERANCE_SECONDS:
            self.end_at = candidate

    def snapshot(self, now: float) -> LockBroadcastPayload:
        """What the lock screen should display right now."""
        if self.last_broadcast is not None:
            time_text = self.last_broadcast.time_text
            date_text = self.last_broadcast.date_text
        else:
            time_text, date_text = clock_texts(datetime.fromtimestamp(now))
        return LockBroadcastPayload(
            time_text=time_text,
            date_text=date_text,
            rest_countdown=format_duration(self.countdown_seconds(now)),
            rest_paused=self.paused,
            allow_esc_exit=self.allow_esc_exit,
        )
