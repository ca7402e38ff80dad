"""
Wire format shared by the control process and the lock overlay process.

The control process owns all rest state. The overlay only ever sees it as
launch parameters (at creation) and broadcast payloads (while running), and
answers with discrete action messages.
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional
from urllib.parse import parse_qs, urlencode

MSG_BROADCAST = "broadcast-update"
MSG_ACTION = "overlay-action"
MSG_CLOSE = "close"

ACTION_EXIT = "exit"
ACTION_TOGGLE_PAUSE = "toggle_pause"
OVERLAY_ACTIONS = frozenset({ACTION_EXIT, ACTION_TOGGLE_PAUSE})

ZERO_COUNTDOWN = "00:00:00"


class ProtocolError(ValueError):
    """Raised when a channel message cannot be decoded."""


def format_duration(total_seconds: float) -> str:
    """Render a second count as ``HH:MM:SS``, clamping negatives to zero."""
    clamped = max(0, int(math.floor(total_seconds)))
    hours, rest = divmod(clamped, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def parse_duration(text: str) -> int:
    """Inverse of :func:`format_duration`."""
    parts = text.split(":")
    if len(parts) != 3:
        raise ProtocolError(f"Countdown must be HH:MM:SS, got {text!r}")
    try:
        hours, minutes, seconds = (int(part) for part in parts)
    except ValueError as exc:
        raise ProtocolError(f"Countdown must be numeric, got {text!r}") from exc
    if hours < 0 or not 0 <= minutes < 60 or not 0 <= seconds < 60:
        raise ProtocolError(f"Countdown out of range: {text!r}")
    return hours * 3600 + minutes * 60 + seconds


def clock_texts(moment: datetime) -> tuple[str, str]:
    """Return the (time, date) strings shown on the lock screen."""
    return moment.strftime("%H:%M"), f"{moment:%B} {moment.day}, {moment:%a}"


def is_escape_exit(is_escape: bool, allow_esc_exit: bool) -> bool:
    """Whether a key press should end the break."""
    return is_escape and allow_esc_exit


@dataclass(frozen=True)
class LockBroadcastPayload:
    """Point-in-time projection of the rest cycle pushed to the overlay."""

    time_text: str = "--:--"
    date_text: str = ""
    rest_countdown: str = ZERO_COUNTDOWN
    rest_paused: bool = False
    allow_esc_exit: bool = True

    def to_wire(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            "timeText": data["time_text"],
            "dateText": data["date_text"],
            "restCountdown": data["rest_countdown"],
            "restPaused": data["rest_paused"],
            "allowEscExit": data["allow_esc_exit"],
        }

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "LockBroadcastPayload":
        if not isinstance(data, Mapping):
            raise ProtocolError("Broadcast payload must be an object.")
        countdown = data.get("restCountdown", ZERO_COUNTDOWN)
        if not isinstance(countdown, str):
            raise ProtocolError("restCountdown must be a string.")
        parse_duration(countdown)
        return cls(
            time_text=str(data.get("timeText", "--:--")),
            date_text=str(data.get("dateText", "")),
            rest_countdown=countdown,
            rest_paused=bool(data.get("restPaused", False)),
            allow_esc_exit=bool(data.get("allowEscExit", True)),
        )


@dataclass(frozen=True)
class LaunchParams:
    """Initial overlay state handed over on the overlay command line."""

    end_at_ms: Optional[int] = None
    paused: bool = False
    remaining_seconds: int = 0
    allow_esc: bool = True

    def to_query(self) -> str:
        query: Dict[str, Any] = {
            "end": self.end_at_ms or 0,
            "remaining": max(0, self.remaining_seconds),
        }
        if self.paused:
            query["paused"] = 1
        if not self.allow_esc:
            query["allowEsc"] = 0
        return urlencode(query)

    @classmethod
    def from_query(cls, query: str) -> "LaunchParams":
        """
        Parse launch parameters, falling back to "no countdown, unpaused,
        escape enabled" for anything missing or malformed.
        """
        values = parse_qs((query or "").lstrip("?"), keep_blank_values=True)

        def first(name: str) -> Optional[str]:
            items = values.get(name)
            return items[0] if items else None

        end = _coerce_int(first("end"))
        remaining = _coerce_int(first("remaining"))
        return cls(
            end_at_ms=end if end and end > 0 else None,
            paused=first("paused") == "1",
            remaining_seconds=max(0, remaining or 0),
            allow_esc=first("allowEsc") != "0",
        )


def encode_message(kind: str, **fields: Any) -> bytes:
    """Frame one channel message as a JSON line."""
    message = {"type": kind, **fields}
    return (json.dumps(message, separators=(",", ":")) + "\n").encode("utf-8")


def decode_message(line: bytes) -> Dict[str, Any]:
    """Decode one JSON line produced by :func:`encode_message`."""
    try:
        message = json.loads(line.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ProtocolError(f"Channel message is not valid JSON: {exc}") from exc
    if not isinstance(message, dict) or not isinstance(message.get("type"), str):
        raise ProtocolError("Channel message must be an object with a type.")
    return message


def _coerce_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
