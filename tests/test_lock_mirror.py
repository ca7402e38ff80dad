"""Tests for the overlay's local countdown."""

from core.lock_sync import build_payload
from core.rest_scheduler import RestCycle
from core.settings import RestSettings
from overlay.lock_mirror import LockMirror
from shared.lock_protocol import LaunchParams, LockBroadcastPayload

T = 1_700_000_000.0


def test_counts_down_from_launch_end_time():
    mirror = LockMirror(LaunchParams(end_at_ms=int((T + 60) * 1000)))

    assert mirror.snapshot(T).rest_countdown == "00:01:00"
    assert mirror.snapshot(T + 20.5).rest_countdown == "00:00:39"
    assert mirror.snapshot(T + 90).rest_countdown == "00:00:00"


def test_default_params_show_inert_zero_countdown():
    mirror = LockMirror(LaunchParams.from_query("bogus"))

    snapshot = mirror.snapshot(T)

    assert snapshot.rest_countdown == "00:00:00"
    assert not snapshot.rest_paused
    assert snapshot.allow_esc_exit


def test_paused_launch_holds_remaining_time():
    mirror = LockMirror(LaunchParams(paused=True, remaining_seconds=42, allow_esc=False))

    snapshot = mirror.snapshot(T + 500)

    assert snapshot.rest_countdown == "00:00:42"
    assert snapshot.rest_paused
    assert not snapshot.allow_esc_exit


def test_local_toggle_takes_effect_immediately():
    mirror = LockMirror(LaunchParams(end_at_ms=int((T + 60) * 1000)))

    mirror.toggle_pause_local(T + 10)
    assert mirror.snapshot(T + 30).rest_countdown == "00:00:50"

    mirror.toggle_pause_local(T + 30)
    assert mirror.snapshot(T + 40).rest_countdown == "00:00:40"


def test_broadcast_overrides_local_pause_state():
    mirror = LockMirror(LaunchParams(end_at_ms=int((T + 60) * 1000)))
    mirror.toggle_pause_local(T + 5)

    mirror.apply_broadcast(LockBroadcastPayload(rest_countdown="00:00:55", rest_paused=False), T + 5)

    assert not mirror.paused
    assert mirror.snapshot(T + 15).rest_countdown == "00:00:45"


def test_broadcast_within_tolerance_keeps_sub_second_end_time():
    mirror = LockMirror(LaunchParams(end_at_ms=int((T + 60.7) * 1000)))
    local_end = mirror.end_at

    mirror.apply_broadcast(LockBroadcastPayload(rest_countdown="00:01:00"), T)

    assert mirror.end_at == local_end


def test_broadcast_far_from_local_time_replaces_it():
    mirror = LockMirror(LaunchParams(end_at_ms=int((T + 60) * 1000)))

    mirror.apply_broadcast(LockBroadcastPayload(rest_countdown="00:03:00"), T)

    assert mirror.end_at == T + 180


def test_paused_broadcast_and_escape_setting():
    mirror = LockMirror(LaunchParams(end_at_ms=int((T + 60) * 1000)))
    payload = build_payload(RestCycle.paused(33), RestSettings(allow_esc_exit=False), T)

    mirror.apply_broadcast(payload, T)
    snapshot = mirror.snapshot(T + 100)

    assert snapshot.rest_paused
    assert snapshot.rest_countdown == "00:00:33"
    assert not snapshot.allow_esc_exit
    assert snapshot.time_text == payload.time_text
