"""Tests for the control/overlay wire format."""

from datetime import datetime

import pytest

from shared.lock_protocol import (
    MSG_ACTION,
    LaunchParams,
    LockBroadcastPayload,
    ProtocolError,
    clock_texts,
    decode_message,
    encode_message,
    format_duration,
    is_escape_exit,
    parse_duration,
)


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "00:00:00"),
        (59.9, "00:00:59"),
        (60, "00:01:00"),
        (3661, "01:01:01"),
        (-5, "00:00:00"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


@pytest.mark.parametrize("text", ["", "1:2", "aa:bb:cc", "00:61:00", "00:00:60"])
def test_parse_duration_rejects_malformed(text):
    with pytest.raises(ProtocolError):
        parse_duration(text)


def test_parse_duration():
    assert parse_duration("02:03:04") == 2 * 3600 + 3 * 60 + 4


def test_clock_texts():
    assert clock_texts(datetime(2024, 3, 9, 7, 5)) == ("07:05", "March 9, Sat")


def test_escape_exit_requires_permission():
    assert is_escape_exit(True, True)
    assert not is_escape_exit(True, False)
    assert not is_escape_exit(False, True)


def test_broadcast_payload_uses_camel_case_on_the_wire():
    payload = LockBroadcastPayload("10:30", "May 1, Wed", "00:00:42", True, False)

    wire = payload.to_wire()

    assert wire == {
        "timeText": "10:30",
        "dateText": "May 1, Wed",
        "restCountdown": "00:00:42",
        "restPaused": True,
        "allowEscExit": False,
    }
    assert LockBroadcastPayload.from_wire(wire) == payload


def test_broadcast_payload_rejects_bad_countdown():
    with pytest.raises(ProtocolError):
        LockBroadcastPayload.from_wire({"restCountdown": "soon"})
    with pytest.raises(ProtocolError):
        LockBroadcastPayload.from_wire(["not", "a", "dict"])


def test_launch_params_query():
    params = LaunchParams(end_at_ms=1_700_000_060_000, allow_esc=False)

    query = params.to_query()

    assert "end=1700000060000" in query
    assert "allowEsc=0" in query
    assert "paused" not in query
    assert LaunchParams.from_query(query) == params


def test_paused_launch_params():
    params = LaunchParams.from_query("?paused=1&remaining=42")
    assert params == LaunchParams(end_at_ms=None, paused=True, remaining_seconds=42, allow_esc=True)


@pytest.mark.parametrize(
    "query",
    ["", "end=abc&remaining=x", "end=-5&paused=yes&allowEsc=false", "garbage"],
)
def test_malformed_launch_params_fall_back_to_defaults(query):
    assert LaunchParams.from_query(query) == LaunchParams()


def test_message_framing():
    line = encode_message(MSG_ACTION, action="exit")

    assert line.endswith(b"\n")
    assert decode_message(line.strip()) == {"type": MSG_ACTION, "action": "exit"}


@pytest.mark.parametrize("line", [b"not json", b"[1, 2]", b'{"action": "exit"}', b"\xff\xfe"])
def test_decode_message_rejects_invalid_lines(line):
    with pytest.raises(ProtocolError):
        decode_message(line)
