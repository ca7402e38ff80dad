"""Keyboard and display behaviour of the lock and control windows."""

from PySide6.QtCore import QEvent, Qt
from PySide6.QtGui import QKeyEvent

from core.control_window import ControlWindow, format_usage
from core.settings import FilterSettings, RestSettings
from overlay.lock_window import LockWindow
from shared.lock_protocol import LockBroadcastPayload


def _key(key):
    return QKeyEvent(QEvent.Type.KeyPress, key, Qt.KeyboardModifier.NoModifier)


def test_escape_ignored_on_lock_window_when_disallowed(qapp):
    window = LockWindow()
    exits = []
    window.exitRequested.connect(lambda: exits.append(True))

    window.render_payload(LockBroadcastPayload(allow_esc_exit=False))
    window.keyPressEvent(_key(Qt.Key.Key_Escape))

    assert exits == []


def test_escape_on_lock_window_requests_exit_when_allowed(qapp):
    window = LockWindow()
    exits = []
    window.exitRequested.connect(lambda: exits.append(True))

    window.render_payload(LockBroadcastPayload(allow_esc_exit=True))
    window.keyPressEvent(_key(Qt.Key.Key_Return))
    window.keyPressEvent(_key(Qt.Key.Key_Escape))

    assert exits == [True]


def test_lock_window_only_closes_when_allowed(qapp):
    window = LockWindow()
    window.show()

    window.close()
    assert window.isVisible()

    window.allow_close()
    window.close()
    assert not window.isVisible()


def test_lock_window_tolerates_missing_background(qapp, tmp_path):
    window = LockWindow()
    window.set_background(tmp_path / "missing.jpg")
    window.set_background(None)


def test_control_window_escape_is_forwarded(qapp):
    window = ControlWindow()
    pressed = []
    window.escapePressed.connect(lambda: pressed.append(True))

    window.keyPressEvent(_key(Qt.Key.Key_Escape))

    assert pressed == [True]


def test_control_window_refresh_does_not_echo_signals(qapp):
    window = ControlWindow()
    echoed = []
    window.strengthChanged.connect(echoed.append)
    window.intervalChanged.connect(echoed.append)

    window.show_filter(FilterSettings(strength=77))
    window.show_rest(RestSettings(interval_minutes=90))

    assert echoed == []


def test_control_window_snaps_colour_temperature(qapp):
    window = ControlWindow()
    temps = []
    window.colorTempChanged.connect(temps.append)

    window._temp_slider.setValue(4730)

    assert temps == [4700]


def test_format_usage():
    assert format_usage(59) == "0 min"
    assert format_usage(3 * 3600 + 5 * 60) == "3 h 5 min"
    assert format_usage(2 * 86400 + 7200) == "2 d 2 h"
