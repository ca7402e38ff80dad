"""
Control window: filter and rest-break settings plus live status.
"""

from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QCloseEvent, QKeyEvent
from PySide6.QtWidgets import (
    QCheckBox,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSlider,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from core.settings import (
    COLOR_TEMP_STEP,
    MAX_COLOR_TEMP,
    MAX_REST_DURATION,
    MAX_REST_INTERVAL,
    MAX_STRENGTH,
    MIN_COLOR_TEMP,
    MIN_REST_DURATION,
    MIN_REST_INTERVAL,
    MIN_STRENGTH,
    PRESETS,
    FilterSettings,
    RestSettings,
)


def format_usage(total_seconds: float) -> str:
    """Coarse session length, e.g. ``2 h 5 min``."""
    clamped = max(0, int(total_seconds))
    days, rest = divmod(clamped, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days > 0:
        return f"{days} d {hours} h"
    if hours > 0:
        return f"{hours} h {minutes} min"
    return f"{minutes} min"


class ControlWindow(QWidget):
    filterToggled = Signal(bool)
    strengthChanged = Signal(int)
    colorTempChanged = Signal(int)
    presetSelected = Signal(str)
    restToggled = Signal(bool)
    intervalChanged = Signal(int)
    durationChanged = Signal(int)
    allowEscToggled = Signal(bool)
    restNowRequested = Signal()
    escapePressed = Signal()

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Eye Rest")
        self.setMinimumWidth(380)
        self._allow_close = False

        self._clock_label = QLabel("--:--")
        self._clock_label.setStyleSheet("font-weight: bold; font-size: 16px;")
        self._date_label = QLabel()
        self._usage_label = QLabel()

        # Filter card
        self._filter_check = QCheckBox("Filter blue light")
        self._strength_label = QLabel()
        self._strength_slider = QSlider(Qt.Orientation.Horizontal)
        self._strength_slider.setRange(MIN_STRENGTH, MAX_STRENGTH)
        self._temp_label = QLabel()
        self._temp_slider = QSlider(Qt.Orientation.Horizontal)
        self._temp_slider.setRange(MIN_COLOR_TEMP, MAX_COLOR_TEMP)
        self._temp_slider.setSingleStep(COLOR_TEMP_STEP)
        self._temp_slider.setPageStep(COLOR_TEMP_STEP * 5)

        self._preset_buttons: dict[str, QPushButton] = {}
        preset_row = QHBoxLayout()
        preset_row.setSpacing(8)
        for name in PRESETS:
            button = QPushButton(name)
            button.setCheckable(True)
            button.setCursor(Qt.CursorShape.PointingHandCursor)
            button.clicked.connect(lambda _checked=False, n=name: self.presetSelected.emit(n))  # type: ignore[arg-type]
            self._preset_buttons[name] = button
            preset_row.addWidget(button)

        filter_box = QGroupBox("Eye filter")
        filter_layout = QVBoxLayout(filter_box)
        filter_layout.addWidget(self._filter_check)
        filter_layout.addWidget(self._strength_label)
        filter_layout.addWidget(self._strength_slider)
        filter_layout.addLayout(preset_row)
        filter_layout.addWidget(self._temp_label)
        filter_layout.addWidget(self._temp_slider)

        # Rest card
        self._rest_check = QCheckBox("Scheduled rest breaks")
        self._interval_spin = QSpinBox()
        self._interval_spin.setRange(MIN_REST_INTERVAL, MAX_REST_INTERVAL)
        self._interval_spin.setSuffix(" min")
        self._duration_spin = QSpinBox()
        self._duration_spin.setRange(MIN_REST_DURATION, MAX_REST_DURATION)
        self._duration_spin.setSuffix(" min")
        self._next_rest_label = QLabel()
        self._next_rest_label.setStyleSheet("font-size: 20px; font-weight: 600;")
        self._rest_now_button = QPushButton("Rest now")
        self._rest_now_button.setMinimumHeight(34)
        self._rest_now_button.setCursor(Qt.CursorShape.PointingHandCursor)

        spin_row = QHBoxLayout()
        spin_row.addWidget(QLabel("Every"))
        spin_row.addWidget(self._interval_spin)
        spin_row.addSpacing(12)
        spin_row.addWidget(QLabel("Rest for"))
        spin_row.addWidget(self._duration_spin)
        spin_row.addStretch()

        rest_box = QGroupBox("Rest rhythm")
        rest_layout = QVBoxLayout(rest_box)
        rest_layout.addWidget(self._rest_check)
        rest_layout.addLayout(spin_row)
        rest_layout.addWidget(QLabel("Next break in"))
        rest_layout.addWidget(self._next_rest_label)
        rest_layout.addWidget(self._rest_now_button)

        # System card
        self._allow_esc_check = QCheckBox("Allow ESC to leave the lock screen")
        system_box = QGroupBox("System")
        system_layout = QVBoxLayout(system_box)
        system_layout.addWidget(self._allow_esc_check)

        header = QHBoxLayout()
        header.addWidget(self._clock_label)
        header.addWidget(self._date_label)
        header.addStretch()
        header.addWidget(self._usage_label)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(12)
        layout.addLayout(header)
        layout.addWidget(filter_box)
        layout.addWidget(rest_box)
        layout.addWidget(system_box)

        self.setStyleSheet(
            """
            QWidget {
                background-color: #111827;
                color: white;
            }
            QGroupBox {
                border: 1px solid rgba(255, 255, 255, 0.08);
                border-radius: 12px;
                margin-top: 14px;
                padding: 10px;
            }
            QPushButton {
                padding: 4px 12px;
                border-radius: 10px;
                background-color: #2563eb;
                font-weight: 600;
            }
            QPushButton:checked {
                background-color: #1e40af;
            }
            """
        )

        self._filter_check.toggled.connect(self.filterToggled)  # type: ignore[arg-type]
        self._strength_slider.valueChanged.connect(self.strengthChanged)  # type: ignore[arg-type]
        self._temp_slider.valueChanged.connect(self._emit_color_temp)  # type: ignore[arg-type]
        self._rest_check.toggled.connect(self.restToggled)  # type: ignore[arg-type]
        self._interval_spin.valueChanged.connect(self.intervalChanged)  # type: ignore[arg-type]
        self._duration_spin.valueChanged.connect(self.durationChanged)  # type: ignore[arg-type]
        self._allow_esc_check.toggled.connect(self.allowEscToggled)  # type: ignore[arg-type]
        self._rest_now_button.clicked.connect(self.restNowRequested)  # type: ignore[arg-type]

    def show_filter(self, settings: FilterSettings) -> None:
        """Reflect filter settings without echoing change signals."""
        widgets = (self._filter_check, self._strength_slider, self._temp_slider)
        for widget in widgets:
            widget.blockSignals(True)
        try:
            self._filter_check.setChecked(settings.enabled)
            self._strength_slider.setValue(settings.strength)
            self._temp_slider.setValue(settings.color_temp)
        finally:
            for widget in widgets:
                widget.blockSignals(False)
        self._strength_label.setText(f"Strength {settings.strength}%")
        self._temp_label.setText(f"Colour temperature {settings.color_temp}K")
        for name, button in self._preset_buttons.items():
            button.setChecked(name == settings.active_preset)

    def show_rest(self, settings: RestSettings) -> None:
        widgets = (self._rest_check, self._interval_spin, self._duration_spin, self._allow_esc_check)
        for widget in widgets:
            widget.blockSignals(True)
        try:
            self._rest_check.setChecked(settings.enabled)
            self._interval_spin.setValue(settings.interval_minutes)
            self._duration_spin.setValue(settings.duration_minutes)
            self._allow_esc_check.setChecked(settings.allow_esc_exit)
        finally:
            for widget in widgets:
                widget.blockSignals(False)

    def show_status(self, *, time_text: str, date_text: str, next_rest_text: str, usage_text: str) -> None:
        self._clock_label.setText(time_text)
        self._date_label.setText(date_text)
        self._next_rest_label.setText(next_rest_text)
        self._usage_label.setText(f"In use {usage_text}")

    def allow_close(self) -> None:
        self._allow_close = True

    def _emit_color_temp(self, value: int) -> None:
        snapped = round(value / COLOR_TEMP_STEP) * COLOR_TEMP_STEP
        self.colorTempChanged.emit(snapped)

    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802
        if event.key() == Qt.Key.Key_Escape:
            self.escapePressed.emit()
            event.accept()
            return
        super().keyPressEvent(event)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802
        if self._allow_close:
            super().closeEvent(event)
            return
        # Closing the window keeps the app running in the tray.
        event.ignore()
        self.hide()
