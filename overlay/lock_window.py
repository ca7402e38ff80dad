"""
Full-screen lock window shown on each screen during a rest break.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from PySide6.QtCore import QRect, Qt, Signal
from PySide6.QtGui import QCloseEvent, QColor, QKeyEvent, QPainter, QPaintEvent, QPixmap, QScreen
from PySide6.QtWidgets import QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from shared.lock_protocol import LockBroadcastPayload, is_escape_exit


class LockWindow(QWidget):
    exitRequested = Signal()
    togglePauseRequested = Signal()
    nextWallpaperRequested = Signal()
    prevWallpaperRequested = Signal()

    def __init__(self, screen: Optional[QScreen] = None, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        flags = (
            Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.Tool
            | Qt.WindowType.WindowStaysOnTopHint
        )
        self.setWindowFlags(flags)
        self.setCursor(Qt.CursorShape.ArrowCursor)
        if screen is not None:
            self.setScreen(screen)
            self.setGeometry(screen.geometry())

        self._allow_esc_exit = True
        self._allow_close = False
        self._background: Optional[QPixmap] = None

        self._time_label = QLabel("--:--")
        self._time_label.setStyleSheet("font-size: 56px; font-weight: 600;")
        self._date_label = QLabel()
        self._date_label.setStyleSheet("font-size: 18px;")

        self._headline_label = QLabel("Take a break and rest your eyes")
        self._headline_label.setStyleSheet("font-size: 24px;")
        self._countdown_label = QLabel("00 : 00 : 00")
        self._countdown_label.setStyleSheet("font-size: 72px; font-weight: 700;")
        self._hint_label = QLabel()
        self._esc_label = QLabel()

        self._prev_button = self._make_button("<")
        self._next_button = self._make_button(">")
        self._pause_button = self._make_button("Pause")
        self._exit_button = self._make_button("End break")

        for label in (self._headline_label, self._countdown_label, self._hint_label, self._esc_label):
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        top_row = QHBoxLayout()
        clock_column = QVBoxLayout()
        clock_column.addWidget(self._time_label)
        clock_column.addWidget(self._date_label)
        top_row.addLayout(clock_column)
        top_row.addStretch()
        top_row.addWidget(self._prev_button)
        top_row.addWidget(self._next_button)

        action_row = QHBoxLayout()
        action_row.addStretch()
        action_row.addWidget(self._pause_button)
        action_row.addWidget(self._exit_button)
        action_row.addStretch()

        layout = QVBoxLayout(self)
        layout.setContentsMargins(48, 40, 48, 40)
        layout.addLayout(top_row)
        layout.addStretch()
        layout.addWidget(self._headline_label)
        layout.addWidget(self._countdown_label)
        layout.addWidget(self._hint_label)
        layout.addSpacing(24)
        layout.addLayout(action_row)
        layout.addStretch()
        layout.addWidget(self._esc_label)

        self.setStyleSheet(
            """
            QLabel {
                color: white;
                background: transparent;
            }
            """
        )

        self._prev_button.clicked.connect(self.prevWallpaperRequested)  # type: ignore[arg-type]
        self._next_button.clicked.connect(self.nextWallpaperRequested)  # type: ignore[arg-type]
        self._pause_button.clicked.connect(self.togglePauseRequested)  # type: ignore[arg-type]
        self._exit_button.clicked.connect(self.exitRequested)  # type: ignore[arg-type]

    def _make_button(self, text: str) -> QPushButton:
        button = QPushButton(text)
        button.setMinimumHeight(40)
        button.setCursor(Qt.CursorShape.PointingHandCursor)
        button.setStyleSheet(
            """
            QPushButton {
                padding: 0 18px;
                border-radius: 20px;
                background-color: rgba(255, 255, 255, 0.14);
                color: white;
                font-weight: 600;
            }
            QPushButton:hover {
                background-color: rgba(255, 255, 255, 0.24);
            }
            """
        )
        return button

    def render_payload(self, payload: LockBroadcastPayload) -> None:
        self._allow_esc_exit = payload.allow_esc_exit
        self._time_label.setText(payload.time_text)
        self._date_label.setText(payload.date_text)
        self._countdown_label.setText(payload.rest_countdown.replace(":", " : "))
        if payload.rest_paused:
            self._hint_label.setText("Timer paused. Resume to continue the countdown.")
            self._pause_button.setText("Resume")
        else:
            self._hint_label.setText("Close your eyes for 20 seconds, then look into the distance.")
            self._pause_button.setText("Pause")
        self._esc_label.setText("ESC ends the break" if payload.allow_esc_exit else "ESC is disabled")

    def allow_close(self) -> None:
        """Let the next close go through; only the overlay app ends a break."""
        self._allow_close = True

    def set_background(self, path: Optional[Path]) -> None:
        pixmap = QPixmap(str(path)) if path is not None else None
        self._background = pixmap if pixmap is not None and not pixmap.isNull() else None
        self.update()

    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802
        if is_escape_exit(event.key() == Qt.Key.Key_Escape, self._allow_esc_exit):
            self.exitRequested.emit()
            event.accept()
            return
        super().keyPressEvent(event)

    def paintEvent(self, event: QPaintEvent) -> None:  # noqa: N802
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(17, 24, 39))
        if self._background is not None:
            scaled = self._background.scaled(
                self.size(),
                Qt.AspectRatioMode.KeepAspectRatioByExpanding,
                Qt.TransformationMode.SmoothTransformation,
            )
            x = (self.width() - scaled.width()) // 2
            y = (self.height() - scaled.height()) // 2
            painter.drawPixmap(QRect(x, y, scaled.width(), scaled.height()), scaled)
        painter.fillRect(self.rect(), QColor(0, 0, 0, 110))
        painter.end()
        super().paintEvent(event)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802
        if self._allow_close:
            super().closeEvent(event)
            return
        # Alt+F4 and the like; breaks end through the control process.
        event.ignore()
