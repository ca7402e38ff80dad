"""
Coordinator for the lock overlay process.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, List, Optional

from PySide6.QtCore import QObject, QTimer
from PySide6.QtWidgets import QApplication

from overlay.action_client import ActionClient
from overlay.lock_mirror import LockMirror
from overlay.lock_window import LockWindow
from overlay.wallpaper_pager import WallpaperPager
from shared import logger as app_logger
from shared.lock_protocol import ACTION_EXIT, ACTION_TOGGLE_PAUSE, LaunchParams, LockBroadcastPayload
from shared.wallpaper_store import WallpaperStore

RENDER_INTERVAL_MS = 500


class LockOverlayApp(QObject):
    """
    Owns one lock window per screen, the local countdown mirror and the
    wallpaper history. It never changes rest state itself: pause and exit
    clicks are forwarded to the control process.
    """

    def __init__(
        self,
        params: LaunchParams,
        server_name: str,
        *,
        store: Optional[WallpaperStore] = None,
        clock: Optional[Callable[[], float]] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = app_logger.get_logger()
        self._server_name = server_name
        self._clock = clock or time.time
        self._closed = False

        self.mirror = LockMirror(params)
        store = store or WallpaperStore()
        self.pager = WallpaperPager(store.next_wallpaper)
        self.client = ActionClient(self)

        self.client.updateReceived.connect(self._on_update)
        self.client.closeRequested.connect(self.close)
        self.client.connectionLost.connect(self.close)

        self._windows: List[LockWindow] = []
        for screen in QApplication.screens():
            window = LockWindow(screen)
            window.exitRequested.connect(self.request_exit)
            window.togglePauseRequested.connect(self.request_toggle_pause)
            window.nextWallpaperRequested.connect(self.show_next_wallpaper)
            window.prevWallpaperRequested.connect(self.show_prev_wallpaper)
            self._windows.append(window)

        self._render_timer = QTimer(self)
        self._render_timer.setInterval(RENDER_INTERVAL_MS)
        self._render_timer.timeout.connect(self.render)

    def start(self) -> None:
        self._logger.info("Lock overlay starting on {} screen(s).", len(self._windows))
        self._apply_background(self.pager.next())
        for window in self._windows:
            window.showFullScreen()
            window.raise_()
        if self._windows:
            self._windows[0].activateWindow()
        self.render()
        self._render_timer.start()
        self.client.connect_to(self._server_name)

    def render(self) -> None:
        payload = self.mirror.snapshot(self._clock())
        for window in self._windows:
            window.render_payload(payload)

    def request_exit(self) -> None:
        self.client.send_action(ACTION_EXIT)

    def request_toggle_pause(self) -> None:
        self.mirror.toggle_pause_local(self._clock())
        self.render()
        self.client.send_action(ACTION_TOGGLE_PAUSE)

    def show_next_wallpaper(self) -> None:
        self._apply_background(self.pager.next())

    def show_prev_wallpaper(self) -> None:
        self._apply_background(self.pager.prev())

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._logger.info("Lock overlay closing.")
        self._render_timer.stop()
        self.pager.close()
        self.client.close()
        for window in self._windows:
            window.allow_close()
            window.close()
        # Deferred so a close during start-up still ends the event loop.
        QTimer.singleShot(0, QApplication.instance().quit)

    def _on_update(self, payload: LockBroadcastPayload) -> None:
        self.mirror.apply_broadcast(payload, self._clock())
        self.render()

    def _apply_background(self, path: Optional[Path]) -> None:
        if path is None:
            return
        for window in self._windows:
            window.set_background(path)
