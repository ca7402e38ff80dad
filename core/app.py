"""
Application coordinator for the control process.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer
from PySide6.QtGui import QAction
from PySide6.QtWidgets import QApplication, QMenu, QStyle, QSystemTrayIcon

from core.control_window import ControlWindow, format_usage
from core.filter_applier import FilterSettingsApplier
from core.host_bridge import HostBridge
from core.lock_session import LockSessionController
from core.lock_sync import CrossWindowSync
from core.overlay_host import OverlayHost
from core.rest_scheduler import RestPhase, RestScheduler
from core.settings import CoreSettingsManager, FilterSettings, is_daytime
from shared import logger as app_logger
from shared.lock_protocol import clock_texts, format_duration

APP_NAME = "Eye Rest"
APP_VERSION = "1.0.0"
CLOCK_INTERVAL_MS = 1000
PREFETCH_INTERVAL_MS = 24 * 60 * 60 * 1000


@dataclass
class AppCoordinator(QObject):
    settings_manager: CoreSettingsManager = field(default_factory=CoreSettingsManager)
    bridge: HostBridge = field(default_factory=HostBridge)
    overlay_host: Optional[OverlayHost] = None
    now: Callable[[], datetime] = datetime.now

    def __post_init__(self) -> None:
        super().__init__()
        self._logger = app_logger.get_logger()
        self._manual_shutdown_requested = False
        self._torn_down = False
        self._session_started_at = time.time()

        started = self.now()
        initial = self.settings_manager.read_settings(now=started)
        self._filter: FilterSettings = initial.filter
        self._daytime = is_daytime(started)

        self.overlay_host = self.overlay_host or OverlayHost(parent=self)
        self.scheduler = RestScheduler(initial.rest, now=time.time())
        self.session = LockSessionController(self.scheduler, parent=self)
        self.applier = FilterSettingsApplier(self.bridge, parent=self)
        self.sync = CrossWindowSync(self.session, self.overlay_host, parent=self)

        self.session.breakEnded.connect(self.applier.reapply)
        self.session.stateChanged.connect(lambda _cycle: self._refresh_status())

        self._window = ControlWindow()
        self._window.show_filter(self._filter)
        self._window.show_rest(self.scheduler.settings)
        self._window.filterToggled.connect(self._on_filter_toggled)
        self._window.strengthChanged.connect(self._on_strength_changed)
        self._window.colorTempChanged.connect(self._on_color_temp_changed)
        self._window.presetSelected.connect(self._on_preset_selected)
        self._window.restToggled.connect(self.session.set_rest_enabled)
        self._window.intervalChanged.connect(self.session.set_interval)
        self._window.durationChanged.connect(self.session.set_duration)
        self._window.allowEscToggled.connect(self.session.set_allow_esc_exit)
        self._window.restNowRequested.connect(self.session.start)
        self._window.escapePressed.connect(self.sync.handle_escape)

        self._tray = QSystemTrayIcon(self)
        tray_icon = QApplication.style().standardIcon(QStyle.StandardPixmap.SP_DesktopIcon)
        self._tray.setIcon(tray_icon)
        self._tray.setToolTip(f"{APP_NAME} v{APP_VERSION}")

        menu = QMenu()
        show_action = QAction("Show", menu)
        rest_action = QAction("Rest now", menu)
        exit_action = QAction("Exit", menu)
        menu.addAction(show_action)
        menu.addAction(rest_action)
        menu.addSeparator()
        menu.addAction(exit_action)
        self._tray.setContextMenu(menu)
        self._tray_menu = menu

        show_action.triggered.connect(self.show_window)
        rest_action.triggered.connect(self.session.start)
        exit_action.triggered.connect(self.shutdown)
        self._tray.activated.connect(self._on_tray_activated)

        self._clock_timer = QTimer(self)
        self._clock_timer.setInterval(CLOCK_INTERVAL_MS)
        self._clock_timer.timeout.connect(self._on_clock_tick)

        self._prefetch_timer = QTimer(self)
        self._prefetch_timer.setInterval(PREFETCH_INTERVAL_MS)
        self._prefetch_timer.timeout.connect(self.bridge.prefetch_wallpaper)

    def start(self) -> None:
        self._logger.info("Starting {} v{}", APP_NAME, APP_VERSION)
        self.overlay_host.start()
        self.applier.submit(self._filter)
        self.bridge.prefetch_wallpaper()
        self._prefetch_timer.start()
        self._clock_timer.start()
        self._refresh_status()
        self._tray.show()
        self.show_window()

    def shutdown(self) -> None:
        self._logger.info("Shutting down application on user request.")
        self._manual_shutdown_requested = True
        self.teardown()
        QApplication.instance().quit()

    def teardown(self) -> None:
        """Stop timers, close the overlay and undo the screen filter. Runs once."""
        if self._torn_down:
            return
        self._torn_down = True
        self._clock_timer.stop()
        self._prefetch_timer.stop()
        self.sync.stop()
        self.overlay_host.stop()
        self.applier.shutdown()
        self._tray.hide()
        self._window.allow_close()
        self._window.close()

    @property
    def manual_shutdown_requested(self) -> bool:
        return self._manual_shutdown_requested

    def show_window(self) -> None:
        self._window.show()
        self._window.raise_()
        self._window.activateWindow()

    def _on_tray_activated(self, reason: QSystemTrayIcon.ActivationReason) -> None:
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self.show_window()
        elif reason == QSystemTrayIcon.ActivationReason.DoubleClick:
            if self._window.isVisible():
                self._window.hide()
            else:
                self.show_window()

    def _on_clock_tick(self) -> None:
        self.session.tick()
        daytime = is_daytime(self.now())
        if daytime != self._daytime:
            self._daytime = daytime
            refreshed = self._filter.refreshed_for(daytime)
            if refreshed != self._filter:
                self._logger.info(
                    "Switching Smart preset to {} values.", "day" if daytime else "night"
                )
                self._set_filter(refreshed)
        self._refresh_status()

    def _set_filter(self, settings: FilterSettings) -> None:
        self._filter = settings
        self._window.show_filter(settings)
        self.applier.submit(settings)

    def _on_filter_toggled(self, enabled: bool) -> None:
        self._set_filter(replace(self._filter, enabled=enabled))

    def _on_strength_changed(self, strength: int) -> None:
        self._set_filter(replace(self._filter, strength=strength))

    def _on_color_temp_changed(self, color_temp: int) -> None:
        self._set_filter(replace(self._filter, color_temp=color_temp))

    def _on_preset_selected(self, name: str) -> None:
        self._logger.info("Preset '{}' selected.", name)
        self._set_filter(self._filter.with_preset(name, self._daytime))

    def _refresh_status(self) -> None:
        now = time.time()
        cycle = self.session.cycle
        if cycle.overlay_visible:
            next_rest_text = "On break"
        elif cycle.phase is RestPhase.WAITING:
            next_rest_text = format_duration(cycle.seconds_until_rest(now) or 0)
        else:
            next_rest_text = "Paused"
        time_text, date_text = clock_texts(datetime.fromtimestamp(now))
        self._window.show_status(
            time_text=time_text,
            date_text=date_text,
            next_rest_text=next_rest_text,
            usage_text=format_usage(now - self._session_started_at),
        )
