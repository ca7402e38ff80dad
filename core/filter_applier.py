"""
Debounced delivery of screen filter settings to the host bridge.
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject, QTimer

from core.host_bridge import HostBridge, HostBridgeError
from core.settings import FilterSettings
from shared import logger as app_logger

DEBOUNCE_INTERVAL_MS = 80


class FilterSettingsApplier(QObject):
    """
    Collapses bursts of filter changes (slider drags) into a single push once
    input has been quiet for ``DEBOUNCE_INTERVAL_MS``. Pushes are best-effort:
    bridge failures are logged and dropped.
    """

    def __init__(
        self,
        bridge: HostBridge,
        *,
        interval_ms: int = DEBOUNCE_INTERVAL_MS,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = app_logger.get_logger()
        self._bridge = bridge
        self._pending: Optional[FilterSettings] = None
        self._last: Optional[FilterSettings] = None
        self._shut_down = False

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.flush)  # type: ignore[arg-type]

    @property
    def pending(self) -> Optional[FilterSettings]:
        return self._pending

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    def submit(self, settings: FilterSettings) -> None:
        """Queue settings for delivery, restarting the quiescence window."""
        if self._shut_down:
            return
        self._pending = settings
        self._last = settings
        self._timer.start()

    def reapply(self) -> None:
        """Push the most recent settings again, e.g. after a break ends."""
        if self._last is not None:
            self.submit(self._last)

    def flush(self) -> None:
        self._timer.stop()
        settings, self._pending = self._pending, None
        if settings is None or self._shut_down:
            return
        try:
            self._bridge.apply_filter(settings)
        except (HostBridgeError, OSError) as exc:
            self._logger.error("Failed to apply screen filter settings: {}", exc)

    def shutdown(self) -> None:
        """
        Drop any pending push and undo all filtering. Safe to call from every
        teardown path; only the first call reaches the host.
        """
        if self._shut_down:
            return
        self._shut_down = True
        self._pending = None
        try:
            self._timer.stop()
        except RuntimeError:
            # Qt already destroyed the timer during interpreter teardown.
            pass
        try:
            self._bridge.reset_filter()
            self._logger.info("Screen filter reset on shutdown.")
        except (HostBridgeError, OSError) as exc:
            self._logger.error("Failed to reset screen filter on shutdown: {}", exc)
