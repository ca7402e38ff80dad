"""
Platform calls made by the control process: screen filter and wallpaper cache.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from core.settings import FilterSettings
from shared import logger as app_logger
from shared.wallpaper_store import WallpaperStore


class HostBridgeError(RuntimeError):
    """Raised when the host rejects or fails a platform call."""


class GammaBackend(Protocol):
    def apply(self, enabled: bool, strength: int, color_temp: int) -> None: ...

    def reset(self) -> None: ...


@dataclass
class RecordingGammaBackend:
    """
    Default backend: remembers the last requested filter and logs it. A real
    display backend plugs in through the same two methods.
    """

    last_request: Optional[tuple[bool, int, int]] = None
    reset_count: int = 0

    def apply(self, enabled: bool, strength: int, color_temp: int) -> None:
        self.last_request = (enabled, strength, color_temp)
        app_logger.get_logger().debug(
            "Screen filter requested: enabled={} strength={} temp={}K", enabled, strength, color_temp
        )

    def reset(self) -> None:
        self.last_request = None
        self.reset_count += 1
        app_logger.get_logger().debug("Screen filter reset requested.")


class HostBridge:
    """Narrow command surface over the gamma backend and the wallpaper cache."""

    def __init__(
        self,
        *,
        gamma: Optional[GammaBackend] = None,
        wallpapers: Optional[WallpaperStore] = None,
        spawn: Optional[Callable[[Callable[[], None]], None]] = None,
    ) -> None:
        self._logger = app_logger.get_logger()
        self.gamma: GammaBackend = gamma or RecordingGammaBackend()
        self.wallpapers = wallpapers or WallpaperStore()
        self._spawn = spawn or _spawn_daemon

    def apply_filter(self, settings: FilterSettings) -> None:
        try:
            self.gamma.apply(settings.enabled, settings.strength, settings.color_temp)
        except OSError as exc:
            raise HostBridgeError(f"Failed to apply screen filter: {exc}") from exc

    def reset_filter(self) -> None:
        try:
            self.gamma.reset()
        except OSError as exc:
            raise HostBridgeError(f"Failed to reset screen filter: {exc}") from exc

    def prefetch_wallpaper(self) -> None:
        """Refresh the wallpaper cache in the background; returns immediately."""
        self._spawn(self._run_prefetch)

    def _run_prefetch(self) -> None:
        try:
            self.wallpapers.prefetch()
        except OSError as exc:
            self._logger.error("Wallpaper prefetch failed: {}", exc)


def _spawn_daemon(target: Callable[[], None]) -> None:
    threading.Thread(target=target, name="wallpaper-prefetch", daemon=True).start()
