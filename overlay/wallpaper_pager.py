"""
Back/forward navigation over the wallpapers shown during one overlay session.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional

from shared import logger as app_logger


class WallpaperPager:
    """
    Append-only history with a cursor. ``next`` past the end asks the host
    for a new wallpaper; moving backward never discards history.
    """

    def __init__(self, fetch: Callable[[], Optional[Path]]) -> None:
        self._fetch = fetch
        self._history: List[Path] = []
        self._cursor = 0
        self._closed = False
        self._logger = app_logger.get_logger()

    @property
    def history(self) -> tuple[Path, ...]:
        return tuple(self._history)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> Optional[Path]:
        if not self._history:
            return None
        return self._history[self._cursor]

    def next(self) -> Optional[Path]:
        """Advance the cursor. Returns the new entry, or None when nothing changed."""
        if self._closed:
            return None
        if self._cursor < len(self._history) - 1:
            self._cursor += 1
            return self._history[self._cursor]

        try:
            reference = self._fetch()
        except (OSError, ValueError) as exc:
            self._logger.error("Failed to fetch lock wallpaper: {}", exc)
            return None
        if self._closed:
            self._logger.debug("Discarding wallpaper fetched after teardown.")
            return None
        if reference is None:
            return None

        self._history.append(reference)
        self._cursor = len(self._history) - 1
        return reference

    def prev(self) -> Optional[Path]:
        if self._closed or self._cursor <= 0:
            return None
        self._cursor -= 1
        return self._history[self._cursor]

    def close(self) -> None:
        self._closed = True
