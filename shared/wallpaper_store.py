"""
Host-side wallpaper cache backing the lock overlay background.

Images live in a single directory next to an ``index.json`` that records when
each file was added and last shown. The control process refreshes the index
(prefetch); the overlay process asks it for the next image to display.
"""

from __future__ import annotations

import json
import os
import threading
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

from PySide6.QtCore import QLockFile

from shared import logger as app_logger

WALLPAPER_CACHE_LIMIT = 30
INDEX_LOCK_TIMEOUT_MS = 2000
IMAGE_SUFFIXES = frozenset({".jpg", ".jpeg", ".png", ".bmp"})
DEFAULT_WALLPAPER_DIR = Path(
    os.environ.get(
        "EYE_REST_WALLPAPER_DIR",
        str(Path.home() / "AppData" / "Local" / "Eye Rest" / "Wallpapers"),
    )
)


@dataclass
class WallpaperFile:
    path: str
    added_at: float
    last_shown_at: float = 0.0


@dataclass
class WallpaperIndex:
    files: List[WallpaperFile] = field(default_factory=list)
    last_prefetch_at: float = 0.0


class WallpaperStore:
    """
    Access to the wallpaper directory and its index, safe across threads and
    across the control and overlay processes. Each read-modify-write of the
    index holds a lock file next to it, and saves replace the index atomically.
    """

    def __init__(
        self,
        directory: Optional[Path] = None,
        *,
        limit: int = WALLPAPER_CACHE_LIMIT,
        lock_timeout_ms: int = INDEX_LOCK_TIMEOUT_MS,
    ) -> None:
        self.directory = Path(directory or DEFAULT_WALLPAPER_DIR)
        self.limit = limit
        self.lock_timeout_ms = lock_timeout_ms
        self._index_path = self.directory / "index.json"
        self._lock_path = self.directory / "index.json.lock"
        self._lock = threading.Lock()
        self._logger = app_logger.get_logger()

    def prefetch(self) -> int:
        """
        Register image files that appeared in the directory since the last
        run and trim the cache to its size limit. Returns the number of new
        entries.
        """
        with self._index_guard():
            index = self._load()
            _prune_missing(index)
            known = {entry.path for entry in index.files}
            now = time.time()
            added = 0
            for candidate in sorted(self.directory.iterdir()):
                if candidate.suffix.lower() not in IMAGE_SUFFIXES or not candidate.is_file():
                    continue
                path = str(candidate)
                if path in known:
                    continue
                index.files.append(WallpaperFile(path=path, added_at=now))
                added += 1
            self._enforce_limit(index)
            index.last_prefetch_at = now
            self._save(index)
        self._logger.info("Wallpaper prefetch finished: {} new, {} cached", added, len(index.files))
        return added

    def next_wallpaper(self) -> Optional[Path]:
        """
        Pick the newest image never shown before, or else the one shown
        longest ago, and mark it as shown. Returns None for an empty cache.
        """
        with self._index_guard():
            index = self._load()
            _prune_missing(index)
            if not index.files:
                self._logger.debug("No cached wallpaper available in {}", self.directory)
                return None

            unshown = [entry for entry in index.files if not entry.last_shown_at]
            if unshown:
                chosen = max(unshown, key=lambda entry: entry.added_at)
            else:
                chosen = min(index.files, key=lambda entry: (entry.last_shown_at, -entry.added_at))
            chosen.last_shown_at = time.time()
            self._save(index)
        self._logger.debug("Serving wallpaper {}", chosen.path)
        return Path(chosen.path)

    @contextmanager
    def _index_guard(self) -> Iterator[None]:
        """Hold the in-process lock and the shared lock file. Raises OSError on timeout."""
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            lock_file = QLockFile(str(self._lock_path))
            if not lock_file.tryLock(self.lock_timeout_ms):
                raise OSError(f"Wallpaper index {self._index_path} is locked by another process")
            try:
                yield
            finally:
                lock_file.unlock()

    def _enforce_limit(self, index: WallpaperIndex) -> None:
        if len(index.files) <= self.limit:
            return
        index.files.sort(key=lambda entry: entry.added_at)
        while len(index.files) > self.limit:
            oldest = index.files.pop(0)
            try:
                Path(oldest.path).unlink(missing_ok=True)
            except OSError as exc:
                self._logger.warning("Failed to delete old wallpaper {}: {}", oldest.path, exc)

    def _load(self) -> WallpaperIndex:
        try:
            data = json.loads(self._index_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return WallpaperIndex()
        except (OSError, ValueError) as exc:
            self._logger.warning("Wallpaper index unreadable, starting fresh: {}", exc)
            return WallpaperIndex()

        if not isinstance(data, dict):
            return WallpaperIndex()
        files: List[WallpaperFile] = []
        for raw in data.get("files") or []:
            try:
                files.append(
                    WallpaperFile(
                        path=str(raw["path"]),
                        added_at=float(raw.get("added_at", 0.0)),
                        last_shown_at=float(raw.get("last_shown_at", 0.0)),
                    )
                )
            except (KeyError, TypeError, ValueError, AttributeError):
                continue
        try:
            last_prefetch_at = float(data.get("last_prefetch_at", 0.0))
        except (TypeError, ValueError):
            last_prefetch_at = 0.0
        return WallpaperIndex(files=files, last_prefetch_at=last_prefetch_at)

    def _save(self, index: WallpaperIndex) -> None:
        temp_path = self._index_path.with_name(self._index_path.name + ".tmp")
        try:
            temp_path.write_text(json.dumps(asdict(index), indent=2), encoding="utf-8")
            os.replace(temp_path, self._index_path)
        except OSError as exc:
            self._logger.error("Failed to write wallpaper index {}: {}", self._index_path, exc)


def _prune_missing(index: WallpaperIndex) -> None:
    index.files = [entry for entry in index.files if Path(entry.path).exists()]
