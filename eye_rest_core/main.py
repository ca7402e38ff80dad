"""
Entry point for the Eye Rest control process.
"""

from __future__ import annotations

import atexit
import signal
import sys
import time
from pathlib import Path
from typing import Iterable, Tuple

from PySide6.QtCore import QDir, QLockFile
from PySide6.QtWidgets import QApplication

from core.app import AppCoordinator
from shared import logger as app_logger

_LOGGER = app_logger.get_logger()
_LOCK_FILE_NAME = "eye-rest-core.lock"
_INITIAL_BACKOFF_SECONDS = 2
_MAX_BACKOFF_SECONDS = 30


def _acquire_single_instance_lock() -> QLockFile | None:
    """
    Take the per-user lock file. Returns None when another control process
    holds it; a lock left behind by a crashed process is treated as stale.
    """
    lock = QLockFile(str(Path(QDir.tempPath()) / _LOCK_FILE_NAME))
    lock.setStaleLockTime(0)
    if not lock.tryLock(100):
        return None
    return lock


def _install_teardown_hooks(app: QApplication, coordinator: AppCoordinator) -> None:
    """Undo the screen filter on graceful quit, on SIGINT/SIGTERM and at interpreter exit."""
    app.aboutToQuit.connect(coordinator.teardown)
    atexit.register(coordinator.applier.shutdown)

    def _on_signal(signum, _frame) -> None:
        _LOGGER.warning("Received signal {}; shutting down.", signum)
        coordinator.shutdown()

    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, _on_signal)


def _run_application_once(argv: Iterable[str]) -> Tuple[int, bool]:
    """Run one Qt application lifetime; returns the exit code and whether the user quit."""
    app = QApplication.instance() or QApplication(list(argv))
    app.setQuitOnLastWindowClosed(False)
    coordinator = AppCoordinator()
    _install_teardown_hooks(app, coordinator)
    coordinator.start()
    exit_code = app.exec()
    return exit_code, coordinator.manual_shutdown_requested


def main() -> int:
    """Start the control process, restarting it with backoff after a crash."""
    app_logger.configure(role=app_logger.CONTROL_ROLE)
    lock = _acquire_single_instance_lock()
    if lock is None:
        _LOGGER.info("Another Eye Rest control process is running; exiting.")
        return 0

    backoff = _INITIAL_BACKOFF_SECONDS
    try:
        while True:
            try:
                exit_code, user_quit = _run_application_once(sys.argv)
            except Exception:  # pragma: no cover - crash guard around the whole UI
                _LOGGER.exception("Control process crashed; restarting.")
                exit_code, user_quit = 1, False

            if user_quit:
                _LOGGER.info("Eye Rest exited (code={}).", exit_code)
                return exit_code

            _LOGGER.warning(
                "Control process stopped unexpectedly (code={}); restarting in {} s.",
                exit_code,
                backoff,
            )
            time.sleep(backoff)
            backoff = min(backoff * 2, _MAX_BACKOFF_SECONDS)
    finally:
        lock.unlock()


if __name__ == "__main__":
    raise SystemExit(main())
