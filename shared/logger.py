"""
Logging setup shared by the control and overlay processes.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

_LOG_INITIALISED = False
LOG_DIR = Path(
    os.environ.get(
        "EYE_REST_LOG_DIR",
        str(Path.home() / "AppData" / "Local" / "Eye Rest" / "Logs"),
    )
)
CONTROL_ROLE = "core"
OVERLAY_ROLE = "overlay"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[role]} | {name}:{line} - {message}"


def log_path_for(role: str) -> Path:
    """Log file of one process role, e.g. ``core.log`` or ``overlay.log``."""
    return LOG_DIR / f"{role}.log"


def configure(log_path: Optional[Path] = None, *, role: str = CONTROL_ROLE) -> None:
    """
    Configure loguru for the current process.

    Only the first call takes effect, so each entry point configures its own
    log file before anything else asks for the logger.
    """
    global _LOG_INITIALISED
    if _LOG_INITIALISED:
        return
    target = log_path or log_path_for(role)
    target.parent.mkdir(parents=True, exist_ok=True)

    _logger.remove()
    _logger.configure(extra={"role": role})
    if sys.stderr is not None:
        # pythonw has no console.
        _logger.add(sys.stderr, level="INFO", enqueue=True)
    _logger.add(
        target,
        level="DEBUG",
        format=_FILE_FORMAT,
        rotation="10 MB",
        retention=5,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )
    _LOG_INITIALISED = True


def get_logger():
    """Return the shared logger, configuring the control-process sinks if nobody has yet."""
    configure()
    return _logger
