"""
Entry point for the lock overlay process, launched by the control process.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from PySide6.QtWidgets import QApplication

from overlay.app import LockOverlayApp
from shared import logger as app_logger
from shared.lock_protocol import LaunchParams


def _parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Eye Rest lock overlay")
    parser.add_argument("--server", required=True, help="Local socket name of the control process")
    parser.add_argument(
        "--params",
        default="",
        help="Initial state as a query string: end=<epoch ms>&paused=1&remaining=<s>&allowEsc=0",
    )
    args, _unknown = parser.parse_known_args(argv)
    return args


def main(argv: Optional[List[str]] = None) -> int:
    app_logger.configure(role=app_logger.OVERLAY_ROLE)
    logger = app_logger.get_logger()
    arguments = list(sys.argv if argv is None else argv)
    args = _parse_args(arguments[1:])
    params = LaunchParams.from_query(args.params)
    logger.info("Overlay launched with {}", params)

    app = QApplication(arguments)
    overlay = LockOverlayApp(params, args.server)
    overlay.start()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
