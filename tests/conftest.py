"""Shared fixtures: headless Qt application and a controllable wall clock."""

import os
import tempfile

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("EYE_REST_LOG_DIR", os.path.join(tempfile.gettempdir(), "eye-rest-tests", "logs"))
os.environ.setdefault(
    "EYE_REST_WALLPAPER_DIR", os.path.join(tempfile.gettempdir(), "eye-rest-tests", "wallpapers")
)

import pytest  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

T0 = 1_700_000_000.0


class FakeClock:
    def __init__(self, start: float = T0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def clock():
    return FakeClock()
