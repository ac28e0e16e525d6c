"""Pytest configuration.

Widgets are created in several modules, so a single offscreen `QApplication`
is created for the whole session before collection starts.
"""

from __future__ import annotations

import os
from concurrent.futures import Executor, Future
from typing import Any

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP
    _APP = QApplication.instance() or QApplication([])


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return
    app = QApplication.instance()
    if app is None:
        return
    app.quit()
    app.processEvents()


class ImmediateExecutor(Executor):
    """Runs each job inline on submit; results still reach Qt via queued signals."""

    def __init__(self) -> None:
        self.calls = 0

    def submit(self, fn, /, *args, **kwargs) -> Future:
        self.calls += 1
        fut: Future = Future()
        try:
            fut.set_result(fn(*args, **kwargs))
        except Exception as e:
            fut.set_exception(e)
        return fut


@pytest.fixture
def immediate_executor() -> ImmediateExecutor:
    return ImmediateExecutor()


@pytest.fixture
def make_png():
    """Factory for real PNG bytes of a given size, encoded by Qt."""
    from PySide6.QtCore import QBuffer, QByteArray, QIODevice
    from PySide6.QtGui import QImage

    def _make(width: int, height: int, color: int = 0x445566) -> bytes:
        img = QImage(width, height, QImage.Format.Format_RGB888)
        img.fill(color)
        ba = QByteArray()
        buf = QBuffer(ba)
        buf.open(QIODevice.OpenModeFlag.WriteOnly)
        img.save(buf, "PNG")
        buf.close()
        return bytes(ba.data())

    return _make


@pytest.fixture
def settings(tmp_path):
    from reaper.settings_manager import SettingsManager

    return SettingsManager(str(tmp_path / "settings.json"))
