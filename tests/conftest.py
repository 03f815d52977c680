"""Pytest configuration.

Monitor/controller tests use QTimer and the Qt clipboard, so a single
`QApplication` is created for the whole session as early as possible (in
offscreen mode) and cleanly shut down at the end.
"""

from __future__ import annotations

import os
from typing import Any

import pytest

from helpers.fakes import FakeClipboardStore, solid_vips

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()


@pytest.fixture
def fake_store() -> FakeClipboardStore:
    return FakeClipboardStore()


@pytest.fixture
def png_bytes():
    def _make(width: int, height: int, **kwargs) -> bytes:
        return bytes(solid_vips(width, height, **kwargs).pngsave_buffer())

    return _make


@pytest.fixture
def jpeg_bytes():
    def _make(width: int, height: int, **kwargs) -> bytes:
        return bytes(solid_vips(width, height, **kwargs).jpegsave_buffer(Q=90))

    return _make
