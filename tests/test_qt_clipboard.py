from __future__ import annotations

import pytest
from PySide6.QtCore import QByteArray, QMimeData
from PySide6.QtGui import QColor, QGuiApplication, QImage

from clipshrink.app.orchestrator import ClipboardShrinker, ShrinkStatus
from clipshrink.clipboard import OWNER_MIME_TYPE, QtClipboardStore, qimage_to_png_bytes
from clipshrink.config import TranscodeConfig
from clipshrink.errors import DecodeFailure


@pytest.fixture
def clipboard():
    cb = QGuiApplication.clipboard()
    if cb is None:
        pytest.skip("no clipboard in this Qt platform")
    cb.clear()
    yield cb
    cb.clear()


def _external(cb, formats: dict[str, bytes]) -> None:
    mime = QMimeData()
    for type_id, data in formats.items():
        mime.setData(type_id, QByteArray(data))
    cb.setMimeData(mime)


def test_counter_follows_data_changed(clipboard):
    store = QtClipboardStore(clipboard)
    before = store.change_counter()

    clipboard.setText("hello")

    assert store.change_counter() > before
    assert not store.has_image()


def test_reads_external_png(clipboard, png_bytes):
    store = QtClipboardStore(clipboard)
    data = png_bytes(30, 20)
    _external(clipboard, {"image/png": data})

    assert store.has_image()
    assert not store.written_by_self()
    assert "image/png" in store.available_types()

    image = store.current_image()
    assert image is not None
    assert image.dimensions == (30, 20)
    assert image.original_size == len(data)


def test_undecodable_image_raises(clipboard):
    store = QtClipboardStore(clipboard)
    _external(clipboard, {"image/png": b"garbage"})

    with pytest.raises(DecodeFailure):
        store.current_image()


def test_no_image_returns_none(clipboard):
    store = QtClipboardStore(clipboard)
    clipboard.setText("just text")
    assert store.current_image() is None


def test_write_publishes_primary_fallback_and_owner(clipboard, png_bytes):
    store = QtClipboardStore(clipboard)
    primary = png_bytes(8, 6)

    store.clear()
    store.set_primary(primary, "image/png")
    store.set_fallback(b"II*\x00 not really a tiff", "image/tiff")
    store.commit()

    mime = clipboard.mimeData()
    assert bytes(mime.data("image/png").data()) == primary
    assert mime.hasFormat("image/tiff")
    assert mime.hasFormat(OWNER_MIME_TYPE)
    assert store.written_by_self()

    other = QtClipboardStore(clipboard)
    other._owner_token = b"some-other-process"
    assert not other.written_by_self()


def test_write_is_one_clipboard_update(clipboard, png_bytes):
    store = QtClipboardStore(clipboard)
    external = png_bytes(12, 12)
    _external(clipboard, {"image/png": external})
    before = store.change_counter()

    store.clear()
    store.set_primary(png_bytes(6, 6), "image/png")
    store.set_fallback(b"II*\x00 not really a tiff", "image/tiff")

    # nothing is visible to other readers until the commit
    assert store.change_counter() == before
    assert bytes(clipboard.mimeData().data("image/png").data()) == external
    assert not store.written_by_self()

    store.commit()

    assert store.change_counter() == before + 1
    assert store.written_by_self()


def test_shrink_publishes_a_single_update(clipboard, png_bytes):
    store = QtClipboardStore(clipboard)
    _external(clipboard, {"image/png": png_bytes(300, 200)})
    before = store.change_counter()
    cfg = TranscodeConfig(max_width=100)

    outcome = ClipboardShrinker(store, lambda: cfg).shrink()

    assert outcome.status == ShrinkStatus.SHRUNK
    assert store.change_counter() == before + 1
    assert store.current_image().dimensions == (100, 67)
    assert clipboard.mimeData().hasFormat("image/tiff")


def test_qimage_to_png_bytes():
    img = QImage(5, 3, QImage.Format.Format_RGB888)
    img.fill(QColor(255, 0, 0))
    out = qimage_to_png_bytes(img)
    assert out.startswith(b"\x89PNG\r\n\x1a\n")
    assert qimage_to_png_bytes(QImage()) == b""
