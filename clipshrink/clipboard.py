"""Clipboard access for the transcode pipeline.

`ClipboardStore` is the interface the orchestrator and monitor depend on.
`QtClipboardStore` implements it on top of `QGuiApplication.clipboard()`.

Qt has no native change counter, so the store keeps its own and bumps it on
every `QClipboard.dataChanged`. Updates published by the store carry a
private owner marker so self-writes can be recognized even on platforms
where `dataChanged` arrives asynchronously.

Writes are staged by `clear()`, `set_primary()` and `set_fallback()` and
published by `commit()` as a single `setMimeData`, so other readers never see
an empty or half-written clipboard.
"""

from __future__ import annotations

import os
from typing import Protocol

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QMimeData, QObject
from PySide6.QtGui import QGuiApplication, QImage, QImageWriter

from clipshrink.errors import DecodeFailure
from clipshrink.image_engine.image_buffer import ImageBuffer, decode_image_bytes
from clipshrink.logger import get_logger

_logger = get_logger("clipboard")

OWNER_MIME_TYPE = "application/x-clipshrink-owner"

# Order in which representations are tried when reading the clipboard image.
READ_PRIORITY = (
    "image/png",
    "image/tiff",
    "image/jpeg",
    "image/heic",
    "image/heif",
    "image/webp",
    "image/bmp",
)


class ClipboardStore(Protocol):
    def current_image(self) -> ImageBuffer | None: ...

    def has_image(self) -> bool: ...

    def change_counter(self) -> int: ...

    def available_types(self) -> set[str]: ...

    def written_by_self(self) -> bool: ...

    def clear(self) -> None: ...

    def set_primary(self, data: bytes, type_id: str) -> None: ...

    def set_fallback(self, data: bytes, type_id: str) -> None: ...

    def commit(self) -> None: ...


def qimage_to_png_bytes(qimg: QImage) -> bytes:
    if qimg.isNull():
        return b""

    # Encode from a 32-bit format to avoid edge cases with 24-bit scanlines.
    img = qimg.convertToFormat(QImage.Format.Format_ARGB32)

    arr = QByteArray()
    buf = QBuffer(arr)
    buf.open(QIODevice.OpenModeFlag.WriteOnly)

    writer = QImageWriter(buf, b"png")
    ok = writer.write(img)

    buf.close()
    if not ok:
        _logger.debug("QImage -> PNG failed: %s", writer.errorString())
        return b""
    return bytes(arr.data())


class QtClipboardStore(QObject):
    """ClipboardStore backed by the Qt application clipboard."""

    def __init__(self, clipboard=None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._clipboard = clipboard if clipboard is not None else QGuiApplication.clipboard()
        if self._clipboard is None:
            raise RuntimeError("clipboard unavailable (no QGuiApplication?)")
        self._counter = 0
        self._staged: dict[str, bytes] = {}
        self._staged_image: QImage | None = None
        self._owner_token = str(os.getpid()).encode("ascii")
        self._clipboard.dataChanged.connect(self._on_data_changed)

    def _on_data_changed(self) -> None:
        self._counter += 1
        _logger.debug("clipboard dataChanged (counter=%d)", self._counter)

    # ---- reading ---------------------------------------------------
    def change_counter(self) -> int:
        return self._counter

    def available_types(self) -> set[str]:
        mime = self._clipboard.mimeData()
        if mime is None:
            return set()
        return set(mime.formats())

    def has_image(self) -> bool:
        mime = self._clipboard.mimeData()
        if mime is None:
            return False
        if mime.hasImage():
            return True
        return any(mime.hasFormat(t) for t in READ_PRIORITY)

    def written_by_self(self) -> bool:
        mime = self._clipboard.mimeData()
        if mime is None or not mime.hasFormat(OWNER_MIME_TYPE):
            return False
        return bytes(mime.data(OWNER_MIME_TYPE).data()) == self._owner_token

    def current_image(self) -> ImageBuffer | None:
        """Decode the clipboard image, preferring encoded representations.

        The original size estimate is the byte length of the representation
        that decoded. Raises DecodeFailure when image data is present but
        none of it can be read.
        """
        mime = self._clipboard.mimeData()
        if mime is None:
            return None

        last_error: DecodeFailure | None = None
        for type_id in READ_PRIORITY:
            if not mime.hasFormat(type_id):
                continue
            data = bytes(mime.data(type_id).data())
            if not data:
                continue
            try:
                image = decode_image_bytes(data)
                _logger.debug("read clipboard image from %s (%d bytes)", type_id, len(data))
                return image
            except DecodeFailure as e:
                _logger.debug("clipboard %s not decodable: %s", type_id, e)
                last_error = e

        if mime.hasImage():
            png = qimage_to_png_bytes(self._clipboard.image())
            if png:
                return decode_image_bytes(png)
            last_error = DecodeFailure("clipboard image could not be converted")

        if last_error is not None:
            raise last_error
        return None

    # ---- writing ---------------------------------------------------
    def clear(self) -> None:
        """Start a fresh staged update; prior contents go away on `commit()`."""
        self._staged = {}
        self._staged_image = None

    def set_primary(self, data: bytes, type_id: str) -> None:
        self._staged[type_id] = bytes(data)

    def set_fallback(self, data: bytes, type_id: str) -> None:
        self._staged[type_id] = bytes(data)
        qimg = QImage.fromData(data)
        if not qimg.isNull():
            self._staged_image = qimg

    def commit(self) -> None:
        """Replace the clipboard with the staged representations in one update."""
        mime = QMimeData()
        for type_id, data in self._staged.items():
            mime.setData(type_id, QByteArray(data))
        if self._staged_image is not None:
            mime.setImageData(self._staged_image)
        mime.setData(OWNER_MIME_TYPE, QByteArray(self._owner_token))
        self._clipboard.setMimeData(mime)
        _logger.debug("published %s", ", ".join(sorted(self._staged)))
