"""End-to-end "shrink the current clipboard image" operation.

`ClipboardShrinker.transcode()` runs read -> resize -> resolve format ->
compress -> write and raises the outcome taxonomy from `clipshrink.errors`.
`ClipboardShrinker.shrink()` is the boundary used by the monitor and the
host: it converts every outcome into a single notification and a
`ShrinkOutcome` value.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from clipshrink.clipboard import ClipboardStore
from clipshrink.config import OutputFormat, TranscodeConfig
from clipshrink.errors import ClipShrinkError, EncodeFailure, NoImagePresent, WriteFailure
from clipshrink.image_engine.compressor import FALLBACK_MIME_TYPE, compress_image, encode_fallback
from clipshrink.image_engine.format_resolver import mime_type_for, resolve_format
from clipshrink.image_engine.metrics import metrics
from clipshrink.image_engine.resizer import resize_image, round_half_away
from clipshrink.logger import get_logger

from .notifications import NotificationSink, send_notification

_logger = get_logger("orchestrator")

SUCCESS_TITLE = "Image Shrunk"


class ShrinkStatus(Enum):
    SHRUNK = "shrunk"
    NO_IMAGE = "no_image"
    FAILED = "failed"


@dataclass(frozen=True)
class TranscodeResult:
    original_dimensions: tuple[int, int]
    new_dimensions: tuple[int, int]
    output_bytes: bytes
    reduction_percent: int
    output_format: OutputFormat
    original_size: int = 0

    @property
    def output_size(self) -> int:
        return len(self.output_bytes)

    def summary(self) -> str:
        ow, oh = self.original_dimensions
        nw, nh = self.new_dimensions
        return f"{ow}×{oh} → {nw}×{nh} ({self.reduction_percent}% smaller)"


@dataclass(frozen=True)
class ShrinkOutcome:
    status: ShrinkStatus
    result: TranscodeResult | None = None
    error: ClipShrinkError | None = None

    @property
    def ok(self) -> bool:
        return self.status != ShrinkStatus.FAILED


def reduction_percent(original_size: int, new_size: int) -> int:
    """Percentage saved, clamped to [0, 100]; 0 when the original size is unknown."""
    if original_size <= 0:
        return 0
    pct = round_half_away((1.0 - new_size / original_size) * 100.0)
    return min(100, max(0, pct))


class ClipboardShrinker:
    """Transcode orchestrator bound to one clipboard store."""

    def __init__(
        self,
        store: ClipboardStore,
        config_provider: Callable[[], TranscodeConfig],
        notifier: NotificationSink | None = None,
    ) -> None:
        self._store = store
        self._config_provider = config_provider
        self._notifier = notifier
        # Serializes the clipboard read-modify-write for multi-threaded hosts.
        self._lock = threading.Lock()

    def transcode(self) -> TranscodeResult:
        with self._lock:
            return self._transcode_locked(self._config_provider())

    def _transcode_locked(self, config: TranscodeConfig) -> TranscodeResult:
        image = self._store.current_image()
        if image is None:
            raise NoImagePresent()

        original_dims = image.dimensions
        original_size = image.original_size

        resized = resize_image(image, config.max_width, config.height_limit)

        available = self._store.available_types() if config.output_format == OutputFormat.ORIGINAL else ()
        fmt = resolve_format(config.output_format, available)

        data = compress_image(resized, fmt, config.quality, config.strip_metadata)

        # Produced before the clipboard is touched so a failure here cannot
        # leave the clipboard half written.
        try:
            fallback: bytes | None = encode_fallback(data)
        except EncodeFailure as e:
            _logger.warning("fallback representation skipped: %s", e)
            fallback = None

        self._write(data, fmt, fallback)

        result = TranscodeResult(
            original_dimensions=original_dims,
            new_dimensions=resized.dimensions,
            output_bytes=data,
            reduction_percent=reduction_percent(original_size, len(data)),
            output_format=fmt,
            original_size=original_size,
        )
        _logger.info(
            "shrunk %s as %s: %d -> %d bytes", result.summary(), fmt.value, original_size, result.output_size
        )
        return result

    def _write(self, data: bytes, fmt: OutputFormat, fallback: bytes | None) -> None:
        try:
            self._store.clear()
            self._store.set_primary(data, mime_type_for(fmt))
            if fallback is not None:
                self._store.set_fallback(fallback, FALLBACK_MIME_TYPE)
            self._store.commit()
        except (RuntimeError, OSError) as e:
            _logger.error("clipboard write failed: %s", e)
            raise WriteFailure(str(e)) from e

    def shrink(self) -> ShrinkOutcome:
        """Run the pipeline and report the outcome through the notifier."""
        with metrics.timed("shrink.duration"):
            try:
                result = self.transcode()
            except NoImagePresent as e:
                metrics.inc("shrink.no_image")
                _logger.info("no image on the clipboard")
                send_notification(self._notifier, e.title, e.body)
                return ShrinkOutcome(ShrinkStatus.NO_IMAGE)
            except ClipShrinkError as e:
                metrics.inc("shrink.failed")
                _logger.error("shrink failed (%s): %s", type(e).__name__, e)
                send_notification(self._notifier, e.title, e.body)
                return ShrinkOutcome(ShrinkStatus.FAILED, error=e)
            except Exception as e:
                metrics.inc("shrink.failed")
                _logger.exception("shrink failed unexpectedly")
                error = ClipShrinkError(str(e))
                send_notification(self._notifier, error.title, error.body)
                return ShrinkOutcome(ShrinkStatus.FAILED, error=error)

        metrics.inc("shrink.succeeded")
        metrics.inc("shrink.bytes_saved", max(0, result.original_size - result.output_size))
        send_notification(self._notifier, SUCCESS_TITLE, result.summary())
        return ShrinkOutcome(ShrinkStatus.SHRUNK, result=result)
