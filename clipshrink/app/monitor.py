"""Clipboard monitor: polls for externally placed images.

State machine:
- Stopped -> Watching: `start()` captures the current change counter as the
  baseline and starts the poll timer.
- Watching -> Stopped: `stop()` halts the poll timer and drops a debounce job
  that has not started yet. A transcode already running finishes.

Each tick compares the clipboard change counter with the baseline. On a
change the baseline moves immediately; if an image is present a single-shot
debounce job is (re)scheduled so the producing application can finish
writing all of its representations. After the job runs, the baseline is
re-read so the monitor's own clipboard write is not picked up as new input.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from PySide6.QtCore import QObject, QTimer, Signal

from clipshrink.clipboard import ClipboardStore
from clipshrink.logger import get_logger

_logger = get_logger("monitor")

POLL_INTERVAL_MS = 1000
DEBOUNCE_MS = 300


class MonitorState(str, Enum):
    STOPPED = "stopped"
    WATCHING = "watching"


class ClipboardMonitor(QObject):
    state_changed = Signal(str)
    shrink_finished = Signal(object)  # whatever the shrink callback returned

    def __init__(
        self,
        store: ClipboardStore,
        shrink: Callable[[], object],
        parent: QObject | None = None,
        poll_interval_ms: int = POLL_INTERVAL_MS,
        debounce_ms: int = DEBOUNCE_MS,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._shrink = shrink
        self._state = MonitorState.STOPPED
        self._last_change_count = 0
        self._in_flight = False

        self._poll_timer = QTimer(self)
        self._poll_timer.setInterval(poll_interval_ms)
        self._poll_timer.timeout.connect(self.check_clipboard)

        self._debounce_timer = QTimer(self)
        self._debounce_timer.setSingleShot(True)
        self._debounce_timer.setInterval(debounce_ms)
        self._debounce_timer.timeout.connect(self.run_pending)

    # ---- state -----------------------------------------------------
    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == MonitorState.WATCHING

    @property
    def is_pending(self) -> bool:
        return self._debounce_timer.isActive()

    @property
    def last_change_count(self) -> int:
        return self._last_change_count

    def _set_state(self, state: MonitorState) -> None:
        if state == self._state:
            return
        self._state = state
        self.state_changed.emit(state.value)

    # ---- lifecycle -------------------------------------------------
    def start(self) -> None:
        self._poll_timer.stop()
        self._last_change_count = self._store.change_counter()
        self._poll_timer.start()
        self._set_state(MonitorState.WATCHING)
        _logger.info("clipboard monitor started (baseline=%d)", self._last_change_count)

    def stop(self) -> None:
        self._poll_timer.stop()
        self._debounce_timer.stop()
        if self._state == MonitorState.WATCHING:
            _logger.info("clipboard monitor stopped")
        self._set_state(MonitorState.STOPPED)

    # ---- ticks -----------------------------------------------------
    def check_clipboard(self) -> None:
        """One poll tick."""
        if self._state != MonitorState.WATCHING:
            return
        current = self._store.change_counter()
        if current == self._last_change_count:
            return
        self._last_change_count = current

        if self._store.written_by_self():
            _logger.debug("clipboard change %d is our own write, ignored", current)
            return
        if not self._store.has_image():
            _logger.debug("clipboard change %d carries no image", current)
            return

        _logger.info("new clipboard image detected (change=%d), shrinking shortly", current)
        # start() on an active single-shot timer reschedules it.
        self._debounce_timer.start()

    def run_pending(self) -> None:
        """Debounce job body: run the shrink callback once."""
        self._debounce_timer.stop()
        if self._in_flight:
            return
        self._in_flight = True
        outcome: object = None
        try:
            outcome = self._shrink()
        except Exception:
            _logger.exception("clipboard shrink raised; monitor keeps running")
        finally:
            self._in_flight = False
            self._last_change_count = self._store.change_counter()
        self.shrink_finished.emit(outcome)
