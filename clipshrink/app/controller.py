from __future__ import annotations

from typing import Any

from PySide6.QtCore import QObject, Signal

from clipshrink.clipboard import ClipboardStore
from clipshrink.config import TranscodeConfig, coerce_config_value, config_from_settings, serialize_config_value
from clipshrink.logger import get_logger
from clipshrink.settings_manager import SettingsManager

from .monitor import ClipboardMonitor
from .notifications import NotificationSink
from .orchestrator import ClipboardShrinker, ShrinkOutcome

_logger = get_logger("controller")


class ShrinkController(QObject):
    """Composition root: owns the config snapshot, orchestrator and monitor.

    Constructed once by the host. `initialize()` loads the persisted config and
    starts the monitor when auto-shrink is on; `shutdown()` stops it.
    """

    configChanged = Signal(str, object)  # field, new value

    def __init__(
        self,
        settings: SettingsManager,
        store: ClipboardStore,
        notifier: NotificationSink | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._settings = settings
        self._config = config_from_settings(settings)
        self.shrinker = ClipboardShrinker(store, self.config, notifier)
        self.monitor = ClipboardMonitor(store, self.shrinker.shrink, self)

    def config(self) -> TranscodeConfig:
        return self._config

    # ---- lifecycle -------------------------------------------------
    def initialize(self) -> None:
        self._config = config_from_settings(self._settings)
        _logger.debug("config loaded: %s", self._config)
        if self._config.auto_shrink_enabled:
            self.monitor.start()

    def shutdown(self) -> None:
        self.monitor.stop()

    # ---- commands --------------------------------------------------
    def shrink_now(self) -> ShrinkOutcome:
        return self.shrinker.shrink()

    def update_config(self, field: str, value: Any) -> TranscodeConfig:
        """Validate, persist and apply a single config field."""
        coerced = coerce_config_value(field, value)
        self._settings.set(field, serialize_config_value(coerced))
        self._config = self._config.with_value(field, coerced)
        _logger.info("config %s = %r", field, coerced)

        if field == "auto_shrink_enabled":
            if coerced:
                self.monitor.start()
            else:
                self.monitor.stop()
        self.configChanged.emit(field, coerced)
        return self._config
