from __future__ import annotations

from typing import Protocol

from PySide6.QtWidgets import QSystemTrayIcon

from clipshrink.logger import get_logger

_logger = get_logger("notifications")


class NotificationSink(Protocol):
    def notify(self, title: str, body: str) -> None: ...


class LoggingNotificationSink:
    """Sink used when no tray is available: notifications go to the log."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def notify(self, title: str, body: str) -> None:
        self.sent.append((title, body))
        _logger.info("%s: %s", title, body)


class TrayNotificationSink:
    """Show notifications as tray balloon messages."""

    def __init__(self, tray: QSystemTrayIcon, timeout_ms: int = 4000) -> None:
        self._tray = tray
        self._timeout_ms = timeout_ms

    def notify(self, title: str, body: str) -> None:
        self._tray.showMessage(title, body, QSystemTrayIcon.MessageIcon.Information, self._timeout_ms)


def send_notification(sink: NotificationSink | None, title: str, body: str) -> None:
    """Fire-and-forget delivery; failures are logged, never raised."""
    if sink is None:
        return
    try:
        sink.notify(title, body)
    except Exception as e:
        _logger.warning("notification failed (%s): %s", title, e)
