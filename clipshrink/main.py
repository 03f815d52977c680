import argparse
import os
import sys

from PySide6.QtCore import QTimer
from PySide6.QtGui import QAction
from PySide6.QtWidgets import QApplication, QMenu, QStyle, QSystemTrayIcon

from clipshrink.app.controller import ShrinkController
from clipshrink.app.notifications import LoggingNotificationSink, TrayNotificationSink
from clipshrink.clipboard import QtClipboardStore
from clipshrink.logger import get_logger
from clipshrink.settings_manager import SettingsManager, default_settings_path

# --- CLI logging options -----------------------------------------------------
# Parsed before Qt sees argv so unknown options do not reach QApplication;
# the values are reflected into CLIPSHRINK_LOG_LEVEL / CLIPSHRINK_LOG_CATS.


def _apply_cli_logging_options(argv: list[str]) -> list[str]:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    args, remaining = parser.parse_known_args(argv[1:])
    if args.log_level:
        os.environ["CLIPSHRINK_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["CLIPSHRINK_LOG_CATS"] = args.log_cats
    return [argv[0], *remaining]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="clipshrink", description="Shrink clipboard images in place")
    parser.add_argument("--settings", help="Path to settings.json (default: user config dir)")
    parser.add_argument("--once", action="store_true", help="Shrink the current clipboard image and exit")
    auto = parser.add_mutually_exclusive_group()
    auto.add_argument("--auto", dest="auto", action="store_true", default=None, help="Enable auto-shrink")
    auto.add_argument("--no-auto", dest="auto", action="store_false", help="Disable auto-shrink")
    return parser


def _create_tray(app: QApplication) -> QSystemTrayIcon:
    tray = QSystemTrayIcon(app.style().standardIcon(QStyle.StandardPixmap.SP_DesktopIcon), app)
    tray.setToolTip("clipshrink")
    return tray


def _attach_menu(tray: QSystemTrayIcon, app: QApplication, controller: ShrinkController) -> None:
    menu = QMenu()
    shrink_action = QAction("Shrink Clipboard Image", menu)
    shrink_action.triggered.connect(controller.shrink_now)
    menu.addAction(shrink_action)
    menu.addSeparator()
    quit_action = QAction("Quit", menu)
    quit_action.triggered.connect(app.quit)
    menu.addAction(quit_action)

    tray.setContextMenu(menu)
    tray._menu = menu  # type: ignore[attr-defined]  # keep the menu alive
    tray.show()


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint (packaging-friendly)."""
    if argv is None:
        argv = sys.argv
    argv = _apply_cli_logging_options(argv)
    logger = get_logger("main")

    args, qt_args = _build_parser().parse_known_args(argv[1:])

    app = QApplication([argv[0], *qt_args])
    app.setApplicationName("clipshrink")
    app.setQuitOnLastWindowClosed(False)

    settings = SettingsManager(args.settings or default_settings_path())
    store = QtClipboardStore(parent=app)

    tray: QSystemTrayIcon | None = None
    notifier: LoggingNotificationSink | TrayNotificationSink = LoggingNotificationSink()
    if not args.once and QSystemTrayIcon.isSystemTrayAvailable():
        tray = _create_tray(app)
        notifier = TrayNotificationSink(tray)
    else:
        logger.debug("system tray unavailable; notifications go to the log")

    controller = ShrinkController(settings, store, notifier, parent=app)
    if tray is not None:
        _attach_menu(tray, app, controller)

    if args.auto is not None:
        controller.update_config("auto_shrink_enabled", args.auto)

    if args.once:
        outcome = controller.shrink_now()
        # Let Qt hand the clipboard over to a clipboard manager before exit.
        QTimer.singleShot(0, app.quit)
        app.exec()
        return 0 if outcome.ok else 1

    controller.initialize()
    app.aboutToQuit.connect(controller.shutdown)
    logger.info("clipshrink running (auto-shrink %s)", "on" if controller.monitor.is_running else "off")
    return app.exec()


if __name__ == "__main__":
    sys.exit(run())
