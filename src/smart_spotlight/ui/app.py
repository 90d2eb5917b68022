"""Qt entry point: wires the spotlight window, settings and tray to the core app"""
import logging
import signal
import sys
from typing import Optional

# Import pynput-dependent core before PySide6 to avoid shibokensupport/six conflict
from smart_spotlight.core.app import App

from PySide6.QtCore import QObject, QTimer, Signal
from PySide6.QtGui import QColor, QIcon, QPixmap
from PySide6.QtWidgets import QApplication, QMenu, QSystemTrayIcon

from smart_spotlight.common.models import PROMPT_EVENT_CHANNEL
from smart_spotlight.core.config import configure_logging
from smart_spotlight.core.controller import PromptController
from smart_spotlight.core.registry import ProviderSettings
from smart_spotlight.ui.bridge import EventBridge, QtScheduler, QtTaskRunner
from smart_spotlight.ui.windows.settings_window import SettingsWindow
from smart_spotlight.ui.windows.spotlight_window import SpotlightWindow

logger = logging.getLogger(__name__)

TRAY_COLOR = QColor(52, 120, 246)


class HotkeySignals(QObject):
    """Carries hotkey presses from the pynput thread to the UI thread"""
    pressed = Signal()


class SmartSpotlightApp:
    """Owns the QApplication and every long-lived UI object"""

    def __init__(self):
        self.app = QApplication.instance() or QApplication(sys.argv)
        # The spotlight hides instead of closing; only Quit ends the process
        self.app.setQuitOnLastWindowClosed(False)

        self.core_app = App()
        config = self.core_app.config
        self.hotkey = config.get("hotkey", "Ctrl+Alt+Space")

        self.runner = QtTaskRunner()
        self.scheduler = QtScheduler()
        self.event_bridge = EventBridge(self.core_app.bus)

        self.window = SpotlightWindow()
        self.controller = PromptController(
            self.core_app.backend,
            self.core_app.bus,
            self.window.host,
            runner=self.runner,
            scheduler=self.scheduler,
            debounce_ms=int(config.get("suggestion_debounce_ms", 150)),
        )
        self.window.bind(self.controller)
        self.window.settings_requested.connect(self.show_settings_window)
        self.controller.start()

        self.provider_settings = ProviderSettings(
            self.core_app.registry,
            self.scheduler,
            success_display_ms=int(config.get("success_display_ms", 1500)),
            runner=self.runner,
        )
        self.settings_window: Optional[SettingsWindow] = None

        # Events arrive on the stream thread; hop to the UI thread before publishing
        self.core_app.start_event_stream(
            lambda event: self.event_bridge.post(PROMPT_EVENT_CHANNEL, event)
        )

        self.hotkey_signals = HotkeySignals()
        self.hotkey_signals.pressed.connect(self.window.toggle)
        self.core_app.register_hotkey(self.hotkey_signals.pressed.emit)

        self.tray_icon = self._create_tray_icon()
        self.app.aboutToQuit.connect(self.shutdown)

    def _create_tray_icon(self) -> QSystemTrayIcon:
        pixmap = QPixmap(64, 64)
        pixmap.fill(TRAY_COLOR)

        tray = QSystemTrayIcon(QIcon(pixmap), self.app)
        tray.setToolTip(f"Smart Spotlight - {self.hotkey}")

        menu = QMenu()
        menu.addAction(f"Open Spotlight ({self.hotkey})").triggered.connect(self.window.present)
        menu.addAction("Settings...").triggered.connect(self.show_settings_window)
        menu.addSeparator()
        menu.addAction("Quit").triggered.connect(self.app.quit)
        tray.setContextMenu(menu)
        # Keep a reference; QSystemTrayIcon does not own its menu
        self._tray_menu = menu

        tray.activated.connect(self._on_tray_activated)
        tray.show()
        return tray

    def _on_tray_activated(self, reason):
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self.window.present()

    def show_settings_window(self):
        if self.settings_window is None:
            self.settings_window = SettingsWindow(
                self.provider_settings, self.core_app.backend, self.runner
            )
        self.window.hide()
        self.settings_window.open()

    def shutdown(self):
        logger.info("Shutting down Smart Spotlight")
        self.controller.close()
        self.core_app.shutdown()

    def run(self) -> int:
        logger.info("Smart Spotlight is running; press %s to open the prompt window", self.hotkey)
        return self.app.exec()


def main():
    configure_logging()

    def on_sigint(sig, frame):
        logger.info("Interrupted")
        QApplication.quit()

    signal.signal(signal.SIGINT, on_sigint)

    spotlight = SmartSpotlightApp()

    # Python only sees SIGINT between Qt event batches; tick the loop so Ctrl+C lands
    wake = QTimer()
    wake.timeout.connect(lambda: None)
    wake.start(100)

    sys.exit(spotlight.run())
