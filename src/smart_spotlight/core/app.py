"""Main application coordinator (pure Python, no Qt)"""
import logging
from typing import Callable, Optional

from smart_spotlight.core.backend import EventStreamWorker, HostBackend
from smart_spotlight.core.config import Config
from smart_spotlight.core.events import EventBus
from smart_spotlight.core.hotkey_manager import HotkeyManager
from smart_spotlight.core.registry import ProviderRegistryClient

logger = logging.getLogger(__name__)


class App:
    """Main application coordinator (business logic only, no GUI)"""

    def __init__(self, config: Optional[Config] = None):
        """Initialize application"""
        self.config = config or Config()
        self.bus = EventBus()
        self.backend = HostBackend(
            self.config.host_url,
            timeout=float(self.config.get("request_timeout_s", 10.0)),
        )
        self.registry = ProviderRegistryClient(self.backend)
        self.hotkey_manager: Optional[HotkeyManager] = None
        self.event_stream: Optional[EventStreamWorker] = None

    def register_hotkey(self, callback: Callable[[], None]):
        """Register global hotkey with callback"""
        self.hotkey_manager = HotkeyManager(callback, self.config.get("hotkey", "Ctrl+Alt+Space"))
        self.hotkey_manager.register()

    def start_event_stream(self, on_event):
        """Follow the host's event stream; ``on_event`` runs on the stream thread"""
        if self.event_stream is not None and self.event_stream.is_alive():
            return
        self.event_stream = EventStreamWorker(self.config.host_url, on_event)
        self.event_stream.start()

    def shutdown(self):
        """Stop background threads and close connections"""
        if self.event_stream is not None:
            self.event_stream.stop()
        if self.hotkey_manager is not None:
            self.hotkey_manager.stop()
        self.backend.close()
