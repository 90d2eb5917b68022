"""Global hotkey listener that toggles the spotlight window"""
import logging
import threading
from typing import Callable, Optional

from pynput import keyboard
from pynput.keyboard import Key

logger = logging.getLogger(__name__)

_MODIFIERS = {
    Key.ctrl_l: "ctrl",
    Key.ctrl_r: "ctrl",
    Key.alt_l: "alt",
    Key.alt_r: "alt",
    Key.alt_gr: "alt",
    Key.shift_l: "shift",
    Key.shift_r: "shift",
    Key.cmd_l: "cmd",
    Key.cmd_r: "cmd",
}


def parse_hotkey(combo: str) -> frozenset:
    """Turn 'Ctrl+Alt+Space' into {'ctrl', 'alt', 'space'}."""
    parts = [part.strip().lower() for part in combo.split("+") if part.strip()]
    if not parts:
        raise ValueError(f"Invalid hotkey: {combo!r}")
    return frozenset(parts)


def normalize_key(key) -> Optional[str]:
    """Map a pynput key to the names used by parse_hotkey."""
    if key in _MODIFIERS:
        return _MODIFIERS[key]
    if key == Key.space:
        return "space"
    char = getattr(key, "char", None)
    if char:
        return char.lower()
    name = getattr(key, "name", None)
    return name.lower() if name else None


class HotkeyManager:
    """Watches the keyboard for one key combination and calls back on it"""

    def __init__(self, callback: Callable[[], None], combo: str = "Ctrl+Alt+Space"):
        """
        Set up the listener without starting it

        Args:
            callback: Called from the pynput thread each time the combination goes down
            combo: Key combination, e.g. 'Ctrl+Alt+Space'
        """
        self.callback = callback
        self.combo = combo
        self.required = parse_hotkey(combo)
        self.listener = None
        self.listener_thread = None
        self.current_keys = set()
        self._running = False

    def on_press(self, key):
        """Track pressed keys and fire once when the whole combination is down"""
        name = normalize_key(key)
        if name is None or name in self.current_keys:
            return
        self.current_keys.add(name)
        if self.required <= self.current_keys:
            self.callback()

    def on_release(self, key):
        """Remove released keys from tracking"""
        name = normalize_key(key)
        if name is not None:
            self.current_keys.discard(name)

    def register(self):
        """Start listening for the hotkey in a background thread"""
        def listen():
            try:
                with keyboard.Listener(
                    on_press=self.on_press,
                    on_release=self.on_release
                ) as listener:
                    self.listener = listener
                    self._running = True
                    listener.join()
            except Exception as e:
                logger.error("Hotkey listener error: %s", e)
                self._running = False

        self.listener_thread = threading.Thread(target=listen, daemon=True)
        self.listener_thread.start()
        logger.info("Hotkey registered: %s", self.combo)

    def stop(self):
        """Stop listening; the daemon thread exits with the listener"""
        self._running = False
        if self.listener:
            self.listener.stop()
