"""Mouse and keyboard injection with optional window targeting.

The ``AutomationEngine`` is the single place where scripts touch the
input devices.  It wraps a ``PlatformInterface`` and adds:

* window targeting -- while a target window is set, coordinates are
  relative to that window's top-left corner and the window is brought
  to the foreground before input is sent;
* interruptible waits driven by a ``threading.Event``;
* composite gestures (right-click, drag).

The engine is shared by every concurrently running script.  The target
window handle is the only mutable state and is guarded by a lock.

Typical usage::

    from autoscript.platform.interface import create_platform

    engine = AutomationEngine(create_platform())
    engine.set_target_window(0x1A2B)
    engine.click(100, 200)        # relative to window 0x1A2B
    engine.clear_target_window()
"""

from __future__ import annotations

import logging
import threading
import time

from autoscript.config.settings import Settings, get_default_settings
from autoscript.platform.interface import PlatformInterface

logger = logging.getLogger(__name__)


class AutomationEngine:
    """Input injection on top of a platform driver.

    Platform errors are logged and re-raised unchanged; callers decide
    how a failed click affects their control flow.

    Args:
        platform: OS-specific input driver.
        settings: Global configuration.  Defaults are used when omitted.
    """

    def __init__(
        self,
        platform: PlatformInterface,
        settings: Settings | None = None,
    ) -> None:
        self._platform = platform
        self._settings = settings or get_default_settings()
        self._target_lock = threading.Lock()
        self._target_window: int | None = None

    # ------------------------------------------------------------------
    # Window targeting
    # ------------------------------------------------------------------

    def set_target_window(self, handle: int) -> None:
        """Direct subsequent input at the window with *handle*.

        A handle of ``0`` clears the target.
        """
        with self._target_lock:
            self._target_window = handle or None
        if handle:
            logger.info("Target window set to 0x%X", handle)

    def clear_target_window(self) -> None:
        with self._target_lock:
            previous = self._target_window
            self._target_window = None
        if previous is not None:
            logger.info("Target window 0x%X cleared", previous)

    @property
    def has_target_window(self) -> bool:
        with self._target_lock:
            return self._target_window is not None

    @property
    def target_window(self) -> int | None:
        """The current target handle, or ``None``."""
        with self._target_lock:
            return self._target_window

    def _to_screen(self, x: int, y: int) -> tuple[int, int]:
        """Translate window-relative coordinates and focus the target.

        Without a target, or when the target window has disappeared,
        the coordinates are returned unchanged.
        """
        handle = self.target_window
        if handle is None:
            return (x, y)

        window = self._platform.get_window(handle)
        if window is None:
            logger.warning(
                "Target window 0x%X not found, using screen coordinates",
                handle,
            )
            return (x, y)

        if not window.is_active and not self._platform.focus_window(handle):
            logger.debug("Could not focus target window 0x%X", handle)
        return (window.x + x, window.y + y)

    # ------------------------------------------------------------------
    # Mouse
    # ------------------------------------------------------------------

    def click(self, x: int, y: int) -> None:
        """Left-click at ``(x, y)``."""
        self._click(x, y, "left")

    def right_click(self, x: int, y: int) -> None:
        """Right-click at ``(x, y)``."""
        self._click(x, y, "right")

    def double_click(self, x: int, y: int) -> None:
        """Double-click with the left button at ``(x, y)``."""
        sx, sy = self._to_screen(x, y)
        try:
            self._platform.double_click(sx, sy, "left")
        except Exception:
            logger.exception("Double-click at (%d, %d) failed", sx, sy)
            raise
        logger.debug("Double-clicked at screen (%d, %d)", sx, sy)

    def _click(self, x: int, y: int, button: str) -> None:
        sx, sy = self._to_screen(x, y)
        try:
            self._platform.move_cursor(sx, sy)
            if self._settings.click_settle_ms > 0:
                time.sleep(self._settings.click_settle_ms / 1000.0)
            self._platform.click(sx, sy, button)
        except Exception:
            logger.exception(
                "%s click at (%d, %d) failed", button.capitalize(), sx, sy
            )
            raise
        logger.debug("%s-clicked at screen (%d, %d)", button, sx, sy)

    def move_mouse(self, x: int, y: int) -> None:
        """Move the cursor to ``(x, y)`` without clicking."""
        sx, sy = self._to_screen(x, y)
        try:
            self._platform.move_cursor(sx, sy)
        except Exception:
            logger.exception("Cursor move to (%d, %d) failed", sx, sy)
            raise

    def drag(
        self,
        start: tuple[int, int],
        end: tuple[int, int],
        button: str = "left",
    ) -> None:
        """Press at *start*, move to *end*, release.

        Args:
            start: ``(x, y)`` where the button is pressed.
            end: ``(x, y)`` where the button is released.
            button: Mouse button to hold.
        """
        sx, sy = self._to_screen(*start)
        ex, ey = self._to_screen(*end)
        settle = self._settings.click_settle_ms / 1000.0
        try:
            self._platform.move_cursor(sx, sy)
            time.sleep(settle)
            self._platform.mouse_down(button)
            try:
                time.sleep(settle)
                self._platform.move_cursor(ex, ey)
                time.sleep(settle)
            finally:
                self._platform.mouse_up(button)
        except Exception:
            logger.exception(
                "Drag (%d, %d) -> (%d, %d) failed", sx, sy, ex, ey
            )
            raise

    def get_mouse_position(self) -> tuple[int, int]:
        """Current cursor position in screen coordinates."""
        return self._platform.get_cursor_pos()

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def type_text(self, text: str) -> None:
        """Type *text* into the focused window (or the target window)."""
        if not text:
            return
        self._focus_target()
        try:
            self._platform.type_text(text)
        except Exception:
            logger.exception("Typing %d character(s) failed", len(text))
            raise

    def send_keys(self, keys: str) -> None:
        """Press a key combination such as ``'ctrl+c'`` or ``'enter'``.

        Raises:
            ValueError: If the combination names an unknown key.
        """
        if not keys.strip():
            return
        self._focus_target()
        try:
            self._platform.key_press(keys)
        except Exception:
            logger.exception("Sending keys %r failed", keys)
            raise

    def _focus_target(self) -> None:
        handle = self.target_window
        if handle is None:
            return
        if not self._platform.focus_window(handle):
            logger.debug("Could not focus target window 0x%X", handle)

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------

    def wait(
        self,
        milliseconds: int,
        cancel: threading.Event | None = None,
    ) -> bool:
        """Sleep for *milliseconds*.

        Args:
            milliseconds: Duration; non-positive values return at once.
            cancel: Optional event that cuts the sleep short.

        Returns:
            ``True`` if the full duration elapsed, ``False`` if *cancel*
            was set before or during the wait.
        """
        seconds = max(0, milliseconds) / 1000.0
        if cancel is None:
            if seconds:
                time.sleep(seconds)
            return True
        if cancel.is_set():
            return False
        return not cancel.wait(seconds)
