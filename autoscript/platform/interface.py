"""Abstract base class defining the contract for platform-specific OS operations.

Every target OS provides a concrete subclass of ``PlatformInterface``.
The factory function ``create_platform()`` auto-detects the running OS
and returns the appropriate implementation.
"""

from __future__ import annotations

import platform as _platform_mod
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass
class WindowInfo:
    """Information about an OS window.

    Attributes:
        handle: Native window handle (``0`` if unknown).
        title: The window title text.
        x: Horizontal position of the top-left corner.
        y: Vertical position of the top-left corner.
        width: Window width in pixels.
        height: Window height in pixels.
        is_active: Whether this window currently has focus.
        process_name: Name of the owning process (empty if unknown).
    """

    handle: int
    title: str
    x: int
    y: int
    width: int
    height: int
    is_active: bool = False
    process_name: str = ""

    @property
    def handle_hex(self) -> str:
        """The handle formatted as ``0x...`` hex."""
        return f"0x{self.handle:X}"


class PlatformInterface(ABC):
    """Abstract interface for platform-specific OS operations.

    All coordinates are absolute screen pixels of the primary monitor.
    """

    # ------------------------------------------------------------------
    # Screen capture
    # ------------------------------------------------------------------

    @abstractmethod
    def capture_frame(self) -> NDArray[np.uint8]:
        """Capture the current screen as a numpy array.

        Returns:
            A numpy array of shape ``(H, W, 3)`` in BGR colour order
            with dtype ``uint8``.
        """

    def capture_region(
        self, x: int, y: int, width: int, height: int
    ) -> NDArray[np.uint8]:
        """Capture a rectangular area of the screen.

        The default implementation crops a full-screen capture.
        Subclasses with a cheaper native region grab may override it.

        Args:
            x: Left edge.
            y: Top edge.
            width: Region width.
            height: Region height.

        Returns:
            A BGR ``uint8`` array of at most ``(height, width, 3)``;
            the region is clipped to the screen.

        Raises:
            ValueError: If the clipped region is empty.
        """
        frame = self.capture_frame()
        h, w = frame.shape[:2]
        left, top = max(0, x), max(0, y)
        right, bottom = min(w, x + width), min(h, y + height)
        if right <= left or bottom <= top:
            raise ValueError(
                f"Region ({x}, {y}, {width}x{height}) is outside the "
                f"{w}x{h} screen"
            )
        return frame[top:bottom, left:right].copy()

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    @abstractmethod
    def get_cursor_pos(self) -> tuple[int, int]:
        """Get the current cursor position as ``(x, y)``."""

    @abstractmethod
    def move_cursor(self, x: int, y: int) -> None:
        """Move the cursor to the given coordinates."""

    # ------------------------------------------------------------------
    # Mouse actions
    # ------------------------------------------------------------------

    @abstractmethod
    def click(
        self, x: int, y: int, button: str = "left"
    ) -> None:
        """Click at the given coordinates.

        Args:
            x: Horizontal position.
            y: Vertical position.
            button: One of ``'left'``, ``'right'``, or ``'middle'``.
        """

    @abstractmethod
    def double_click(
        self, x: int, y: int, button: str = "left"
    ) -> None:
        """Double-click at the given coordinates."""

    @abstractmethod
    def mouse_down(self, button: str = "left") -> None:
        """Press and hold a mouse button at the current position."""

    @abstractmethod
    def mouse_up(self, button: str = "left") -> None:
        """Release a mouse button at the current position."""

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    @abstractmethod
    def type_text(self, text: str) -> None:
        """Type the given text string using keyboard input.

        Args:
            text: The string to type. Special characters are sent
                as-is; use ``key_press`` for modifier combos.
        """

    @abstractmethod
    def key_press(self, key: str) -> None:
        """Press a keyboard key or key combination.

        Supports modifier combos expressed with ``+``, for example
        ``'ctrl+c'``, ``'alt+tab'``, ``'shift+a'``.

        Args:
            key: Key name or combo string.
        """

    # ------------------------------------------------------------------
    # Screen & window queries
    # ------------------------------------------------------------------

    @abstractmethod
    def get_screen_size(self) -> tuple[int, int]:
        """Get screen dimensions as ``(width, height)``."""

    def get_window(self, handle: int) -> WindowInfo | None:
        """Look up a window by native handle.

        Platforms without window enumeration return ``None``.
        """
        return None

    def list_windows(self) -> list[WindowInfo]:
        """List all visible windows (empty when unsupported)."""
        return []

    def focus_window(self, handle: int) -> bool:
        """Bring a window to the foreground.

        Returns:
            ``True`` if the window was focused.  Platforms without
            window control return ``False``.
        """
        return False

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def get_platform_name(self) -> str:
        """Return a lowercase platform identifier."""
        return "unknown"


# ----------------------------------------------------------------------
# Factory
# ----------------------------------------------------------------------


def create_platform(name: str = "") -> PlatformInterface:
    """Return the platform implementation for *name* or the running OS.

    The concrete platform modules are imported lazily so that
    OS-specific dependencies are only required on the matching OS.

    Args:
        name: Explicit platform (``"windows"`` or ``"desktop"``).
            Empty means auto-detect.

    Returns:
        A ``PlatformInterface`` instance.

    Raises:
        NotImplementedError: If *name* is not a supported platform.
    """
    requested = name.strip().lower()
    if not requested:
        requested = (
            "windows" if _platform_mod.system() == "Windows" else "desktop"
        )

    if requested == "windows":
        from autoscript.platform.windows import WindowsPlatform

        return WindowsPlatform()

    if requested == "desktop":
        from autoscript.platform.desktop import DesktopPlatform

        return DesktopPlatform()

    raise NotImplementedError(
        f"Unsupported platform: {name!r}"
    )
