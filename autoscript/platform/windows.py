"""Windows implementation of ``PlatformInterface``.

Uses:
- ``mss`` for fast screen capture (shared-memory, no GDI overhead).
- ``ctypes`` + Windows API for cursor, screen metrics, and window
  queries and focusing.
- ``pynput`` for input injection (mouse clicks, keyboard typing).
"""

from __future__ import annotations

import ctypes
import ctypes.wintypes
import logging
import threading

import mss
import numpy as np
from numpy.typing import NDArray

from autoscript.platform.input import PynputInputMixin
from autoscript.platform.interface import PlatformInterface, WindowInfo

logger = logging.getLogger(__name__)

# -- Windows API constants -----------------------------------------
SM_CXSCREEN = 0
SM_CYSCREEN = 1

SW_RESTORE = 9

PROCESS_QUERY_LIMITED_INFORMATION = 0x1000

# DPI awareness constants (Windows 8.1+)
PROCESS_PER_MONITOR_DPI_AWARE = 2

# -- ctypes structures ---------------------------------------------


class _POINT(ctypes.Structure):
    """Win32 POINT structure."""

    _fields_ = [("x", ctypes.c_long), ("y", ctypes.c_long)]


class _RECT(ctypes.Structure):
    """Win32 RECT structure."""

    _fields_ = [
        ("left", ctypes.c_long),
        ("top", ctypes.c_long),
        ("right", ctypes.c_long),
        ("bottom", ctypes.c_long),
    ]


# -- Helpers -------------------------------------------------------

# Type alias for EnumWindows callback
_EnumWindowsProc = ctypes.WINFUNCTYPE(
    ctypes.c_bool,
    ctypes.wintypes.HWND,
    ctypes.wintypes.LPARAM,
)


def _enable_dpi_awareness() -> None:
    """Set process-level DPI awareness so coordinates are physical pixels.

    Falls back silently on older Windows versions that lack the API.
    """
    try:
        ctypes.windll.shcore.SetProcessDpiAwareness(  # type: ignore[attr-defined]
            PROCESS_PER_MONITOR_DPI_AWARE,
        )
        logger.debug("DPI awareness set to per-monitor.")
    except (AttributeError, OSError):
        try:
            ctypes.windll.user32.SetProcessDPIAware()
            logger.debug(
                "Fell back to SetProcessDPIAware (system-level)."
            )
        except (AttributeError, OSError):
            logger.warning("Could not set DPI awareness.")


def _get_process_name(hwnd: int) -> str:
    """Return the executable name owning *hwnd*, or ``''``."""
    pid = ctypes.wintypes.DWORD()
    ctypes.windll.user32.GetWindowThreadProcessId(
        hwnd, ctypes.byref(pid)
    )
    if pid.value == 0:
        return ""
    handle = ctypes.windll.kernel32.OpenProcess(
        PROCESS_QUERY_LIMITED_INFORMATION, False, pid.value
    )
    if not handle:
        return ""
    try:
        buf = ctypes.create_unicode_buffer(260)
        size = ctypes.wintypes.DWORD(260)
        ok = ctypes.windll.kernel32.QueryFullProcessImageNameW(
            handle, 0, buf, ctypes.byref(size)
        )
        if ok and buf.value:
            return buf.value.rsplit("\\", 1)[-1]
        return ""
    finally:
        ctypes.windll.kernel32.CloseHandle(handle)


def _window_info(hwnd: int, fg_hwnd: int) -> WindowInfo:
    title_buf = ctypes.create_unicode_buffer(256)
    ctypes.windll.user32.GetWindowTextW(hwnd, title_buf, 256)
    rect = _RECT()
    ctypes.windll.user32.GetWindowRect(hwnd, ctypes.byref(rect))
    return WindowInfo(
        handle=int(hwnd),
        title=title_buf.value,
        x=rect.left,
        y=rect.top,
        width=rect.right - rect.left,
        height=rect.bottom - rect.top,
        is_active=(hwnd == fg_hwnd),
        process_name=_get_process_name(hwnd),
    )


# -- WindowsPlatform -----------------------------------------------


class WindowsPlatform(PynputInputMixin, PlatformInterface):
    """Windows-specific implementation of :class:`PlatformInterface`.

    Initialises ``pynput`` controllers for input injection and sets
    DPI awareness so all coordinates are in physical (unscaled)
    pixels.  ``mss`` contexts are created per thread because several
    scripts may capture concurrently.
    """

    def __init__(self) -> None:
        _enable_dpi_awareness()
        self._init_input()
        self._local = threading.local()
        logger.info("WindowsPlatform initialised.")

    def _sct(self) -> mss.base.MSSBase:
        sct = getattr(self._local, "sct", None)
        if sct is None:
            sct = mss.mss()
            self._local.sct = sct
        return sct

    # -- Screen capture --------------------------------------------

    def capture_frame(self) -> NDArray[np.uint8]:
        """Capture the primary monitor as a BGR numpy array.

        Returns:
            A numpy array of shape ``(H, W, 3)`` in BGR colour order
            with dtype ``uint8``.
        """
        sct = self._sct()
        shot = sct.grab(sct.monitors[1])
        # mss returns BGRA; drop alpha channel for BGR
        frame: NDArray[np.uint8] = np.array(shot, dtype=np.uint8)[
            :, :, :3
        ]
        return frame

    def capture_region(
        self, x: int, y: int, width: int, height: int
    ) -> NDArray[np.uint8]:
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid region size {width}x{height}")
        shot = self._sct().grab(
            {"left": x, "top": y, "width": width, "height": height}
        )
        return np.array(shot, dtype=np.uint8)[:, :, :3]

    # -- Cursor ----------------------------------------------------

    def get_cursor_pos(self) -> tuple[int, int]:
        """Get the current cursor position via the Windows API."""
        pt = _POINT()
        ctypes.windll.user32.GetCursorPos(ctypes.byref(pt))
        return (pt.x, pt.y)

    def move_cursor(self, x: int, y: int) -> None:
        ctypes.windll.user32.SetCursorPos(x, y)

    # -- Screen & window queries ----------------------------------

    def get_screen_size(self) -> tuple[int, int]:
        w = ctypes.windll.user32.GetSystemMetrics(SM_CXSCREEN)
        h = ctypes.windll.user32.GetSystemMetrics(SM_CYSCREEN)
        return (w, h)

    def get_window(self, handle: int) -> WindowInfo | None:
        """Describe the window with *handle*, or ``None`` if it is gone."""
        if not handle or not ctypes.windll.user32.IsWindow(handle):
            return None
        fg_hwnd = ctypes.windll.user32.GetForegroundWindow()
        return _window_info(handle, fg_hwnd)

    def list_windows(self) -> list[WindowInfo]:
        """Enumerate all visible windows with non-empty titles.

        Returns:
            A list of ``WindowInfo`` objects sorted by window title.
        """
        results: list[WindowInfo] = []
        fg_hwnd = ctypes.windll.user32.GetForegroundWindow()

        def _callback(hwnd: int, _lparam: int) -> bool:
            if not ctypes.windll.user32.IsWindowVisible(hwnd):
                return True  # continue enumeration
            info = _window_info(hwnd, fg_hwnd)
            if info.title:
                results.append(info)
            return True

        proc = _EnumWindowsProc(_callback)
        ctypes.windll.user32.EnumWindows(proc, 0)
        results.sort(key=lambda w: w.title.lower())
        return results

    def focus_window(self, handle: int) -> bool:
        """Restore (if minimised) and foreground the window."""
        if not handle or not ctypes.windll.user32.IsWindow(handle):
            return False
        if ctypes.windll.user32.IsIconic(handle):
            ctypes.windll.user32.ShowWindow(handle, SW_RESTORE)
        return bool(ctypes.windll.user32.SetForegroundWindow(handle))

    # -- Metadata --------------------------------------------------

    def get_platform_name(self) -> str:
        return "windows"
