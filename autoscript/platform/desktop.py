"""Portable ``PlatformInterface`` for Linux (X11) and macOS.

Uses:
- ``mss`` for screen capture.
- ``pynput`` for cursor control and input injection.

Window enumeration and focusing are not available here; window
targeting degrades to absolute screen coordinates.
"""

from __future__ import annotations

import logging
import threading

import mss
import numpy as np
from numpy.typing import NDArray

from autoscript.platform.input import PynputInputMixin
from autoscript.platform.interface import PlatformInterface

logger = logging.getLogger(__name__)


class DesktopPlatform(PynputInputMixin, PlatformInterface):
    """mss + pynput implementation of :class:`PlatformInterface`.

    ``mss`` instances are not safe to share across threads, so each
    thread that captures gets its own lazily-created instance.
    """

    def __init__(self) -> None:
        self._init_input()
        self._local = threading.local()
        logger.info("DesktopPlatform initialised.")

    def _sct(self) -> mss.base.MSSBase:
        sct = getattr(self._local, "sct", None)
        if sct is None:
            sct = mss.mss()
            self._local.sct = sct
        return sct

    # -- Screen capture --------------------------------------------

    def capture_frame(self) -> NDArray[np.uint8]:
        """Capture the primary monitor as a BGR numpy array."""
        sct = self._sct()
        shot = sct.grab(sct.monitors[1])
        # mss returns BGRA; drop alpha channel for BGR
        return np.array(shot, dtype=np.uint8)[:, :, :3]

    def capture_region(
        self, x: int, y: int, width: int, height: int
    ) -> NDArray[np.uint8]:
        """Grab only the requested region."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid region size {width}x{height}")
        shot = self._sct().grab(
            {"left": x, "top": y, "width": width, "height": height}
        )
        return np.array(shot, dtype=np.uint8)[:, :, :3]

    # -- Screen queries --------------------------------------------

    def get_screen_size(self) -> tuple[int, int]:
        monitor = self._sct().monitors[1]
        return (int(monitor["width"]), int(monitor["height"]))

    def get_platform_name(self) -> str:
        return "desktop"
