"""Screen capture to encoded PNG bytes and screenshot files.

The ``ScreenshotService`` turns the raw BGR frames produced by a
``PlatformInterface`` into PNG-encoded ``bytes``, the exchange format
between capture, template storage, and image recognition.

Typical usage::

    service = ScreenshotService(create_platform(), settings)
    png = service.capture_full_screen()
    path = service.save_screenshot(png)   # Screenshots/screenshot_....png
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import cv2
import numpy as np
from numpy.typing import NDArray

from autoscript.config.settings import Settings, get_default_settings
from autoscript.models.script import ScreenRegion, TemplateImage
from autoscript.platform.interface import PlatformInterface

logger = logging.getLogger(__name__)


def encode_png(image: NDArray[np.uint8]) -> bytes:
    """Encode a BGR (or grayscale) array as PNG bytes.

    Raises:
        ValueError: If OpenCV refuses to encode the array.
    """
    ok, buf = cv2.imencode(".png", image)
    if not ok:
        raise ValueError(f"Could not encode image of shape {image.shape}")
    return buf.tobytes()


class ScreenshotService:
    """Captures the screen through the platform layer.

    Safe to share between concurrently running scripts: it holds no
    mutable state besides the lazily-created screenshots directory.

    Args:
        platform: Platform backend used for capture.
        settings: Global configuration (``screenshots_dir``).
    """

    def __init__(
        self,
        platform: PlatformInterface,
        settings: Settings | None = None,
    ) -> None:
        self._platform = platform
        self._settings = settings or get_default_settings()
        self._screenshots_path = Path(self._settings.screenshots_dir)

    @property
    def screenshots_path(self) -> Path:
        return self._screenshots_path

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def capture_full_screen(self) -> bytes:
        """Capture the primary monitor as PNG bytes."""
        frame = self._platform.capture_frame()
        return encode_png(frame)

    def capture_region(self, x: int, y: int, width: int, height: int) -> bytes:
        """Capture a rectangle of the screen as PNG bytes.

        Raises:
            ValueError: If the region is empty or off-screen.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid region size {width}x{height}")
        frame = self._platform.capture_region(x, y, width, height)
        return encode_png(frame)

    def capture_screen_region(self, region: ScreenRegion) -> bytes:
        return self.capture_region(
            region.x, region.y, region.width, region.height
        )

    def get_screen_bounds(self) -> ScreenRegion:
        """Bounds of the primary monitor, anchored at ``(0, 0)``."""
        width, height = self._platform.get_screen_size()
        return ScreenRegion(0, 0, width, height)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def save_screenshot(self, data: bytes, file_name: str = "") -> str:
        """Write encoded image bytes under the screenshots directory.

        Args:
            data: Encoded image (normally PNG from a capture method).
            file_name: Target name.  Defaults to
                ``screenshot_YYYYMMDD_HHMMSS.png``; ``.png`` is appended
                when missing.

        Returns:
            The path of the written file.
        """
        if not file_name:
            file_name = f"screenshot_{datetime.now():%Y%m%d_%H%M%S}.png"
        if not file_name.lower().endswith(".png"):
            file_name += ".png"

        self._screenshots_path.mkdir(parents=True, exist_ok=True)
        path = self._screenshots_path / file_name
        path.write_bytes(data)
        logger.info("Screenshot saved to: %s", path)
        return str(path)

    def create_template_image(
        self, region: ScreenRegion, name: str
    ) -> TemplateImage:
        """Capture *region* and return it as a new ``TemplateImage``.

        The capture is also written to the screenshots directory as
        ``template_<name>_<timestamp>.png``.
        """
        data = self.capture_screen_region(region)
        file_name = f"template_{name}_{datetime.now():%Y%m%d_%H%M%S}.png"
        path = self.save_screenshot(data, file_name)
        return TemplateImage(
            name=name,
            image_data=data,
            file_path=path,
            capture_region=ScreenRegion(
                region.x, region.y, region.width, region.height
            ),
            match_threshold=self._settings.default_match_threshold,
        )
