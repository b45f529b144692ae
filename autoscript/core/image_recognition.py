"""Template matching of reference images against screen captures.

All inputs are encoded image bytes (PNG from ``ScreenshotService``, or
any format OpenCV can decode).  Both buffers are decoded to grayscale
and compared with normalised cross-correlation
(``cv2.TM_CCOEFF_NORMED``), so confidences are on the same 0.0 -- 1.0
scale as ``TemplateImage.match_threshold``.

Bad input never raises out of the matching methods: undecodable data,
empty buffers and templates larger than the screen all produce a
not-found ``MatchResult`` and a log line.

Typical usage::

    recognizer = ImageRecognitionService(screenshots, settings)
    result = recognizer.find_image(screen_png, template_png, 0.9)
    if result.found:
        engine.click(*result.center)
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass

import cv2
import numpy as np
from numpy.typing import NDArray

from autoscript.config.settings import Settings, get_default_settings
from autoscript.core.screenshot_service import ScreenshotService
from autoscript.models.script import TemplateImage

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """Outcome of one template search.

    Attributes:
        found: Whether ``confidence`` reached the threshold.
        confidence: Best correlation score, clamped to 0.0 -- 1.0.
        location: Top-left corner ``(x, y)`` of the best match.
        bounding_box: ``(x, y, w, h)`` of the best match.
        search_duration_ms: Wall time spent decoding and matching.
    """

    found: bool = False
    confidence: float = 0.0
    location: tuple[int, int] = (0, 0)
    bounding_box: tuple[int, int, int, int] = (0, 0, 0, 0)
    search_duration_ms: float = 0.0

    @property
    def center(self) -> tuple[int, int]:
        """Centre of the bounding box, suitable as a click target."""
        x, y, w, h = self.bounding_box
        return (x + w // 2, y + h // 2)


def decode_gray(data: bytes) -> NDArray[np.uint8] | None:
    """Decode image bytes to a single-channel array, or ``None``."""
    if not data:
        return None
    buf = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buf, cv2.IMREAD_GRAYSCALE)
    if image is None or image.size == 0:
        return None
    return image


def _score_map(
    screen: NDArray[np.uint8], template: NDArray[np.uint8]
) -> NDArray[np.float32]:
    scores = cv2.matchTemplate(screen, template, cv2.TM_CCOEFF_NORMED)
    # Flat (zero-variance) templates produce NaN/inf scores.
    return np.nan_to_num(scores, nan=0.0, posinf=0.0, neginf=0.0)


class ImageRecognitionService:
    """Finds template images in screen captures.

    Stateless apart from configuration, so one instance is shared by
    every running script.

    Args:
        screenshots: Capture source for the ``wait_for_*`` helpers.
        settings: Global configuration (default threshold, poll
            interval).
    """

    def __init__(
        self,
        screenshots: ScreenshotService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._screenshots = screenshots
        self._settings = settings or get_default_settings()

    # ------------------------------------------------------------------
    # Single match
    # ------------------------------------------------------------------

    def find_image(
        self,
        screen: bytes,
        template: bytes,
        threshold: float | None = None,
    ) -> MatchResult:
        """Locate the best match of *template* inside *screen*.

        Args:
            screen: Encoded screen capture.
            template: Encoded reference image.
            threshold: Minimum confidence for ``found``.  Defaults to
                ``Settings.default_match_threshold``.

        Returns:
            The best match.  ``found`` is ``False`` when the score is
            below *threshold* or when either input is unusable.
        """
        if threshold is None:
            threshold = self._settings.default_match_threshold
        started = time.perf_counter()

        screen_img = decode_gray(screen)
        template_img = decode_gray(template)
        if screen_img is None or template_img is None:
            logger.warning("Failed to decode screen or template image")
            return MatchResult(search_duration_ms=_elapsed_ms(started))

        th, tw = template_img.shape[:2]
        sh, sw = screen_img.shape[:2]
        if th > sh or tw > sw:
            logger.warning(
                "Template %dx%d is larger than screen %dx%d", tw, th, sw, sh
            )
            return MatchResult(search_duration_ms=_elapsed_ms(started))

        scores = _score_map(screen_img, template_img)
        _, max_val, _, max_loc = cv2.minMaxLoc(scores)
        confidence = min(1.0, max(0.0, float(max_val)))
        x, y = int(max_loc[0]), int(max_loc[1])

        result = MatchResult(
            found=confidence >= threshold,
            confidence=confidence,
            location=(x, y),
            bounding_box=(x, y, tw, th),
            search_duration_ms=_elapsed_ms(started),
        )
        logger.debug(
            "Template match: found=%s confidence=%.3f at (%d, %d) in %.1fms",
            result.found,
            confidence,
            x,
            y,
            result.search_duration_ms,
        )
        return result

    def find_template(
        self, screen: bytes, template: TemplateImage
    ) -> MatchResult:
        """Match a stored template using its own ``match_threshold``."""
        return self.find_image(
            screen, template.image_data, template.match_threshold
        )

    def is_image_present(
        self,
        screen: bytes,
        template: bytes,
        threshold: float | None = None,
    ) -> bool:
        return self.find_image(screen, template, threshold).found

    # ------------------------------------------------------------------
    # Multiple matches
    # ------------------------------------------------------------------

    def find_all_images(
        self,
        screen: bytes,
        template: bytes,
        threshold: float | None = None,
        max_results: int = 50,
    ) -> list[MatchResult]:
        """Find every non-overlapping occurrence of *template*.

        Matches are picked greedily from the highest score down; once
        a match is taken, every candidate whose box would overlap it is
        suppressed.

        Returns:
            Matches with ``found=True``, best first.  Empty when the
            inputs are unusable or nothing reaches *threshold*.
        """
        if threshold is None:
            threshold = self._settings.default_match_threshold
        started = time.perf_counter()

        screen_img = decode_gray(screen)
        template_img = decode_gray(template)
        if screen_img is None or template_img is None:
            logger.warning("Failed to decode screen or template image")
            return []
        th, tw = template_img.shape[:2]
        sh, sw = screen_img.shape[:2]
        if th > sh or tw > sw:
            logger.warning(
                "Template %dx%d is larger than screen %dx%d", tw, th, sw, sh
            )
            return []

        scores = _score_map(screen_img, template_img)
        matches: list[MatchResult] = []
        while len(matches) < max_results:
            _, max_val, _, max_loc = cv2.minMaxLoc(scores)
            if max_val < threshold or max_val <= 0.0:
                break
            x, y = int(max_loc[0]), int(max_loc[1])
            matches.append(
                MatchResult(
                    found=True,
                    confidence=min(1.0, float(max_val)),
                    location=(x, y),
                    bounding_box=(x, y, tw, th),
                )
            )
            # Suppress every top-left corner whose box would overlap.
            scores[
                max(0, y - th + 1) : y + th,
                max(0, x - tw + 1) : x + tw,
            ] = -1.0

        duration = _elapsed_ms(started)
        for match in matches:
            match.search_duration_ms = duration
        logger.debug(
            "Found %d match(es) above %.2f in %.1fms",
            len(matches),
            threshold,
            duration,
        )
        return matches

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------

    def wait_for_image(
        self,
        template: bytes,
        timeout_ms: int,
        threshold: float | None = None,
        cancel: threading.Event | None = None,
    ) -> MatchResult:
        """Poll the screen until *template* appears.

        Returns:
            The first found match, or the last (not-found) result once
            *timeout_ms* elapses or *cancel* is set.
        """
        return self._poll(template, timeout_ms, threshold, cancel, True)

    def wait_for_image_disappear(
        self,
        template: bytes,
        timeout_ms: int,
        threshold: float | None = None,
        cancel: threading.Event | None = None,
    ) -> bool:
        """Poll the screen until *template* is no longer visible.

        Returns:
            ``True`` if the image disappeared within *timeout_ms*.
        """
        result = self._poll(template, timeout_ms, threshold, cancel, False)
        return not result.found

    def _poll(
        self,
        template: bytes,
        timeout_ms: int,
        threshold: float | None,
        cancel: threading.Event | None,
        want_found: bool,
    ) -> MatchResult:
        if self._screenshots is None:
            raise RuntimeError(
                "ImageRecognitionService needs a ScreenshotService to wait"
            )
        interval = self._settings.image_wait_interval_ms / 1000.0
        deadline = time.monotonic() + max(0, timeout_ms) / 1000.0
        # Until a capture succeeds, assume the opposite of the goal.
        last = MatchResult(found=not want_found)

        while True:
            try:
                screen = self._screenshots.capture_full_screen()
                last = self.find_image(screen, template, threshold)
                if last.found == want_found:
                    return last
            except Exception:
                logger.warning("Screen capture failed while waiting", exc_info=True)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return last
            pause = min(interval, remaining)
            if cancel is not None:
                if cancel.wait(pause):
                    return last
            else:
                time.sleep(pause)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0
