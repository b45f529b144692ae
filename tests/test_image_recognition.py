"""Unit tests for autoscript.core.image_recognition.

All images are synthetic: a seeded random-noise "screen" (which makes
correlation peaks unambiguous) with templates cut out of it.
"""

from __future__ import annotations

import threading
import time

import cv2
import numpy as np
import pytest
from numpy.typing import NDArray

from autoscript.config.settings import Settings
from autoscript.core.image_recognition import (
    ImageRecognitionService,
    MatchResult,
    decode_gray,
)
from autoscript.models.script import TemplateImage


def _png(image: NDArray[np.uint8]) -> bytes:
    ok, buf = cv2.imencode(".png", image)
    assert ok
    return buf.tobytes()


def _noise(h: int, w: int, seed: int = 7) -> NDArray[np.uint8]:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(h, w, 3), dtype=np.uint8)


class FakeScreenshots:
    """Stand-in ScreenshotService serving a scripted sequence of screens."""

    def __init__(self, screens: list[bytes]) -> None:
        self._screens = screens
        self.captures = 0

    def capture_full_screen(self) -> bytes:
        index = min(self.captures, len(self._screens) - 1)
        self.captures += 1
        return self._screens[index]


@pytest.fixture()
def screen_img() -> NDArray[np.uint8]:
    return _noise(120, 160)


@pytest.fixture()
def recognizer() -> ImageRecognitionService:
    return ImageRecognitionService(
        settings=Settings(image_wait_interval_ms=10)
    )


class TestMatchResult:
    """MatchResult helpers."""

    def test_center(self) -> None:
        """center is the middle of the bounding box."""
        result = MatchResult(found=True, bounding_box=(10, 20, 30, 40))
        assert result.center == (25, 40)

    def test_defaults(self) -> None:
        """A default result is a miss."""
        result = MatchResult()
        assert result.found is False
        assert result.confidence == 0.0


class TestFindImage:
    """Best-match search."""

    def test_exact_crop_is_found(
        self,
        recognizer: ImageRecognitionService,
        screen_img: NDArray[np.uint8],
    ) -> None:
        """A template cut from the screen is found where it was cut."""
        template = screen_img[30:50, 70:100]
        result = recognizer.find_image(_png(screen_img), _png(template), 0.9)
        assert result.found is True
        assert result.location == (70, 30)
        assert result.bounding_box == (70, 30, 30, 20)
        assert result.confidence == pytest.approx(1.0, abs=1e-3)
        assert result.search_duration_ms >= 0.0

    def test_unrelated_template_not_found(
        self,
        recognizer: ImageRecognitionService,
        screen_img: NDArray[np.uint8],
    ) -> None:
        """Noise from another seed does not match."""
        template = _noise(20, 30, seed=99)
        result = recognizer.find_image(_png(screen_img), _png(template), 0.8)
        assert result.found is False
        assert 0.0 <= result.confidence < 0.8

    def test_threshold_decides_found(
        self,
        recognizer: ImageRecognitionService,
        screen_img: NDArray[np.uint8],
    ) -> None:
        """found compares confidence against the threshold."""
        template = _png(screen_img[0:20, 0:20])
        screen = _png(screen_img)
        assert recognizer.is_image_present(screen, template, 0.5)
        result = recognizer.find_image(screen, template, 1.5)
        assert result.found is False
        assert result.confidence <= 1.0

    def test_template_larger_than_screen(
        self, recognizer: ImageRecognitionService
    ) -> None:
        """An oversized template yields a miss, not an error."""
        result = recognizer.find_image(
            _png(_noise(10, 10)), _png(_noise(20, 20))
        )
        assert result.found is False

    @pytest.mark.parametrize("bad", [b"", b"not an image"])
    def test_undecodable_input(
        self, recognizer: ImageRecognitionService, bad: bytes
    ) -> None:
        """Garbage bytes yield a miss, not an error."""
        result = recognizer.find_image(bad, _png(_noise(5, 5)))
        assert result.found is False

    def test_flat_template_does_not_crash(
        self, recognizer: ImageRecognitionService
    ) -> None:
        """Zero-variance inputs give a finite confidence."""
        flat = np.full((40, 40, 3), 100, dtype=np.uint8)
        result = recognizer.find_image(_png(flat), _png(flat[:10, :10]))
        assert 0.0 <= result.confidence <= 1.0

    def test_find_template_uses_own_threshold(
        self,
        recognizer: ImageRecognitionService,
        screen_img: NDArray[np.uint8],
    ) -> None:
        """find_template matches with the template's match_threshold."""
        template = TemplateImage(
            name="t",
            image_data=_png(screen_img[10:30, 10:30]),
            match_threshold=0.95,
        )
        assert recognizer.find_template(_png(screen_img), template).found


class TestFindAllImages:
    """Multiple non-overlapping matches."""

    def test_finds_each_copy_once(
        self, recognizer: ImageRecognitionService
    ) -> None:
        """Three pasted copies give exactly three matches."""
        screen = np.zeros((100, 200, 3), dtype=np.uint8)
        patch = _noise(15, 15, seed=3)
        spots = [(10, 10), (80, 40), (150, 70)]
        for x, y in spots:
            screen[y : y + 15, x : x + 15] = patch
        matches = recognizer.find_all_images(_png(screen), _png(patch), 0.9)
        assert sorted(m.location for m in matches) == sorted(spots)
        assert all(m.found for m in matches)

    def test_sorted_best_first(
        self, recognizer: ImageRecognitionService
    ) -> None:
        """Results come back in descending confidence."""
        screen = np.zeros((60, 120, 3), dtype=np.uint8)
        patch = _noise(15, 15, seed=4)
        screen[5:20, 5:20] = patch
        noisy = patch.astype(np.int16) + _noise(15, 15, seed=5) // 16
        screen[30:45, 80:95] = np.clip(noisy, 0, 255).astype(np.uint8)
        matches = recognizer.find_all_images(_png(screen), _png(patch), 0.5)
        confidences = [m.confidence for m in matches]
        assert confidences == sorted(confidences, reverse=True)
        assert matches[0].location == (5, 5)

    def test_max_results(self, recognizer: ImageRecognitionService) -> None:
        """max_results caps the list."""
        screen = np.zeros((40, 200, 3), dtype=np.uint8)
        patch = _noise(10, 10, seed=6)
        for x in range(0, 200, 20):
            screen[5:15, x : x + 10] = patch
        matches = recognizer.find_all_images(
            _png(screen), _png(patch), 0.9, max_results=3
        )
        assert len(matches) == 3

    def test_no_matches(
        self,
        recognizer: ImageRecognitionService,
        screen_img: NDArray[np.uint8],
    ) -> None:
        """Nothing above threshold gives an empty list."""
        matches = recognizer.find_all_images(
            _png(screen_img), _png(_noise(10, 10, seed=42)), 0.95
        )
        assert matches == []


class TestWaiting:
    """wait_for_image and wait_for_image_disappear."""

    def test_wait_for_image_appears_later(
        self, screen_img: NDArray[np.uint8]
    ) -> None:
        """Polling continues until the template shows up."""
        template = screen_img[0:20, 0:20]
        blank = _png(np.zeros_like(screen_img))
        shots = FakeScreenshots([blank, blank, _png(screen_img)])
        recognizer = ImageRecognitionService(
            shots, Settings(image_wait_interval_ms=5)  # type: ignore[arg-type]
        )
        result = recognizer.wait_for_image(_png(template), 2000, 0.9)
        assert result.found is True
        assert shots.captures == 3

    def test_wait_for_image_times_out(
        self, screen_img: NDArray[np.uint8]
    ) -> None:
        """A template that never appears returns a miss after the timeout."""
        shots = FakeScreenshots([_png(np.zeros_like(screen_img))])
        recognizer = ImageRecognitionService(
            shots, Settings(image_wait_interval_ms=10)  # type: ignore[arg-type]
        )
        started = time.monotonic()
        result = recognizer.wait_for_image(_png(screen_img[:10, :10]), 100)
        assert result.found is False
        assert time.monotonic() - started >= 0.09

    def test_wait_cancelled(self, screen_img: NDArray[np.uint8]) -> None:
        """Setting the cancel event ends the wait early."""
        shots = FakeScreenshots([_png(np.zeros_like(screen_img))])
        recognizer = ImageRecognitionService(
            shots, Settings(image_wait_interval_ms=20)  # type: ignore[arg-type]
        )
        cancel = threading.Event()
        threading.Timer(0.05, cancel.set).start()
        started = time.monotonic()
        recognizer.wait_for_image(
            _png(screen_img[:10, :10]), 10_000, cancel=cancel
        )
        assert time.monotonic() - started < 2.0

    def test_wait_for_disappear(self, screen_img: NDArray[np.uint8]) -> None:
        """Returns True once the template is gone."""
        template = screen_img[0:20, 0:20]
        shots = FakeScreenshots(
            [_png(screen_img), _png(np.zeros_like(screen_img))]
        )
        recognizer = ImageRecognitionService(
            shots, Settings(image_wait_interval_ms=5)  # type: ignore[arg-type]
        )
        assert recognizer.wait_for_image_disappear(_png(template), 2000, 0.9)

    def test_wait_requires_screenshots(
        self, recognizer: ImageRecognitionService
    ) -> None:
        """Waiting without a capture source is a programming error."""
        with pytest.raises(RuntimeError):
            recognizer.wait_for_image(b"x", 10)


class TestDecodeGray:
    """decode_gray helper."""

    def test_colour_to_single_channel(self) -> None:
        """Colour PNGs decode to 2-D arrays."""
        image = decode_gray(_png(_noise(6, 8)))
        assert image is not None
        assert image.shape == (6, 8)

    def test_empty_is_none(self) -> None:
        """Empty input decodes to None."""
        assert decode_gray(b"") is None
