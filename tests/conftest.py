"""
Test Configuration
==================

Pytest fixtures and helpers for SmartThumbnail.

Frames are synthetic numpy images, so no video files or network access
are needed.
"""

from typing import List, Sequence

import numpy as np
import pytest

from smart_thumbnail.models.frame import Frame
from smart_thumbnail.stream.source import make_frame


def solid_image(value: int, height: int = 24, width: int = 32) -> np.ndarray:
    """Uniform RGB image."""
    return np.full((height, width, 3), value, dtype=np.uint8)


def gradient_image(offset: int = 0, height: int = 24, width: int = 32) -> np.ndarray:
    """Horizontal gradient, shifted by `offset` gray levels."""
    row = (np.arange(width, dtype=np.int64) * 255 // max(1, width - 1) + offset) % 256
    gray = np.tile(row.astype(np.uint8), (height, 1))
    return np.stack([gray, gray, gray], axis=2)


def frame_with_histogram(index: int, histogram: Sequence[float]) -> Frame:
    """Frame with a hand-written histogram (pixel content irrelevant)."""
    return Frame(
        index=index,
        timestamp=index * 0.5,
        image=solid_image(128, 4, 4),
        histogram=tuple(histogram),
    )


def two_scene_frames() -> List[Frame]:
    """Three dark gradient frames followed by three bright solid frames."""
    frames = [make_frame(i, i * 0.25, gradient_image(offset=i) // 4) for i in range(3)]
    frames += [make_frame(3 + i, (3 + i) * 0.25, solid_image(230 - i)) for i in range(3)]
    return frames


class FailingFaceDetector:
    """Face detector that raises for the given frame images."""

    def __init__(self, fail_values: Sequence[int], score: float = 1.0) -> None:
        self.fail_values = set(fail_values)
        self.score = score
        self.closed = False

    async def detect(self, image: np.ndarray) -> float:
        if int(image[0, 0, 0]) in self.fail_values:
            raise RuntimeError("detector unavailable")
        return self.score

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def scene_frames():
    """Six frames forming two visually distinct scenes."""
    return two_scene_frames()


@pytest.fixture
def solid_frames():
    """Five solid frames with increasing brightness."""
    return [make_frame(i, i * 0.25, solid_image(40 + 20 * i)) for i in range(5)]
