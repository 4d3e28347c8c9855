"""
Frame and Scene Models
======================

Canonical internal representation of sampled frames and scenes.

Design Rules:
    - Frame is created once at sampling time and never mutated
    - The pixel buffer is made read-only so concurrent workers need no locks
    - A Scene always holds at least one frame
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from smart_thumbnail.errors import InputError


@dataclass(frozen=True, slots=True, eq=False)
class Frame:
    """
    Sampled video frame.

    Attributes:
        index: Monotonic ordinal assigned at sampling time
        timestamp: Position in the video, in seconds
        image: RGB pixel buffer (H, W, 3), dtype=uint8, read-only
        histogram: Normalized color histogram (3 * bins values in [0, 1])
    """

    index: int
    timestamp: float
    image: np.ndarray
    histogram: Tuple[float, ...]

    def __post_init__(self) -> None:
        """Freeze the pixel buffer and histogram."""
        if self.image.ndim != 3 or self.image.shape[2] != 3:
            raise InputError(
                f"Frame {self.index} image must be (H, W, 3), got {self.image.shape}"
            )
        if self.image.flags.writeable:
            image = self.image.view()
            image.flags.writeable = False
            object.__setattr__(self, "image", image)
        object.__setattr__(self, "histogram", tuple(float(v) for v in self.histogram))

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full image."""
        return (
            f"Frame(index={self.index}, "
            f"timestamp={self.timestamp:.3f}, "
            f"size={self.width}x{self.height})"
        )


@dataclass(frozen=True, slots=True)
class Scene:
    """
    Contiguous run of frames between two scene cuts.

    Attributes:
        scene_index: 0-based sequential scene number
        frames: Ordered, non-empty frames of the scene
    """

    scene_index: int
    frames: Tuple[Frame, ...]

    def __post_init__(self) -> None:
        """Validate invariants."""
        if len(self.frames) == 0:
            raise InputError(f"Scene {self.scene_index} has no frames")
        object.__setattr__(self, "frames", tuple(self.frames))

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def frame_indices(self) -> Tuple[int, ...]:
        return tuple(f.index for f in self.frames)

    def __repr__(self) -> str:
        return (
            f"Scene(scene_index={self.scene_index}, "
            f"frames={self.frame_indices[0]}..{self.frame_indices[-1]}, "
            f"count={len(self.frames)})"
        )
