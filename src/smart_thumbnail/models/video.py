"""
Video Metadata Model
====================

Global metadata of a video source, used only to choose the sampling interval.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class VideoMetadata:
    """
    Video source metadata.

    Attributes:
        name: File name
        path: Absolute or relative path to the video
        duration_ms: Duration in milliseconds
        width: Frame width in pixels (if known)
        height: Frame height in pixels (if known)
        size_bytes: File size (if known)
        frame_rate: Frames per second (if known)
    """

    name: str
    path: str
    duration_ms: int
    width: Optional[int] = None
    height: Optional[int] = None
    size_bytes: Optional[int] = None
    frame_rate: Optional[float] = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.duration_ms < 0:
            raise ValueError("duration_ms must be non-negative")

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "name": self.name,
            "path": self.path,
            "duration_ms": self.duration_ms,
            "width": self.width,
            "height": self.height,
            "size_bytes": self.size_bytes,
            "frame_rate": self.frame_rate,
        }
