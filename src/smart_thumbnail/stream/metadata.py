"""
Video Metadata
==============

Metadata extraction and duration-driven sampling intervals.

Sampling Strategy:
    duration < 30 s  -> 250 ms
    duration < 60 s  -> 500 ms
    otherwise        -> 1000 ms
"""

import logging
from pathlib import Path
from typing import Optional, Protocol

import cv2

from smart_thumbnail.config import SamplingConfig
from smart_thumbnail.errors import CollaboratorFailure
from smart_thumbnail.models.video import VideoMetadata


logger = logging.getLogger(__name__)


class MetadataProvider(Protocol):
    """Protocol for video metadata extraction."""

    def extract(self, path: str) -> VideoMetadata:
        ...


class OpenCVMetadataProvider:
    """Reads duration, resolution and frame rate with cv2.VideoCapture."""

    def extract(self, path: str) -> VideoMetadata:
        """
        Extract metadata of a video file.

        Args:
            path: Path to the video

        Returns:
            VideoMetadata

        Raises:
            CollaboratorFailure: If the file is missing or cannot be opened
        """
        file_path = Path(path)
        if not file_path.exists():
            raise CollaboratorFailure(f"Video not found: {path}")

        capture = cv2.VideoCapture(str(file_path))
        if not capture.isOpened():
            raise CollaboratorFailure(f"Unable to extract video metadata for {path}")

        try:
            frame_rate = float(capture.get(cv2.CAP_PROP_FPS)) or None
            frame_count = float(capture.get(cv2.CAP_PROP_FRAME_COUNT))
            width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)) or None
            height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)) or None
        finally:
            capture.release()

        duration_ms = int(frame_count * 1000.0 / frame_rate) if frame_rate else 0

        metadata = VideoMetadata(
            name=file_path.name,
            path=str(file_path),
            duration_ms=max(0, duration_ms),
            width=width,
            height=height,
            size_bytes=file_path.stat().st_size,
            frame_rate=frame_rate,
        )
        logger.info(f"Video metadata: {metadata.to_dict()}")
        return metadata


def smart_sampling_ms(duration_ms: int, config: Optional[SamplingConfig] = None) -> int:
    """
    Choose a sampling interval from the video duration.

    Args:
        duration_ms: Video duration in milliseconds
        config: Thresholds and intervals (default: SamplingConfig())

    Returns:
        Sampling interval in milliseconds
    """
    config = config or SamplingConfig()
    if duration_ms < config.short_video_ms:
        return config.short_interval_ms
    if duration_ms < config.mid_video_ms:
        return config.mid_interval_ms
    return config.long_interval_ms
