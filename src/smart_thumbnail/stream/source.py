"""
Frame Source
============

Sampling of decoded frames from a video file with OpenCV.

This module provides:
    - FrameSource: Protocol for frame producers
    - OpenCVFrameSource: cv2.VideoCapture sampler (seek by milliseconds)
    - make_frame: Wrap a decoded RGB image into a Frame with its histogram

Design Rules:
    - This is the ONLY place in the codebase that decodes video
    - Frames are converted BGR -> RGB once, at sampling time
    - Undecodable timestamps are skipped; emitted indices stay dense
    - The histogram is computed here, before any concurrent stage
"""

import logging
from typing import Iterator, Optional, Protocol

import cv2
import numpy as np

from smart_thumbnail.analysis.histogram import DEFAULT_BINS, compute_histogram
from smart_thumbnail.errors import CollaboratorFailure
from smart_thumbnail.models.frame import Frame
from smart_thumbnail.models.video import VideoMetadata
from smart_thumbnail.stream.metadata import MetadataProvider, OpenCVMetadataProvider


logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """
    Protocol for frame producers.

    Produces an ordered, finite, non-restartable sequence of frames.
    """

    def iter_frames(
        self,
        path: str,
        sampling_ms: int,
        metadata: Optional[VideoMetadata] = None,
    ) -> Iterator[Frame]:
        """
        Sample frames from a video.

        Args:
            path: Path to the video file
            sampling_ms: Interval between samples in milliseconds
            metadata: Already extracted metadata (None = extract it)

        Yields:
            Frames with dense, monotonic indices
        """
        ...


def make_frame(
    index: int,
    timestamp: float,
    image: np.ndarray,
    bins: int = DEFAULT_BINS,
) -> Frame:
    """
    Build a Frame and compute its histogram.

    Args:
        index: Frame ordinal
        timestamp: Position in seconds
        image: RGB image (H, W, 3), dtype=uint8
        bins: Histogram buckets per channel

    Returns:
        Immutable Frame
    """
    return Frame(
        index=index,
        timestamp=timestamp,
        image=image,
        histogram=compute_histogram(image, bins),
    )


class OpenCVFrameSource:
    """
    Frame sampler built on cv2.VideoCapture.

    Seeks to every multiple of the sampling interval and decodes one
    frame there.

    Attributes:
        bins: Histogram buckets per channel
        frames_decoded: Frames emitted so far
        samples_skipped: Timestamps that could not be decoded
    """

    def __init__(
        self,
        bins: int = DEFAULT_BINS,
        metadata_provider: Optional[MetadataProvider] = None,
    ) -> None:
        """
        Initialize frame source.

        Args:
            bins: Histogram buckets per channel
            metadata_provider: Used to find the video duration
        """
        self.bins = bins
        self.metadata_provider = metadata_provider or OpenCVMetadataProvider()
        self.frames_decoded: int = 0
        self.samples_skipped: int = 0

    def iter_frames(
        self,
        path: str,
        sampling_ms: int,
        metadata: Optional[VideoMetadata] = None,
    ) -> Iterator[Frame]:
        """
        Sample frames every sampling_ms milliseconds.

        The metadata provider is only consulted when metadata is not given.

        Raises:
            ValueError: If sampling_ms is not positive
            CollaboratorFailure: If the video cannot be opened
        """
        if sampling_ms <= 0:
            raise ValueError("sampling_ms must be > 0")

        if metadata is None:
            metadata = self.metadata_provider.extract(path)

        capture = cv2.VideoCapture(path)
        if not capture.isOpened():
            raise CollaboratorFailure(f"Failed to open video: {path}")

        logger.info(
            f"Sampling {metadata.name}: duration={metadata.duration_ms}ms, "
            f"interval={sampling_ms}ms"
        )

        frame_index = 0
        try:
            for t in range(0, metadata.duration_ms, sampling_ms):
                capture.set(cv2.CAP_PROP_POS_MSEC, float(t))
                ok, bgr = capture.read()

                if not ok or bgr is None:
                    self.samples_skipped += 1
                    logger.debug(f"No frame decoded at {t}ms, skipping")
                    continue

                if bgr.ndim != 3 or bgr.shape[2] != 3 or bgr.dtype != np.uint8:
                    self.samples_skipped += 1
                    logger.warning(f"Invalid frame at {t}ms: shape={bgr.shape}, dtype={bgr.dtype}")
                    continue

                rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
                frame = make_frame(frame_index, t / 1000.0, rgb, self.bins)
                frame_index += 1
                self.frames_decoded += 1
                yield frame
        finally:
            capture.release()

        logger.info(
            f"Frames extracted: {frame_index} "
            f"(skipped {self.samples_skipped} samples)"
        )
