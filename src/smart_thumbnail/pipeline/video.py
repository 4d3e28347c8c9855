"""
Video Thumbnails
================

Runs the thumbnail pipeline on a video file.

Steps:
    1. Metadata extraction (duration -> sampling interval)
    2. Frame sampling in a worker thread (OpenCV decode is blocking)
    3. ThumbnailPipeline over the sampled frames
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from smart_thumbnail.config import Settings
from smart_thumbnail.models.scoring import FrameFailure, FrameScore
from smart_thumbnail.models.video import VideoMetadata
from smart_thumbnail.pipeline.orchestrator import FaceDetectorFactory, ThumbnailPipeline
from smart_thumbnail.stream.metadata import (
    MetadataProvider,
    OpenCVMetadataProvider,
    smart_sampling_ms,
)
from smart_thumbnail.stream.source import OpenCVFrameSource


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VideoThumbnailResult:
    """Outcome of a video run."""

    metadata: VideoMetadata
    sampling_ms: int
    scene_count: int
    thumbnails: List[FrameScore]
    failures: List[FrameFailure]
    pool_metrics: Dict[str, int] = field(default_factory=dict)


async def generate_video_thumbnails(
    path: str,
    top_n: int = 10,
    sampling_ms: Optional[int] = None,
    settings: Optional[Settings] = None,
    face_detector_factory: Optional[FaceDetectorFactory] = None,
    metadata_provider: Optional[MetadataProvider] = None,
) -> VideoThumbnailResult:
    """
    Select the top-N thumbnail frames of a video file.

    Args:
        path: Path to the video
        top_n: Number of thumbnails
        sampling_ms: Sampling interval (None = from duration)
        settings: Configuration (default: built-in defaults)
        face_detector_factory: Per-run face detector factory
        metadata_provider: Metadata extractor (default: OpenCV)

    Returns:
        VideoThumbnailResult

    Raises:
        CollaboratorFailure: If the video cannot be opened
        InputError: If no frame could be decoded
    """
    settings = settings or Settings()
    provider = metadata_provider or OpenCVMetadataProvider()

    metadata = await asyncio.to_thread(provider.extract, path)
    interval = sampling_ms or smart_sampling_ms(metadata.duration_ms, settings.sampling)

    source = OpenCVFrameSource(bins=settings.histogram.bins, metadata_provider=provider)
    frames = await asyncio.to_thread(lambda: list(source.iter_frames(path, interval, metadata)))

    pipeline = ThumbnailPipeline(settings=settings, face_detector_factory=face_detector_factory)
    thumbnails = await pipeline.generate_thumbnails(frames, top_n)

    return VideoThumbnailResult(
        metadata=metadata,
        sampling_ms=interval,
        scene_count=len(pipeline.completed_scenes),
        thumbnails=thumbnails,
        failures=pipeline.failures,
        pool_metrics=pipeline.pool.metrics.to_dict(),
    )
