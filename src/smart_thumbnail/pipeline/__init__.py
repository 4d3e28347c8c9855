"""
Pipeline Module
===============

End-to-end orchestration: segmentation, per-scene processing, global top-N.
"""

from smart_thumbnail.pipeline.orchestrator import (
    ThumbnailPipeline,
    build_scoring_engine,
    generate_thumbnails,
)
from smart_thumbnail.pipeline.video import VideoThumbnailResult, generate_video_thumbnails

__all__ = [
    "ThumbnailPipeline",
    "build_scoring_engine",
    "generate_thumbnails",
    "VideoThumbnailResult",
    "generate_video_thumbnails",
]
