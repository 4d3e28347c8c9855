"""
Data Models
===========

Typed records flowing through the thumbnail pipeline.

Models:
    Frames:
        - Frame: Sampled, immutable video frame with histogram
        - Scene: Ordered, non-empty run of frames

    Scoring:
        - FrameFeatures: Raw per-frame metrics (worker pool output)
        - SceneIdealMetrics: Scene-local mean metrics
        - FrameScore: Terminal per-frame score
        - FrameFailure, SceneResult: Per-scene checkpoint

    Video:
        - VideoMetadata: Duration/resolution of the source

    Service:
        - ThumbnailRequest, ThumbnailResponse: HTTP contract
"""

from smart_thumbnail.models.frame import Frame, Scene
from smart_thumbnail.models.scoring import (
    FrameFailure,
    FrameFeatures,
    FrameScore,
    SceneIdealMetrics,
    SceneResult,
)
from smart_thumbnail.models.video import VideoMetadata
from smart_thumbnail.models.output import ThumbnailRequest, ThumbnailResponse

__all__ = [
    # Frames
    "Frame",
    "Scene",
    # Scoring
    "FrameFeatures",
    "SceneIdealMetrics",
    "FrameScore",
    "FrameFailure",
    "SceneResult",
    # Video
    "VideoMetadata",
    # Service
    "ThumbnailRequest",
    "ThumbnailResponse",
]
