"""
Stream Module
=============

Frame sampling and video metadata.

This module provides the ingestion layer for SmartThumbnail:
    - FrameSource / OpenCVFrameSource: Sampled, immutable frames with histograms
    - MetadataProvider / OpenCVMetadataProvider: Duration and resolution
    - smart_sampling_ms: Sampling interval from video duration

Example:
    from smart_thumbnail.stream import OpenCVFrameSource, OpenCVMetadataProvider, smart_sampling_ms

    metadata = OpenCVMetadataProvider().extract("clip.mp4")
    interval = smart_sampling_ms(metadata.duration_ms)
    frames = OpenCVFrameSource().iter_frames("clip.mp4", interval, metadata)
"""

from smart_thumbnail.stream.metadata import (
    MetadataProvider,
    OpenCVMetadataProvider,
    smart_sampling_ms,
)
from smart_thumbnail.stream.source import FrameSource, OpenCVFrameSource, make_frame


__all__ = [
    "FrameSource",
    "OpenCVFrameSource",
    "make_frame",
    "MetadataProvider",
    "OpenCVMetadataProvider",
    "smart_sampling_ms",
]
