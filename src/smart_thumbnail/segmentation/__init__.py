"""
Segmentation Module
===================

Histogram-based scene-cut detection.
"""

from smart_thumbnail.segmentation.scenes import (
    SceneSegmenter,
    compute_cut_threshold,
    compute_histogram_diffs,
    segment_scenes,
)

__all__ = [
    "SceneSegmenter",
    "compute_cut_threshold",
    "compute_histogram_diffs",
    "segment_scenes",
]
