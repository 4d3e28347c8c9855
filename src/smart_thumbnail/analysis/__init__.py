"""
Frame Analysis Module
=====================

Pure per-frame computations used by the thumbnail pipeline.

This module provides:
    - Color histograms and histogram distance
    - Sharpness, brightness, contrast and motion metrics
    - Scene ideal metric aggregation
"""

from smart_thumbnail.analysis.histogram import (
    DEFAULT_BINS,
    compute_histogram,
    histogram_distance,
)
from smart_thumbnail.analysis.features import (
    compute_brightness,
    compute_contrast,
    compute_motion,
    compute_sharpness,
    downscale_image,
    extract_features,
)
from smart_thumbnail.analysis.ideals import compute_scene_ideals

__all__ = [
    # Histograms
    "DEFAULT_BINS",
    "compute_histogram",
    "histogram_distance",
    # Features
    "compute_sharpness",
    "compute_brightness",
    "compute_contrast",
    "compute_motion",
    "downscale_image",
    "extract_features",
    # Ideals
    "compute_scene_ideals",
]
