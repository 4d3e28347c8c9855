"""
Scene Ideal Metrics
===================

Scene-local reference values used to score frames relative to their scene.

The ideal of each metric is the arithmetic mean of that metric over the
scene's own frames. This is the single place scene ideals are computed;
it reuses metrics already extracted by the worker pool rather than
re-measuring pixels.
"""

import logging
from typing import Sequence

from smart_thumbnail.errors import InputError
from smart_thumbnail.models.scoring import FrameFeatures, SceneIdealMetrics


logger = logging.getLogger(__name__)


def compute_scene_ideals(features: Sequence[FrameFeatures]) -> SceneIdealMetrics:
    """
    Compute scene ideal metrics from per-frame features.

    Args:
        features: Non-empty features of one scene, in frame order

    Returns:
        SceneIdealMetrics holding mean brightness, contrast and sharpness

    Raises:
        InputError: If features is empty
    """
    n = len(features)
    if n == 0:
        raise InputError("Cannot compute scene ideals from zero frames")

    sum_brightness = 0.0
    sum_contrast = 0.0
    sum_sharpness = 0.0
    for f in features:
        sum_brightness += f.brightness
        sum_contrast += f.contrast
        sum_sharpness += f.sharpness

    return SceneIdealMetrics(
        brightness_ideal=sum_brightness / n,
        contrast_ideal=sum_contrast / n,
        sharpness_ideal=sum_sharpness / n,
    )
