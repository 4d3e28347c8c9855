"""
Scene Segmentation
==================

Adaptive-threshold scene-cut detection over an ordered frame sequence.

Algorithm:
    1. diffs[i] = distance(hist[i-1], hist[i]) for i = 1..n-1
    2. threshold = mean(diffs)
    3. Walk frames in order; a cut is placed before frame i whenever
       diffs[i-1] > threshold
    4. The last accumulated scene is always emitted

Guarantees:
    - Scenes partition the input exactly (concatenation == input)
    - Every scene has at least one frame
    - Scene indices are consecutive from 0
    - Deterministic: same histograms -> same boundaries

Example:
    diffs = [1, 1, 9, 1]  (mean = 3)
    -> cut only between frames 2 and 3
    -> [[f0, f1, f2], [f3, f4]]
"""

import logging
from typing import List, Optional, Sequence

from smart_thumbnail.analysis.histogram import histogram_distance
from smart_thumbnail.models.frame import Frame, Scene


logger = logging.getLogger(__name__)


def compute_histogram_diffs(frames: Sequence[Frame]) -> List[float]:
    """
    Compute consecutive histogram distances.

    Returns:
        List of n-1 distances (empty for fewer than two frames)

    Raises:
        DimensionMismatchError: If two neighbouring histograms differ in length
    """
    return [
        histogram_distance(frames[i - 1].histogram, frames[i].histogram)
        for i in range(1, len(frames))
    ]


def compute_cut_threshold(diffs: Sequence[float]) -> Optional[float]:
    """Adaptive cut threshold: mean of the diffs, None when there are none."""
    if not diffs:
        return None
    return sum(diffs) / len(diffs)


def segment_scenes(frames: Sequence[Frame]) -> List[Scene]:
    """
    Partition an ordered frame sequence into contiguous scenes.

    Args:
        frames: Frames in sampling order

    Returns:
        Scenes in order; empty list for empty input
    """
    return _partition(frames, compute_histogram_diffs(frames))


def _partition(frames: Sequence[Frame], diffs: Sequence[float]) -> List[Scene]:
    if not frames:
        return []

    if len(frames) == 1:
        return [Scene(scene_index=0, frames=(frames[0],))]

    threshold = compute_cut_threshold(diffs)

    scenes: List[Scene] = []
    current: List[Frame] = [frames[0]]

    for i in range(1, len(frames)):
        # New scene when the difference exceeds the adaptive threshold
        if diffs[i - 1] > threshold:
            scenes.append(Scene(scene_index=len(scenes), frames=tuple(current)))
            current = []
        current.append(frames[i])

    scenes.append(Scene(scene_index=len(scenes), frames=tuple(current)))

    logger.debug(f"Adaptive threshold (mean diff): {threshold:.4f}")
    return scenes


class SceneSegmenter:
    """
    Scene segmenter with logging and basic counters.

    Attributes:
        last_threshold: Threshold used by the most recent call
        runs: Number of segmentation calls
    """

    def __init__(self) -> None:
        self.last_threshold: Optional[float] = None
        self.runs: int = 0

    def segment(self, frames: Sequence[Frame]) -> List[Scene]:
        """
        Segment frames into scenes.

        Args:
            frames: Frames in sampling order

        Returns:
            Ordered list of scenes
        """
        self.runs += 1
        diffs = compute_histogram_diffs(frames)
        self.last_threshold = compute_cut_threshold(diffs)

        scenes = _partition(frames, diffs)

        if self.last_threshold is not None:
            logger.info(
                f"Scene detection complete: {len(scenes)} scenes from "
                f"{len(frames)} frames (threshold={self.last_threshold:.4f})"
            )
        else:
            logger.info(
                f"Scene detection complete: {len(scenes)} scenes from "
                f"{len(frames)} frames"
            )
        for scene in scenes:
            logger.debug(f"Scene {scene.scene_index} | frames: {len(scene)}")

        return scenes
