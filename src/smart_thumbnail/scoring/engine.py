"""
Frame Scoring and Selection
===========================

Weighted scoring of frames against scene-local ideals and top-N selection.

Formulas:
    score_optimal(v, ideal, d) = clamp(1 - |v - ideal| / d, 0, 1)

    total = sharpness_score  * w_sharp
          + brightness_score * w_bright
          + contrast_score   * w_contrast
          + (1 - motion)     * w_motion
          + face_score       * w_face

Key Design Decisions:
    - Scene ideals (SceneIdealMetrics) override the absolute default ideals,
      making scoring relative to each scene
    - Default weights sum to 1.10; they are NOT renormalized, so a total
      above 1.0 is possible
    - Top-N selection is a stable sort: ties keep original frame order
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from smart_thumbnail.errors import FatalConfigError
from smart_thumbnail.models.scoring import FrameScore, SceneIdealMetrics


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringWeights:
    """
    Per-metric weights of the total score.

    Order used by from_sequence(): sharpness, brightness, contrast, motion, face.
    """

    sharpness: float = 0.30
    brightness: float = 0.20
    contrast: float = 0.10
    motion: float = 0.10
    face: float = 0.40

    FIELD_COUNT = 5

    def __post_init__(self) -> None:
        """Validate invariants."""
        for name in ("sharpness", "brightness", "contrast", "motion", "face"):
            if getattr(self, name) < 0:
                raise FatalConfigError(f"Weight '{name}' must be non-negative")

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "ScoringWeights":
        """
        Build weights from an ordered sequence of exactly five values.

        Raises:
            FatalConfigError: If the sequence does not hold five weights
        """
        if len(values) != cls.FIELD_COUNT:
            raise FatalConfigError(
                f"Expected {cls.FIELD_COUNT} weights "
                f"(sharpness, brightness, contrast, motion, face), got {len(values)}"
            )
        return cls(*(float(v) for v in values))

    @property
    def total(self) -> float:
        return self.sharpness + self.brightness + self.contrast + self.motion + self.face


@dataclass(frozen=True)
class IdealDefaults:
    """
    Absolute ideals and maximum distances.

    Ideals are used when no scene ideals are available; max distances
    always apply.
    """

    brightness_ideal: float = 0.5
    contrast_ideal: float = 0.38
    sharpness_ideal: float = 0.008
    max_brightness_distance: float = 0.5
    max_contrast_distance: float = 0.5
    max_sharpness_distance: float = 0.01

    def __post_init__(self) -> None:
        """Validate invariants."""
        for name in (
            "max_brightness_distance",
            "max_contrast_distance",
            "max_sharpness_distance",
        ):
            if getattr(self, name) <= 0:
                raise FatalConfigError(f"'{name}' must be positive")


def score_optimal(value: float, ideal: float, max_distance: float) -> float:
    """
    Convert a metric into a [0, 1] score based on its distance from ideal.

    Args:
        value: Current metric
        ideal: Target metric
        max_distance: Deviation at which the score reaches 0

    Returns:
        1.0 when exactly ideal, 0.0 at or beyond max_distance

    Raises:
        FatalConfigError: If max_distance is not positive
    """
    if max_distance <= 0:
        raise FatalConfigError(f"max_distance must be positive, got {max_distance}")
    distance = abs(value - ideal)
    return min(1.0, max(0.0, 1.0 - distance / max_distance))


def get_top_n(scores: Sequence[FrameScore], n: int) -> List[FrameScore]:
    """
    Select the n highest-scoring frames.

    Python's sort is stable, so frames with equal total_score keep their
    input order (first seen wins).

    Args:
        scores: Scored frames in original order
        n: Number of frames to return

    Returns:
        At most n frames, highest score first

    Raises:
        FatalConfigError: If n is negative
    """
    if n < 0:
        raise FatalConfigError(f"top_n must be non-negative, got {n}")
    ranked = sorted(scores, key=lambda s: s.total_score, reverse=True)
    return ranked[:n]


class ScoringEngine:
    """
    Computes total frame scores from raw metrics.

    Attributes:
        weights: Per-metric weights
        defaults: Default ideals and max distances
    """

    def __init__(
        self,
        weights: Optional[ScoringWeights] = None,
        defaults: Optional[IdealDefaults] = None,
    ) -> None:
        """
        Initialize scoring engine.

        Args:
            weights: Per-metric weights (default: 0.30/0.20/0.10/0.10/0.40)
            defaults: Default ideals and max distances
        """
        self.weights = weights or ScoringWeights()
        self.defaults = defaults or IdealDefaults()

        if abs(self.weights.total - 1.0) > 1e-9:
            logger.debug(
                f"Scoring weights sum to {self.weights.total:.2f}; "
                f"total scores are not bounded to [0, 1]"
            )

    def compute_total_score(
        self,
        sharpness: float,
        brightness: float,
        contrast: float,
        motion: float,
        face_score: float,
        ideals: Optional[SceneIdealMetrics] = None,
    ) -> float:
        """
        Weighted aggregation of visual metrics for one frame.

        Args:
            sharpness, brightness, contrast: Raw frame metrics
            motion: Motion against the previous frame [0, 1]
            face_score: Face presence [0, 1]
            ideals: Scene ideals; falls back to defaults when None

        Returns:
            Total score
        """
        d = self.defaults
        if ideals is not None:
            brightness_ideal = ideals.brightness_ideal
            contrast_ideal = ideals.contrast_ideal
            sharpness_ideal = ideals.sharpness_ideal
        else:
            brightness_ideal = d.brightness_ideal
            contrast_ideal = d.contrast_ideal
            sharpness_ideal = d.sharpness_ideal

        brightness_score = score_optimal(brightness, brightness_ideal, d.max_brightness_distance)
        contrast_score = score_optimal(contrast, contrast_ideal, d.max_contrast_distance)
        sharpness_score = score_optimal(sharpness, sharpness_ideal, d.max_sharpness_distance)

        # Less motion = higher score
        motion_score = 1.0 - motion

        w = self.weights
        return (
            sharpness_score * w.sharpness
            + brightness_score * w.brightness
            + contrast_score * w.contrast
            + motion_score * w.motion
            + face_score * w.face
        )

    def select_top(self, scene_scores: Sequence[Sequence[FrameScore]], n: int) -> List[FrameScore]:
        """
        Global top-N over every scene.

        Scene lists are concatenated in scene order before one global
        selection, so selection is not per-scene.
        """
        merged: List[FrameScore] = []
        for scores in scene_scores:
            merged.extend(scores)
        return get_top_n(merged, n)
