"""
Scoring Models
==============

Records produced by feature extraction, scene aggregation and scoring.

Pipeline:
    Frame -> FrameFeatures -> (SceneIdealMetrics) -> FrameScore -> SceneResult

Every stage produces a new immutable record that references upstream data.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from smart_thumbnail.models.frame import Frame, Scene


@dataclass(frozen=True, slots=True)
class SceneIdealMetrics:
    """
    Scene-local reference values for scoring.

    Attributes:
        brightness_ideal: Mean brightness of the scene's frames
        contrast_ideal: Mean contrast of the scene's frames
        sharpness_ideal: Mean sharpness of the scene's frames
    """

    brightness_ideal: float
    contrast_ideal: float
    sharpness_ideal: float

    def __repr__(self) -> str:
        return (
            f"SceneIdealMetrics(brightness={self.brightness_ideal:.4f}, "
            f"contrast={self.contrast_ideal:.4f}, "
            f"sharpness={self.sharpness_ideal:.5f})"
        )


@dataclass(frozen=True, slots=True)
class FrameFeatures:
    """
    Raw visual metrics for one frame (worker pool output).

    Attributes:
        frame: Source frame
        sharpness: Normalized edge energy
        brightness: Mean normalized intensity [0, 1]
        contrast: Std-dev of normalized intensity
        subject: Downscaled image the metrics were measured on
    """

    frame: Frame
    sharpness: float
    brightness: float
    contrast: float
    subject: np.ndarray = field(repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class FrameScore:
    """
    Terminal scoring record for one frame.

    Attributes:
        frame: Source frame
        sharpness: Raw sharpness
        brightness: Raw brightness
        contrast: Raw contrast
        motion: Difference against the previous frame of the same scene (0 for the first)
        face_score: Face presence score [0, 1]
        total_score: Weighted sum of normalized sub-scores
    """

    frame: Frame
    sharpness: float
    brightness: float
    contrast: float
    motion: float
    face_score: float
    total_score: float

    def __repr__(self) -> str:
        return (
            f"FrameScore(index={self.frame.index}, "
            f"total={self.total_score:.3f}, "
            f"S={self.sharpness:.4f}, B={self.brightness:.3f}, "
            f"C={self.contrast:.3f}, M={self.motion:.3f}, "
            f"face={self.face_score:.2f})"
        )

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "frame_index": self.frame.index,
            "timestamp": round(self.frame.timestamp, 3),
            "sharpness": round(self.sharpness, 6),
            "brightness": round(self.brightness, 4),
            "contrast": round(self.contrast, 4),
            "motion": round(self.motion, 4),
            "face_score": round(self.face_score, 4),
            "total_score": round(self.total_score, 4),
        }


@dataclass(frozen=True, slots=True)
class FrameFailure:
    """A per-frame failure recorded by the worker pool."""

    frame_index: int
    scene_index: int
    stage: str
    reason: str

    def to_dict(self) -> dict:
        return {
            "frame_index": self.frame_index,
            "scene_index": self.scene_index,
            "stage": self.stage,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class SceneResult:
    """
    Checkpointed output of one processed scene.

    Attributes:
        scene: The processed scene
        scores: FrameScore list in original frame order
        ideals: Scene ideal metrics, None if every frame failed
        failures: Failures recorded while processing the scene
    """

    scene: Scene
    scores: Tuple[FrameScore, ...]
    ideals: Optional[SceneIdealMetrics]
    failures: Tuple[FrameFailure, ...] = ()

    @property
    def scene_index(self) -> int:
        return self.scene.scene_index

    @property
    def dropped_count(self) -> int:
        return len(self.scene) - len(self.scores)
