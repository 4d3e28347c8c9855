"""
Thumbnail Pipeline
==================

Sequences the full thumbnail selection pipeline.

Phases:
    1. Validation   - top_n and the face detector backend checked before any work
    2. Segmentation - adaptive histogram scene cuts
    3. Processing   - per-scene worker pool (features, faces, ideals, scores)
    4. Selection    - one global top-N over every scene's scores

Key Design Decisions:
    - The orchestrator itself is single-threaded; concurrency lives in the pool
    - Frame and scene indices are fixed before any concurrent stage starts
    - The face detector is acquired once per run and closed on every exit path
    - Completed scenes are kept in `completed_scenes`, so cancelling a later
      scene leaves earlier results valid
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterable, AsyncIterator, Callable, Iterable, List, Optional, Union

from smart_thumbnail.config import Settings
from smart_thumbnail.errors import DimensionMismatchError, FatalConfigError, InputError
from smart_thumbnail.models.frame import Frame, Scene
from smart_thumbnail.models.scoring import FrameFailure, FrameScore, SceneResult
from smart_thumbnail.perception import create_face_detector
from smart_thumbnail.perception.face import FaceDetector
from smart_thumbnail.pool.worker_pool import FeatureWorkerPool
from smart_thumbnail.scoring.engine import IdealDefaults, ScoringEngine, ScoringWeights
from smart_thumbnail.segmentation.scenes import SceneSegmenter


logger = logging.getLogger(__name__)


FrameStream = Union[Iterable[Frame], AsyncIterable[Frame]]
FaceDetectorFactory = Callable[[], FaceDetector]


def build_scoring_engine(settings: Settings) -> ScoringEngine:
    """Create a ScoringEngine from the scoring section of the settings."""
    w = settings.scoring.weights
    ideals = settings.scoring.ideals
    return ScoringEngine(
        weights=ScoringWeights(
            sharpness=w.sharpness,
            brightness=w.brightness,
            contrast=w.contrast,
            motion=w.motion,
            face=w.face,
        ),
        defaults=IdealDefaults(
            brightness_ideal=ideals.brightness,
            contrast_ideal=ideals.contrast,
            sharpness_ideal=ideals.sharpness,
            max_brightness_distance=ideals.max_brightness_distance,
            max_contrast_distance=ideals.max_contrast_distance,
            max_sharpness_distance=ideals.max_sharpness_distance,
        ),
    )


class ThumbnailPipeline:
    """
    Scene-aware thumbnail selection pipeline.

    Attributes:
        settings: Configuration in use
        segmenter: Scene segmenter
        pool: Per-scene worker pool
        scoring_engine: Total score computation and top-N selection
        completed_scenes: SceneResults of the current/last run, in scene order

    Example:
        pipeline = ThumbnailPipeline(face_detector_factory=MockFaceDetector)
        top = await pipeline.generate_thumbnails(frames, top_n=5)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        face_detector_factory: Optional[FaceDetectorFactory] = None,
        pool: Optional[FeatureWorkerPool] = None,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            settings: Configuration (default: built-in defaults)
            face_detector_factory: Creates the per-run face detector
                (default: backend from settings.face_detection)
            pool: Pre-built worker pool (default: from settings.pool)

        Raises:
            FatalConfigError: If the configuration is invalid
        """
        self.settings = settings or Settings()
        self.scoring_engine = build_scoring_engine(self.settings)
        self.segmenter = SceneSegmenter()
        self.pool = pool or FeatureWorkerPool(
            pool_size=self.settings.pool.pool_size,
            face_concurrency=self.settings.pool.face_concurrency,
            downscale_width=self.settings.pool.downscale_width,
            scoring_engine=self.scoring_engine,
        )
        self._face_detector_factory = face_detector_factory or (
            lambda: create_face_detector(self.settings.face_detection)
        )

        self.completed_scenes: List[SceneResult] = []

    @property
    def failures(self) -> List[FrameFailure]:
        """All per-frame failures of the current/last run."""
        return [f for result in self.completed_scenes for f in result.failures]

    def segment(self, frames: List[Frame]) -> List[Scene]:
        """Validate frames and partition them into scenes."""
        self._validate_frames(frames)
        return self.segmenter.segment(frames)

    async def generate_thumbnails(self, frames: FrameStream, top_n: int = 10) -> List[FrameScore]:
        """
        Run the full pipeline and select the global top-N frames.

        Args:
            frames: Ordered frames (sync or async iterable)
            top_n: Number of thumbnails to return

        Returns:
            FrameScores, highest score first, length <= top_n

        Raises:
            FatalConfigError: If top_n is negative or the face detector
                cannot be created
            InputError: If there are no frames or they are misordered
        """
        if top_n < 0:
            raise FatalConfigError(f"top_n must be non-negative, got {top_n}")

        self.completed_scenes = []

        # Detector first: a broken backend is a config error, raised
        # before any frame is segmented or scored
        async with self._acquire_face_detector() as detector:
            frame_list = await _collect_frames(frames)
            scenes = self.segment(frame_list)

            for scene in scenes:
                result = await self.pool.process_scene(scene, detector)
                self.completed_scenes.append(result)

        top = self.scoring_engine.select_top(
            [result.scores for result in self.completed_scenes],
            top_n,
        )

        logger.info(
            f"Pipeline complete: {len(frame_list)} frames, {len(scenes)} scenes, "
            f"{len(self.failures)} failures, {len(top)}/{top_n} thumbnails selected"
        )
        for rank, score in enumerate(top, start=1):
            logger.info(f"{rank}. {score!r}")

        return top

    @asynccontextmanager
    async def _acquire_face_detector(self) -> AsyncIterator[FaceDetector]:
        """Create the per-run face detector and always close it."""
        detector = self._face_detector_factory()
        try:
            yield detector
        finally:
            await detector.close()
            logger.debug("Face detector closed")

    @staticmethod
    def _validate_frames(frames: List[Frame]) -> None:
        """
        Check ordering and histogram dimensions before any work starts.

        Raises:
            InputError: Empty sequence or non-increasing indices
            DimensionMismatchError: Histograms of different lengths
        """
        if not frames:
            raise InputError("Frame sequence is empty")

        expected_len = len(frames[0].histogram)
        for prev, curr in zip(frames, frames[1:]):
            if curr.index <= prev.index:
                raise InputError(
                    f"Frame indices must be strictly increasing: "
                    f"{prev.index} followed by {curr.index}"
                )
            if len(curr.histogram) != expected_len:
                raise DimensionMismatchError(
                    f"Frame {curr.index} histogram has {len(curr.histogram)} values, "
                    f"expected {expected_len}"
                )


async def _collect_frames(frames: FrameStream) -> List[Frame]:
    """Materialize a sync or async frame stream."""
    if hasattr(frames, "__aiter__"):
        return [frame async for frame in frames]
    return list(frames)


async def generate_thumbnails(
    frames: FrameStream,
    top_n: int = 10,
    settings: Optional[Settings] = None,
    face_detector_factory: Optional[FaceDetectorFactory] = None,
) -> List[FrameScore]:
    """
    Convenience entry point: build a pipeline and run it once.

    Returns:
        FrameScores, highest score first, length <= top_n
    """
    pipeline = ThumbnailPipeline(
        settings=settings,
        face_detector_factory=face_detector_factory,
    )
    return await pipeline.generate_thumbnails(frames, top_n)
