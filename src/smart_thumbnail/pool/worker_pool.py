"""
Feature Worker Pool
===================

Bounded-concurrency processing of one scene.

This module provides the FeatureWorkerPool class which:
    - Dispatches frames through a bounded queue to a fixed set of workers
    - Runs CPU-bound feature extraction off the event loop
    - Re-orders results by frame index before any order-sensitive step
    - Calls the external face detector with its own concurrency bound
    - Computes scene ideals, motion and total scores

Processing Order (per scene):
    1. Extraction     - pool_size workers, completion order arbitrary
    2. Re-ordering    - sort by frame.index (checked invariant)
    3. Face detection - bounded by face_concurrency
    4. Ideals         - scene means of the raw metrics
    5. Motion + score - motion against the previous frame of the SAME scene

Design Rules:
    - Never more than pool_size extractions in flight
    - The producer blocks on the dispatch queue until a slot frees
    - A failed extraction drops that frame only; it is recorded
    - A failed face detection keeps the frame with face_score = 0.0
    - Cancelling process_scene cancels its workers; no partial frame is emitted
"""

import asyncio
import logging
import os
from typing import Callable, List, Optional, Sequence, Tuple

from smart_thumbnail.analysis.features import (
    DEFAULT_DOWNSCALE_WIDTH,
    compute_motion,
    extract_features,
)
from smart_thumbnail.analysis.ideals import compute_scene_ideals
from smart_thumbnail.errors import ExtractionFailure, FatalConfigError, InputError
from smart_thumbnail.models.frame import Frame, Scene
from smart_thumbnail.models.scoring import (
    FrameFailure,
    FrameFeatures,
    FrameScore,
    SceneResult,
)
from smart_thumbnail.perception.face import FaceDetector
from smart_thumbnail.scoring.engine import ScoringEngine


logger = logging.getLogger(__name__)


ExtractFn = Callable[[Frame, int], FrameFeatures]

STAGE_EXTRACTION = "extraction"
STAGE_FACE_DETECTION = "face_detection"


class PoolMetrics:
    """Metrics for FeatureWorkerPool observability."""

    __slots__ = (
        "scenes_processed",
        "frames_submitted",
        "frames_processed",
        "extraction_failures",
        "face_errors",
        "peak_in_flight",
    )

    def __init__(self) -> None:
        self.scenes_processed: int = 0
        self.frames_submitted: int = 0
        self.frames_processed: int = 0
        self.extraction_failures: int = 0
        self.face_errors: int = 0
        self.peak_in_flight: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "scenes_processed": self.scenes_processed,
            "frames_submitted": self.frames_submitted,
            "frames_processed": self.frames_processed,
            "extraction_failures": self.extraction_failures,
            "face_errors": self.face_errors,
            "peak_in_flight": self.peak_in_flight,
        }


class FeatureWorkerPool:
    """
    Bounded worker pool applying feature extraction and face detection.

    Attributes:
        pool_size: Maximum concurrent extraction tasks
        face_concurrency: Maximum concurrent face detection calls (None = unbounded)
        downscale_width: Width of the analysis subject
        metrics: Operational metrics

    Example:
        pool = FeatureWorkerPool(pool_size=4)
        async with MockFaceDetector() as detector:
            result = await pool.process_scene(scene, detector)
        print(result.scores)
    """

    def __init__(
        self,
        pool_size: Optional[int] = None,
        face_concurrency: Optional[int] = None,
        downscale_width: int = DEFAULT_DOWNSCALE_WIDTH,
        scoring_engine: Optional[ScoringEngine] = None,
        extract_fn: ExtractFn = extract_features,
    ) -> None:
        """
        Initialize worker pool.

        Args:
            pool_size: Extraction workers (None = hardware parallelism)
            face_concurrency: Face detection bound (None = all frames at once)
            downscale_width: Target width of the analysis subject
            scoring_engine: Engine computing total scores
            extract_fn: Per-frame extraction function (frame, width) -> FrameFeatures

        Raises:
            FatalConfigError: If pool_size or face_concurrency is not positive
        """
        if pool_size is None:
            pool_size = os.cpu_count() or 1
        if pool_size < 1:
            raise FatalConfigError(f"pool_size must be >= 1, got {pool_size}")
        if face_concurrency is not None and face_concurrency < 1:
            raise FatalConfigError(
                f"face_concurrency must be >= 1, got {face_concurrency}"
            )

        self.pool_size = pool_size
        self.face_concurrency = face_concurrency
        self.downscale_width = downscale_width
        self.scoring_engine = scoring_engine or ScoringEngine()
        self._extract_fn = extract_fn

        self.metrics = PoolMetrics()
        self._in_flight: int = 0

        logger.info(
            f"FeatureWorkerPool initialized: pool_size={pool_size}, "
            f"face_concurrency={face_concurrency or 'unbounded'}, "
            f"downscale_width={downscale_width}"
        )

    @property
    def in_flight(self) -> int:
        """Number of extractions currently running."""
        return self._in_flight

    async def process_scene(
        self,
        scene: Scene,
        face_detector: Optional[FaceDetector] = None,
    ) -> SceneResult:
        """
        Process every frame of one scene.

        Args:
            scene: Scene to process
            face_detector: External face detector (None = face_score 0.0)

        Returns:
            SceneResult with FrameScores in original frame order
        """
        failures: List[FrameFailure] = []

        collected = await self._extract_all(scene, failures)

        # Completion order is arbitrary: restore frame order before
        # motion and ideal aggregation consume the features.
        features = self._reorder(scene, collected, failures)

        face_scores = await self._detect_faces(scene, features, face_detector, failures)

        if not features:
            logger.warning(
                f"Scene {scene.scene_index}: all {len(scene)} frames failed extraction"
            )
            self.metrics.scenes_processed += 1
            return SceneResult(scene=scene, scores=(), ideals=None, failures=tuple(failures))

        ideals = compute_scene_ideals(features)
        engine = self.scoring_engine

        scores: List[FrameScore] = []
        for i, f in enumerate(features):
            # First frame of every scene has no reference
            motion = compute_motion(f.subject, features[i - 1].subject) if i > 0 else 0.0

            total = engine.compute_total_score(
                sharpness=f.sharpness,
                brightness=f.brightness,
                contrast=f.contrast,
                motion=motion,
                face_score=face_scores[i],
                ideals=ideals,
            )
            scores.append(
                FrameScore(
                    frame=f.frame,
                    sharpness=f.sharpness,
                    brightness=f.brightness,
                    contrast=f.contrast,
                    motion=motion,
                    face_score=face_scores[i],
                    total_score=total,
                )
            )

        self.metrics.scenes_processed += 1
        logger.info(
            f"Scene {scene.scene_index} processed: {len(scores)}/{len(scene)} frames, "
            f"{len(failures)} failures, ideals={ideals}"
        )

        return SceneResult(
            scene=scene,
            scores=tuple(scores),
            ideals=ideals,
            failures=tuple(failures),
        )

    # -------------------------------------------------------------------------
    # Stage 1: Extraction
    # -------------------------------------------------------------------------

    async def _extract_all(
        self,
        scene: Scene,
        failures: List[FrameFailure],
    ) -> List[FrameFeatures]:
        """Run extraction over the scene with at most pool_size workers."""
        dispatch: asyncio.Queue[Optional[Frame]] = asyncio.Queue(maxsize=self.pool_size)
        results: asyncio.Queue[Tuple[Frame, Optional[FrameFeatures], Optional[Exception]]] = (
            asyncio.Queue()
        )

        n_workers = min(self.pool_size, len(scene))
        workers = [
            asyncio.create_task(
                self._worker(dispatch, results),
                name=f"extract_scene{scene.scene_index}_w{i}",
            )
            for i in range(n_workers)
        ]

        try:
            for frame in scene.frames:
                # Blocks while the queue is full (backpressure)
                await dispatch.put(frame)
                self.metrics.frames_submitted += 1
            for _ in workers:
                await dispatch.put(None)
            await asyncio.gather(*workers)
        finally:
            for w in workers:
                if not w.done():
                    w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        collected: List[FrameFeatures] = []
        while not results.empty():
            frame, features, error = results.get_nowait()
            if features is not None:
                collected.append(features)
                self.metrics.frames_processed += 1
            else:
                self.metrics.extraction_failures += 1
                failures.append(
                    FrameFailure(
                        frame_index=frame.index,
                        scene_index=scene.scene_index,
                        stage=STAGE_EXTRACTION,
                        reason=str(error),
                    )
                )
        return collected

    async def _worker(
        self,
        dispatch: "asyncio.Queue[Optional[Frame]]",
        results: "asyncio.Queue[Tuple[Frame, Optional[FrameFeatures], Optional[Exception]]]",
    ) -> None:
        """Take frames from the dispatch queue until the sentinel arrives."""
        while True:
            frame = await dispatch.get()
            try:
                if frame is None:
                    return

                self._in_flight += 1
                self.metrics.peak_in_flight = max(self.metrics.peak_in_flight, self._in_flight)
                try:
                    features = await asyncio.to_thread(
                        self._extract_fn, frame, self.downscale_width
                    )
                except Exception as e:
                    failure = e if isinstance(e, ExtractionFailure) else ExtractionFailure(
                        f"{type(e).__name__}: {e}", frame.index
                    )
                    logger.warning(f"Extraction failed (frame={frame.index}): {failure}")
                    await results.put((frame, None, failure))
                else:
                    await results.put((frame, features, None))
                finally:
                    self._in_flight -= 1
            finally:
                dispatch.task_done()

    # -------------------------------------------------------------------------
    # Stage 2: Re-ordering
    # -------------------------------------------------------------------------

    @staticmethod
    def _reorder(
        scene: Scene,
        collected: Sequence[FrameFeatures],
        failures: Sequence[FrameFailure],
    ) -> List[FrameFeatures]:
        """
        Sort features by frame index and check them against the scene.

        Raises:
            InputError: If the surviving frames do not match the scene order
        """
        ordered = sorted(collected, key=lambda f: f.frame.index)

        failed = {f.frame_index for f in failures}
        expected = [fr.index for fr in scene.frames if fr.index not in failed]
        actual = [f.frame.index for f in ordered]
        if actual != expected:
            raise InputError(
                f"Scene {scene.scene_index} frames are not in index order: "
                f"expected {expected}, got {actual}"
            )
        return ordered

    # -------------------------------------------------------------------------
    # Stage 3: Face detection
    # -------------------------------------------------------------------------

    async def _detect_faces(
        self,
        scene: Scene,
        features: Sequence[FrameFeatures],
        face_detector: Optional[FaceDetector],
        failures: List[FrameFailure],
    ) -> List[float]:
        """Score face presence for every processed frame, in frame order."""
        if face_detector is None or not features:
            return [0.0] * len(features)

        limit = self.face_concurrency or len(features)
        semaphore = asyncio.Semaphore(limit)

        async def detect_one(f: FrameFeatures) -> float:
            async with semaphore:
                try:
                    score = await face_detector.detect(f.frame.image)
                except Exception as e:
                    self.metrics.face_errors += 1
                    logger.error(f"Face detection error (frame={f.frame.index}): {e}")
                    failures.append(
                        FrameFailure(
                            frame_index=f.frame.index,
                            scene_index=scene.scene_index,
                            stage=STAGE_FACE_DETECTION,
                            reason=f"{type(e).__name__}: {e}",
                        )
                    )
                    return 0.0
            return min(1.0, max(0.0, float(score)))

        # gather preserves argument order
        return list(await asyncio.gather(*(detect_one(f) for f in features)))
