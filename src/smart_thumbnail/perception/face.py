"""
Face Detection
==============

Face-presence scoring abstraction for the thumbnail pipeline.

This module provides the FaceDetector protocol and two local
implementations:
    - MockFaceDetector: Deterministic detector for tests and dry runs
    - HaarCascadeFaceDetector: OpenCV Haar cascade (CPU, no network)

Design Rules:
    - detect() is async and may be slow; callers bound its concurrency
    - A detector is a scoped resource: acquired once per pipeline run
      and closed on every exit path (use `async with`)
    - Scores are in [0, 1]; 1.0 means at least one face was found
"""

import asyncio
import logging
import threading
from typing import Callable, Optional, Protocol

import cv2
import numpy as np


logger = logging.getLogger(__name__)


class FaceDetector(Protocol):
    """
    Protocol for face detection backends.

    All implementations must provide an async `detect` method returning
    a face-presence score and an async `close` method releasing resources.
    """

    async def detect(self, image: np.ndarray) -> float:
        """
        Score face presence in an image.

        Args:
            image: RGB image (H, W, 3), dtype=uint8

        Returns:
            Face score in [0, 1]
        """
        ...

    async def close(self) -> None:
        """Release detector resources."""
        ...


class _ScopedDetector:
    """Async context manager support shared by the detectors."""

    async def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return getattr(self, "_closed", False)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class MockFaceDetector(_ScopedDetector):
    """
    Deterministic mock face detector.

    Returns `fixed_score` for every image, or the result of `score_fn`
    when one is given. An optional delay simulates a slow collaborator.

    Attributes:
        call_count: Number of detect() calls
        closed: Whether close() has been called
    """

    def __init__(
        self,
        fixed_score: float = 0.0,
        score_fn: Optional[Callable[[np.ndarray], float]] = None,
        delay_seconds: float = 0.0,
    ) -> None:
        """
        Initialize mock face detector.

        Args:
            fixed_score: Score returned for every image
            score_fn: Optional deterministic function image -> score
            delay_seconds: Artificial latency per call
        """
        self.fixed_score = fixed_score
        self.score_fn = score_fn
        self.delay_seconds = delay_seconds
        self.call_count: int = 0
        self._closed = False

        logger.info(f"MockFaceDetector initialized: fixed_score={fixed_score}")

    async def detect(self, image: np.ndarray) -> float:
        self.call_count += 1
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        if self.score_fn is not None:
            return float(self.score_fn(image))
        return float(self.fixed_score)


class HaarCascadeFaceDetector(_ScopedDetector):
    """
    Face detector using OpenCV's bundled Haar cascade.

    Detection runs in a worker thread so the event loop stays free.
    Each thread gets its own CascadeClassifier instance.

    Attributes:
        cascade_path: Path of the cascade XML
        min_neighbors: detectMultiScale minNeighbors
        scale_factor: detectMultiScale scaleFactor
    """

    def __init__(
        self,
        cascade_path: Optional[str] = None,
        scale_factor: float = 1.1,
        min_neighbors: int = 5,
        min_size: int = 24,
    ) -> None:
        """
        Initialize Haar cascade detector.

        Args:
            cascade_path: Cascade XML (default: OpenCV frontal face cascade)
            scale_factor: Pyramid scale step
            min_neighbors: Neighbour rectangles required to keep a detection
            min_size: Minimum face size in pixels

        Raises:
            ValueError: If the cascade cannot be loaded
        """
        if not hasattr(cv2, "CascadeClassifier"):
            raise ValueError(
                f"OpenCV {cv2.__version__} has no CascadeClassifier; "
                f"install opencv-python-headless<5 or use another face backend"
            )

        self.cascade_path = cascade_path or (
            cv2.data.haarcascades + "haarcascade_frontalface_default.xml"
        )
        self.scale_factor = scale_factor
        self.min_neighbors = min_neighbors
        self.min_size = min_size
        self._local = threading.local()
        self._closed = False

        # Fail fast on a bad cascade path
        self._classifier()

        logger.info(f"HaarCascadeFaceDetector initialized: cascade={self.cascade_path}")

    def _classifier(self) -> "cv2.CascadeClassifier":
        classifier = getattr(self._local, "classifier", None)
        if classifier is None:
            try:
                classifier = cv2.CascadeClassifier(self.cascade_path)
            except cv2.error as e:
                raise ValueError(f"Failed to load Haar cascade: {self.cascade_path}") from e
            if classifier.empty():
                raise ValueError(f"Failed to load Haar cascade: {self.cascade_path}")
            self._local.classifier = classifier
        return classifier

    def _detect_sync(self, image: np.ndarray) -> float:
        gray = cv2.cvtColor(np.ascontiguousarray(image), cv2.COLOR_RGB2GRAY)
        faces = self._classifier().detectMultiScale(
            gray,
            scaleFactor=self.scale_factor,
            minNeighbors=self.min_neighbors,
            minSize=(self.min_size, self.min_size),
        )
        return 1.0 if len(faces) > 0 else 0.0

    async def detect(self, image: np.ndarray) -> float:
        if self.closed:
            raise RuntimeError("HaarCascadeFaceDetector is closed")
        return await asyncio.to_thread(self._detect_sync, image)

    async def close(self) -> None:
        self._local = threading.local()
        self._closed = True
