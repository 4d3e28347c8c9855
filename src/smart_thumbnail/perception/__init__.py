"""
Perception Module
=================

Face-presence detection for thumbnail scoring.

This module provides a black-box abstraction for face detection.
The pipeline consumes ONLY the score returned by a detector.

Components:
    - FaceDetector: Protocol for face detection backends
    - MockFaceDetector: Deterministic mock for testing
    - HaarCascadeFaceDetector: Local OpenCV cascade
    - VisionFaceDetector: Google Cloud Vision API (optional extra)
"""

import logging

from smart_thumbnail.config import FaceDetectionConfig
from smart_thumbnail.errors import FatalConfigError
from smart_thumbnail.perception.face import (
    FaceDetector,
    HaarCascadeFaceDetector,
    MockFaceDetector,
)
from smart_thumbnail.perception.vision_face import VisionAPIError, VisionFaceDetector


logger = logging.getLogger(__name__)


def create_face_detector(config: FaceDetectionConfig) -> FaceDetector:
    """
    Create a face detector based on config.

    Fails fast if the backend is unknown or cannot be initialized, so a
    bad backend is reported as a configuration error before any frame
    is processed.

    Raises:
        FatalConfigError: If the backend is unknown or fails to initialize
    """
    backend = config.backend

    try:
        return _build_detector(config)
    except FatalConfigError:
        raise
    except (ValueError, ImportError, VisionAPIError) as e:
        raise FatalConfigError(f"Cannot initialize '{backend}' face detector: {e}") from e


def _build_detector(config: FaceDetectionConfig) -> FaceDetector:
    backend = config.backend

    if backend == "mock":
        logger.info("Using MockFaceDetector")
        return MockFaceDetector(fixed_score=config.mock_score)

    elif backend == "haar":
        logger.info("Using HaarCascadeFaceDetector")
        return HaarCascadeFaceDetector(cascade_path=config.cascade_path)

    elif backend == "vision":
        logger.info(
            f"Using VisionFaceDetector: "
            f"confidence>={config.confidence_threshold}, max_rps={config.max_rps}"
        )
        return VisionFaceDetector(
            credentials_path=config.vision_credentials_path,
            confidence_threshold=config.confidence_threshold,
            max_rps=config.max_rps,
        )

    else:
        raise FatalConfigError(f"Unknown face detection backend: {backend}")


__all__ = [
    "FaceDetector",
    "MockFaceDetector",
    "HaarCascadeFaceDetector",
    "VisionFaceDetector",
    "VisionAPIError",
    "create_face_detector",
]
