"""
SmartThumbnail
==============

Scene-aware thumbnail selection for sampled video frames.

This package partitions sampled frames into scenes with adaptive
histogram scene-cut detection, extracts per-frame visual quality
features through a bounded worker pool, scores every frame against its
scene's ideal metrics, and selects the global top-N frames.

Components:
    - analysis: Histograms, sharpness/brightness/contrast/motion, scene ideals
    - segmentation: Adaptive-threshold scene cuts
    - pool: Bounded-concurrency per-scene processing
    - scoring: Weighted scores and top-N selection
    - pipeline: End-to-end orchestration
    - perception: Face detection backends
    - stream: Frame sampling and video metadata (OpenCV)

Example:
    import asyncio
    from smart_thumbnail.pipeline import generate_thumbnails
    from smart_thumbnail.perception import MockFaceDetector

    top = asyncio.run(generate_thumbnails(frames, top_n=5, face_detector_factory=MockFaceDetector))
"""

__version__ = "0.1.0"
__author__ = "SmartThumbnail Project"

__all__ = [
    "__version__",
]
