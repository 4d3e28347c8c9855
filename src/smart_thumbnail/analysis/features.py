"""
Visual Quality Features
=======================

Pure, stateless per-frame metrics computed with numpy.

Metrics:
    - Sharpness: Mean neighbour difference (edge energy)
    - Brightness: Mean normalized intensity
    - Contrast: Spread of normalized intensity
    - Motion: Mean difference between two co-located frames

Formulas (channel values c in [0, 255]):
    sharpness  = mean over x>=1, y>=1 of
                 (mean_c |p - p_left| + mean_c |p - p_top|) / 2 / 255
    brightness = mean(mean_c(p)) / 255
    contrast   = sqrt(mean((mean_c(p) / 255 - brightness)^2))
    motion     = mean(mean_c |p1 - p2|) / 255

Design Note:
    Every function is deterministic and side-effect free, so workers can
    call them concurrently on disjoint frames without locking.
"""

import logging

import cv2
import numpy as np

from smart_thumbnail.models.frame import Frame
from smart_thumbnail.models.scoring import FrameFeatures


logger = logging.getLogger(__name__)


MAX_CHANNEL_VALUE = 255.0
DEFAULT_DOWNSCALE_WIDTH = 320


def _as_float(image: np.ndarray) -> np.ndarray:
    return image[..., :3].astype(np.float64)


def compute_sharpness(image: np.ndarray) -> float:
    """
    Compute sharpness as average intensity change between neighbours.

    Sharp image -> many edges -> sharpness up.
    Blurry image -> smooth transitions -> sharpness down.

    Args:
        image: RGB image (H, W, 3)

    Returns:
        Normalized sharpness (0.0 for images smaller than 2x2)
    """
    if image.shape[0] < 2 or image.shape[1] < 2:
        return 0.0

    pixels = _as_float(image)
    center = pixels[1:, 1:]
    dx = np.abs(center - pixels[1:, :-1]).mean(axis=2)
    dy = np.abs(center - pixels[:-1, 1:]).mean(axis=2)

    # Two measurements per pixel (horizontal + vertical)
    mean_diff = (float(dx.sum()) + float(dy.sum())) / (2 * dx.size)
    return mean_diff / MAX_CHANNEL_VALUE


def _intensity(image: np.ndarray) -> np.ndarray:
    """Per-pixel channel average, normalized to [0, 1]."""
    return _as_float(image).mean(axis=2) / MAX_CHANNEL_VALUE


def compute_brightness(image: np.ndarray) -> float:
    """
    Compute brightness as average normalized intensity.

    Returns:
        0.0 (black) to 1.0 (white)
    """
    if image.size == 0:
        return 0.0
    return float(_intensity(image).mean())


def compute_contrast(image: np.ndarray) -> float:
    """
    Compute contrast as the standard deviation of normalized intensity.

    Low value -> flat frame, high value -> visually striking frame.
    """
    if image.size == 0:
        return 0.0
    intensity = _intensity(image)
    mean = float(intensity.mean())
    return float(np.sqrt(np.mean((intensity - mean) ** 2)))


def compute_motion(current: np.ndarray, previous: np.ndarray) -> float:
    """
    Compute motion as mean absolute per-channel difference of two frames.

    Args:
        current: Current RGB image
        previous: Previous RGB image

    Returns:
        Motion in [0, 1]; 0.0 when frames are identical or their
        dimensions differ
    """
    if current.shape != previous.shape or current.size == 0:
        return 0.0
    diff = np.abs(_as_float(current) - _as_float(previous))
    return float(diff.mean()) / MAX_CHANNEL_VALUE


def downscale_image(image: np.ndarray, width: int = DEFAULT_DOWNSCALE_WIDTH) -> np.ndarray:
    """
    Downscale an image for faster analysis, preserving aspect ratio.

    The source image is left untouched. Images already narrower than
    `width` are returned as-is.

    Example: 1920x1080 -> 320x180
    """
    h, w = image.shape[:2]
    if width <= 0 or w <= width:
        return image
    height = max(1, int(round(h * width / w)))
    return cv2.resize(image, (width, height), interpolation=cv2.INTER_AREA)


def extract_features(
    frame: Frame,
    downscale_width: int = DEFAULT_DOWNSCALE_WIDTH,
) -> FrameFeatures:
    """
    Downscale a frame and compute sharpness, brightness and contrast.

    This is the unit of work executed by the worker pool.

    Args:
        frame: Frame to analyse
        downscale_width: Target width of the analysis subject

    Returns:
        FrameFeatures measured on the downscaled subject
    """
    subject = downscale_image(frame.image, downscale_width)

    features = FrameFeatures(
        frame=frame,
        sharpness=compute_sharpness(subject),
        brightness=compute_brightness(subject),
        contrast=compute_contrast(subject),
        subject=subject,
    )

    logger.debug(
        f"Features: frame={frame.index}, S={features.sharpness:.5f}, "
        f"B={features.brightness:.3f}, C={features.contrast:.3f}"
    )
    return features
