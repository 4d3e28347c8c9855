"""Tests for per-frame visual quality features and scene ideals."""

import numpy as np
import pytest

from smart_thumbnail.analysis.features import (
    compute_brightness,
    compute_contrast,
    compute_motion,
    compute_sharpness,
    downscale_image,
    extract_features,
)
from smart_thumbnail.analysis.ideals import compute_scene_ideals
from smart_thumbnail.errors import InputError
from smart_thumbnail.stream.source import make_frame

from conftest import gradient_image, solid_image


def stripes_image(height: int = 8, width: int = 8) -> np.ndarray:
    """Alternating black and white columns."""
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:, 1::2] = 255
    return image


class TestSharpness:

    def test_uniform_image_is_zero(self):
        assert compute_sharpness(solid_image(120)) == 0.0

    def test_vertical_stripes(self):
        # Every left difference is 255, every top difference is 0
        assert compute_sharpness(stripes_image()) == pytest.approx(0.5)

    def test_tiny_image_is_zero(self):
        assert compute_sharpness(solid_image(255, 1, 10)) == 0.0

    def test_edges_increase_sharpness(self):
        assert compute_sharpness(stripes_image()) > compute_sharpness(gradient_image())


class TestBrightnessContrast:

    def test_black_and_white(self):
        assert compute_brightness(solid_image(0)) == 0.0
        assert compute_brightness(solid_image(255)) == pytest.approx(1.0)

    def test_uniform_contrast_is_zero(self):
        assert compute_contrast(solid_image(77)) == pytest.approx(0.0)

    @pytest.mark.parametrize("value", [1, 77, 128, 254])
    def test_uniform_contrast_has_no_rounding_drift(self, value):
        image = solid_image(value, 480, 640)
        assert compute_contrast(image) < 1e-12
        assert compute_brightness(image) == pytest.approx(value / 255, abs=1e-12)

    def test_half_black_half_white(self):
        image = np.zeros((4, 4, 3), dtype=np.uint8)
        image[:2] = 255
        assert compute_brightness(image) == pytest.approx(0.5)
        assert compute_contrast(image) == pytest.approx(0.5)


class TestMotion:

    def test_identical_frames(self):
        image = gradient_image()
        assert compute_motion(image, image.copy()) == 0.0

    def test_black_to_white(self):
        assert compute_motion(solid_image(255), solid_image(0)) == pytest.approx(1.0)

    def test_dimension_mismatch_is_zero(self):
        assert compute_motion(solid_image(255, 10, 10), solid_image(0, 12, 10)) == 0.0


class TestDownscale:

    def test_preserves_aspect_ratio(self):
        image = solid_image(10, 480, 640)
        small = downscale_image(image, 320)
        assert small.shape == (240, 320, 3)

    def test_narrow_image_untouched(self):
        image = solid_image(10, 24, 32)
        assert downscale_image(image, 320) is image


class TestExtractFeatures:

    def test_metrics_measured_on_subject(self):
        frame = make_frame(0, 0.0, solid_image(255, 120, 640))

        features = extract_features(frame, downscale_width=64)

        assert features.frame is frame
        assert features.subject.shape == (12, 64, 3)
        assert features.brightness == pytest.approx(1.0)
        assert features.sharpness == 0.0
        assert features.contrast == pytest.approx(0.0)

    def test_frame_buffer_is_read_only(self):
        frame = make_frame(0, 0.0, solid_image(10))
        with pytest.raises(ValueError):
            frame.image[0, 0, 0] = 1


class TestSceneIdeals:

    def test_means_of_metrics(self):
        frames = [make_frame(0, 0.0, solid_image(0)), make_frame(1, 0.5, solid_image(255))]
        features = [extract_features(f) for f in frames]

        ideals = compute_scene_ideals(features)

        assert ideals.brightness_ideal == pytest.approx(0.5)
        assert ideals.contrast_ideal == pytest.approx(0.0)
        assert ideals.sharpness_ideal == 0.0

    def test_empty_scene(self):
        with pytest.raises(InputError):
            compute_scene_ideals([])
