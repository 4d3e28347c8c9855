"""Tests for configuration loading and sampling intervals."""

import logging

import pytest

from smart_thumbnail.config import (
    LOG_FORMATS,
    FaceDetectionConfig,
    LoggingConfig,
    SamplingConfig,
    Settings,
    build_settings,
    load_config,
    setup_logging,
)
from smart_thumbnail.errors import FatalConfigError
from smart_thumbnail.perception import create_face_detector
from smart_thumbnail.perception.face import MockFaceDetector
from smart_thumbnail.pipeline.orchestrator import build_scoring_engine
from smart_thumbnail.stream.metadata import smart_sampling_ms


ENV_VARS = [
    "SMART_THUMBNAIL_WEIGHTS",
    "SMART_THUMBNAIL_HISTOGRAM_BINS",
    "SMART_THUMBNAIL_POOL_SIZE",
    "SMART_THUMBNAIL_FACE_CONCURRENCY",
    "SMART_THUMBNAIL_DOWNSCALE_WIDTH",
    "SMART_THUMBNAIL_FACE_BACKEND",
    "SMART_THUMBNAIL_VISION_CREDENTIALS",
    "SMART_THUMBNAIL_PORT",
    "SMART_THUMBNAIL_LOG_LEVEL",
    "PORT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def empty_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("{}\n")
    return str(path)


class TestLoadConfig:

    def test_defaults(self, clean_env, empty_config):
        settings = load_config(empty_config)

        assert settings.histogram.bins == 8
        assert settings.pool.pool_size is None
        assert settings.scoring.weights.face == 0.40
        assert settings.scoring.ideals.contrast == 0.38

    def test_yaml_values(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "histogram:\n"
            "  bins: 16\n"
            "scoring:\n"
            "  weights: [1.0, 0.0, 0.0, 0.0, 0.0]\n"
            "pool:\n"
            "  pool_size: 3\n"
        )

        settings = load_config(str(path))

        assert settings.histogram.bins == 16
        assert settings.scoring.weights.sharpness == 1.0
        assert settings.scoring.weights.face == 0.0
        assert settings.pool.pool_size == 3

    def test_env_overrides_file(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("pool:\n  pool_size: 3\n")
        clean_env.setenv("SMART_THUMBNAIL_POOL_SIZE", "6")
        clean_env.setenv("SMART_THUMBNAIL_WEIGHTS", "0.2,0.2,0.2,0.2,0.2")
        clean_env.setenv("SMART_THUMBNAIL_FACE_BACKEND", "mock")

        settings = load_config(str(path))

        assert settings.pool.pool_size == 6
        assert settings.scoring.weights.motion == 0.2
        assert settings.face_detection.backend == "mock"

    def test_wrong_weight_count(self, clean_env, empty_config):
        clean_env.setenv("SMART_THUMBNAIL_WEIGHTS", "0.3,0.2,0.1,0.1")
        with pytest.raises(FatalConfigError):
            load_config(empty_config)

    def test_non_numeric_env(self, clean_env, empty_config):
        clean_env.setenv("SMART_THUMBNAIL_POOL_SIZE", "many")
        with pytest.raises(FatalConfigError):
            load_config(empty_config)

    def test_platform_port_wins(self, clean_env, empty_config):
        clean_env.setenv("SMART_THUMBNAIL_PORT", "9000")
        clean_env.setenv("PORT", "8081")
        assert load_config(empty_config).server.port == 8081

    def test_malformed_yaml(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("pool: [unclosed\n")
        with pytest.raises(FatalConfigError, match="Cannot parse"):
            load_config(str(path))

    def test_yaml_must_be_a_mapping(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- pool\n- scoring\n")
        with pytest.raises(FatalConfigError, match="mapping"):
            load_config(str(path))

    @pytest.mark.parametrize(
        "data",
        [
            {"pool": {"pool_size": 0}},
            {"histogram": {"bins": 0}},
            {"scoring": {"weights": {"face": -1.0}}},
            {"scoring": {"ideals": {"max_sharpness_distance": 0}}},
        ],
    )
    def test_invalid_values(self, data):
        with pytest.raises(FatalConfigError):
            build_settings(data)


class TestSetupLogging:

    @pytest.fixture
    def basic_config(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        return calls

    def test_json_format(self, basic_config):
        setup_logging(Settings(logging=LoggingConfig(level="debug", format="json")))
        assert basic_config[0]["level"] == logging.DEBUG
        assert basic_config[0]["format"] == LOG_FORMATS["json"]

    def test_unknown_level_and_format(self, basic_config):
        setup_logging(Settings(logging=LoggingConfig(level="chatty", format="xml")))
        assert basic_config[0]["level"] == logging.INFO
        assert basic_config[0]["format"] == LOG_FORMATS["text"]


class TestScoringFromSettings:

    def test_engine_uses_configured_weights(self):
        settings = build_settings({"scoring": {"weights": [1.0, 0.0, 0.0, 0.0, 0.0]}})
        engine = build_scoring_engine(settings)

        assert engine.weights.sharpness == 1.0
        assert engine.weights.total == 1.0
        assert engine.defaults.sharpness_ideal == 0.008


class TestFaceDetectorFactory:

    def test_mock_backend(self):
        detector = create_face_detector(FaceDetectionConfig(backend="mock", mock_score=0.7))
        assert isinstance(detector, MockFaceDetector)
        assert detector.fixed_score == 0.7

    def test_unknown_backend(self):
        with pytest.raises(FatalConfigError):
            create_face_detector(FaceDetectionConfig(backend="telepathy"))

    def test_unloadable_cascade_is_config_error(self, tmp_path):
        config = FaceDetectionConfig(backend="haar", cascade_path=str(tmp_path / "missing.xml"))
        with pytest.raises(FatalConfigError, match="haar"):
            create_face_detector(config)


class TestSmartSampling:

    @pytest.mark.parametrize(
        "duration_ms, expected",
        [
            (0, 250),
            (29_999, 250),
            (30_000, 500),
            (59_999, 500),
            (60_000, 1000),
            (3_600_000, 1000),
        ],
    )
    def test_thresholds(self, duration_ms, expected):
        assert smart_sampling_ms(duration_ms) == expected

    def test_custom_intervals(self):
        config = SamplingConfig(short_video_ms=1000, short_interval_ms=50)
        assert smart_sampling_ms(500, config) == 50
