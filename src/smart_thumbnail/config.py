"""
SmartThumbnail Configuration
============================

This module handles configuration loading for the thumbnail engine.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    SMART_THUMBNAIL_WEIGHTS          -> scoring.weights ("0.3,0.2,0.1,0.1,0.4")
    SMART_THUMBNAIL_HISTOGRAM_BINS   -> histogram.bins
    SMART_THUMBNAIL_POOL_SIZE        -> pool.pool_size
    SMART_THUMBNAIL_FACE_CONCURRENCY -> pool.face_concurrency
    SMART_THUMBNAIL_DOWNSCALE_WIDTH  -> pool.downscale_width
    SMART_THUMBNAIL_FACE_BACKEND     -> face_detection.backend
    SMART_THUMBNAIL_VISION_CREDENTIALS -> face_detection.vision_credentials_path
    SMART_THUMBNAIL_PORT             -> server.port
    SMART_THUMBNAIL_LOG_LEVEL        -> logging.level
    PORT                             -> server.port (Cloud Run)

Example:
    from smart_thumbnail.config import settings

    print(settings.scoring.weights.face)
    print(settings.pool.pool_size)
"""

import os
import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from smart_thumbnail.errors import FatalConfigError


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="smart-thumbnail", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class WeightsConfig(BaseModel):
    """Per-metric weights of the total score."""

    sharpness: float = Field(default=0.30, ge=0, description="Sharpness weight")
    brightness: float = Field(default=0.20, ge=0, description="Brightness weight")
    contrast: float = Field(default=0.10, ge=0, description="Contrast weight")
    motion: float = Field(default=0.10, ge=0, description="Motion weight (1 - motion)")
    face: float = Field(default=0.40, ge=0, description="Face presence weight")


class IdealsConfig(BaseModel):
    """Default ideal values and maximum distances from ideal."""

    brightness: float = Field(default=0.5, ge=0, le=1.0, description="Brightness ideal")
    contrast: float = Field(default=0.38, ge=0, description="Contrast ideal")
    sharpness: float = Field(default=0.008, ge=0, description="Sharpness ideal")
    max_brightness_distance: float = Field(
        default=0.5,
        gt=0,
        description="Brightness score drops to 0 at this distance",
    )
    max_contrast_distance: float = Field(
        default=0.5,
        gt=0,
        description="Contrast score drops to 0 at this distance",
    )
    max_sharpness_distance: float = Field(
        default=0.01,
        gt=0,
        description="Sharpness score drops to 0 at this distance",
    )


class ScoringConfig(BaseModel):
    """Scoring formula configuration."""

    weights: WeightsConfig = Field(default_factory=WeightsConfig)
    ideals: IdealsConfig = Field(default_factory=IdealsConfig)

    @model_validator(mode="before")
    @classmethod
    def _weights_from_list(cls, data: Any) -> Any:
        """Accept weights as an ordered list: sharpness, brightness, contrast, motion, face."""
        if isinstance(data, dict) and isinstance(data.get("weights"), (list, tuple)):
            values = data["weights"]
            if len(values) != 5:
                raise ValueError(
                    f"weights list must have 5 values "
                    f"(sharpness, brightness, contrast, motion, face), got {len(values)}"
                )
            data = dict(data)
            data["weights"] = dict(
                zip(("sharpness", "brightness", "contrast", "motion", "face"), values)
            )
        return data


class HistogramConfig(BaseModel):
    """Histogram configuration."""

    bins: int = Field(default=8, ge=1, le=256, description="Buckets per color channel")


class PoolConfig(BaseModel):
    """Worker pool configuration."""

    pool_size: Optional[int] = Field(
        default=None,
        ge=1,
        description="Concurrent extraction tasks (None = CPU count)",
    )
    face_concurrency: Optional[int] = Field(
        default=None,
        ge=1,
        description="Concurrent face detection calls (None = number of frames)",
    )
    downscale_width: int = Field(
        default=320,
        ge=16,
        description="Width of the analysis subject in pixels",
    )


class SamplingConfig(BaseModel):
    """Duration-driven sampling intervals (milliseconds)."""

    short_video_ms: int = Field(default=30_000, gt=0, description="Short video upper bound")
    mid_video_ms: int = Field(default=60_000, gt=0, description="Mid video upper bound")
    short_interval_ms: int = Field(default=250, gt=0, description="Interval for short videos")
    mid_interval_ms: int = Field(default=500, gt=0, description="Interval for mid videos")
    long_interval_ms: int = Field(default=1000, gt=0, description="Interval for long videos")
    jpeg_quality: int = Field(default=80, ge=1, le=100, description="JPEG quality for exports")


class FaceDetectionConfig(BaseModel):
    """Face detection backend configuration."""

    backend: str = Field(
        default="haar",
        description="Face detection backend: 'mock', 'haar' or 'vision'",
    )
    cascade_path: Optional[str] = Field(
        default=None,
        description="Haar cascade XML (None = OpenCV frontal face cascade)",
    )
    mock_score: float = Field(default=0.0, ge=0, le=1.0, description="Mock detector score")
    vision_credentials_path: Optional[str] = Field(
        default=None,
        description="Service account JSON for the Vision backend",
    )
    confidence_threshold: float = Field(
        default=0.6,
        ge=0,
        le=1.0,
        description="Minimum face confidence (Vision backend)",
    )
    max_rps: float = Field(default=5.0, ge=0, description="Vision API requests per second")


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for SmartThumbnail.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    histogram: HistogramConfig = Field(default_factory=HistogramConfig)
    pool: PoolConfig = Field(default_factory=PoolConfig)
    sampling: SamplingConfig = Field(default_factory=SamplingConfig)
    face_detection: FaceDetectionConfig = Field(default_factory=FaceDetectionConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def build_settings(config_data: dict) -> Settings:
    """
    Validate raw configuration data.

    Raises:
        FatalConfigError: If any value is invalid
    """
    try:
        return Settings.model_validate(config_data)
    except ValidationError as e:
        raise FatalConfigError(f"Invalid configuration: {e}") from e


CONFIG_FILE_NAMES = ("config.yaml", "config.yml")


def _find_config_file() -> Optional[Path]:
    """First existing config file in the working directory or the project root."""
    project_root = Path(__file__).resolve().parents[2]
    for directory in (Path.cwd(), project_root):
        for name in CONFIG_FILE_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def _read_yaml(path: Path) -> dict:
    """
    Read a YAML mapping.

    Raises:
        FatalConfigError: If the file is not valid YAML or not a mapping
    """
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise FatalConfigError(f"Cannot parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise FatalConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Build Settings from defaults, a YAML file and SMART_THUMBNAIL_* variables.

    Environment variables win over the file, the file wins over defaults.

    Args:
        config_path: Explicit YAML file. If None, config.yaml/config.yml is
            looked up in the working directory, then the project root.

    Raises:
        FatalConfigError: If the merged configuration is invalid
    """
    path = Path(config_path) if config_path else _find_config_file()

    config_data: dict = {}
    if path is not None and path.is_file():
        logger.info(f"Loading config from: {path}")
        config_data = _read_yaml(path)
    else:
        logger.debug("No config file, using defaults and environment")

    try:
        _apply_env_overrides(config_data)
    except ValueError as e:
        raise FatalConfigError(f"Invalid environment override: {e}") from e

    return build_settings(config_data)


def _parse_weights(raw: str) -> list:
    return [float(v) for v in raw.split(",")]


# (variable, section, key, parser); later entries win for the same key
ENV_OVERRIDES = (
    ("SMART_THUMBNAIL_WEIGHTS", "scoring", "weights", _parse_weights),
    ("SMART_THUMBNAIL_HISTOGRAM_BINS", "histogram", "bins", int),
    ("SMART_THUMBNAIL_POOL_SIZE", "pool", "pool_size", int),
    ("SMART_THUMBNAIL_FACE_CONCURRENCY", "pool", "face_concurrency", int),
    ("SMART_THUMBNAIL_DOWNSCALE_WIDTH", "pool", "downscale_width", int),
    ("SMART_THUMBNAIL_FACE_BACKEND", "face_detection", "backend", str),
    ("SMART_THUMBNAIL_VISION_CREDENTIALS", "face_detection", "vision_credentials_path", str),
    ("SMART_THUMBNAIL_PORT", "server", "port", int),
    ("PORT", "server", "port", int),
    ("SMART_THUMBNAIL_LOG_LEVEL", "logging", "level", str),
)


def _apply_env_overrides(config_data: dict) -> None:
    """
    Merge environment overrides into raw config data in place.

    Raises:
        ValueError: If a variable cannot be parsed
    """
    for variable, section, key, parse in ENV_OVERRIDES:
        raw = os.environ.get(variable)
        if not raw:
            continue
        section_data = config_data.get(section) or {}
        section_data[key] = parse(raw)
        config_data[section] = section_data
        logger.debug(f"{variable} overrides {section}.{key}")


LOG_FORMATS = {
    "text": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "json": (
        '{"time": "%(asctime)s", "level": "%(levelname)s", '
        '"logger": "%(name)s", "message": "%(message)s"}'
    ),
}


def setup_logging(settings: Settings) -> None:
    """
    Configure the root logger from the logging section.

    Unknown formats fall back to text; unknown levels to INFO.
    """
    level = logging.getLevelName(settings.logging.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMATS.get(settings.logging.format, LOG_FORMATS["text"]),
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# Loaded on import; logging is configured by the entry points
settings = load_config()
