"""
Service Request/Response Models
===============================

Pydantic models for the HTTP thumbnail endpoint.

Request Contract:
    {
        "path": "/videos/clip.mp4",
        "top_n": 5,
        "sampling_ms": 500
    }

Response Contract:
    {
        "video": {"name": "clip.mp4", "duration_ms": 42000, ...},
        "sampling_ms": 500,
        "scene_count": 4,
        "failures": [],
        "thumbnails": [
            {"rank": 1, "frame_index": 17, "timestamp": 8.5, "total_score": 0.94, ...}
        ]
    }

Design Rules:
    - Pixel data is never serialized; callers persist frames themselves
    - Thumbnails are ordered by rank (highest score first)
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ThumbnailRequest(BaseModel):
    """
    Request body for thumbnail generation.

    Attributes:
        path: Path to a video file readable by the service
        top_n: Number of thumbnails to return
        sampling_ms: Sampling interval override (None = smart sampling)
    """

    path: str = Field(..., min_length=1, description="Path to the video file")

    top_n: int = Field(
        default=10,
        ge=0,
        description="Number of thumbnails to return",
    )

    sampling_ms: Optional[int] = Field(
        default=None,
        gt=0,
        description="Sampling interval in milliseconds (default: from duration)",
    )


class VideoInfo(BaseModel):
    """Metadata of the processed video."""

    name: str
    path: str
    duration_ms: int = Field(..., ge=0)
    width: Optional[int] = None
    height: Optional[int] = None
    size_bytes: Optional[int] = None
    frame_rate: Optional[float] = None


class Thumbnail(BaseModel):
    """
    One selected thumbnail candidate.

    Attributes:
        rank: 1-based position in the result
        frame_index: Index of the sampled frame
        timestamp: Position in the video (seconds)
        total_score: Weighted total score
    """

    rank: int = Field(..., ge=1)
    frame_index: int = Field(..., ge=0)
    timestamp: float = Field(..., ge=0.0)
    sharpness: float = Field(..., ge=0.0)
    brightness: float = Field(..., ge=0.0, le=1.0)
    contrast: float = Field(..., ge=0.0)
    motion: float = Field(..., ge=0.0, le=1.0)
    face_score: float = Field(..., ge=0.0, le=1.0)
    total_score: float = Field(..., description="Weighted total score")


class FailureInfo(BaseModel):
    """A per-frame failure reported by the pipeline."""

    frame_index: int
    scene_index: int
    stage: str
    reason: str


class ThumbnailResponse(BaseModel):
    """Complete response of the thumbnail endpoint."""

    video: VideoInfo
    sampling_ms: int = Field(..., gt=0)
    scene_count: int = Field(..., ge=0)
    failures: List[FailureInfo] = Field(default_factory=list)
    thumbnails: List[Thumbnail] = Field(default_factory=list)
