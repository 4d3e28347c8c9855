"""
SmartThumbnail Service
======================

FastAPI entry point for the thumbnail selection engine.

Endpoints:
    GET  /            - Service information
    GET  /health      - Liveness probe (is process alive?)
    GET  /metrics     - Run counters and worker pool metrics of the last run
    POST /thumbnails  - Select the top-N thumbnail frames of a video file

Error Mapping:
    FatalConfigError                  -> 400
    InputError / CollaboratorFailure  -> 422
"""

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from smart_thumbnail.config import settings, setup_logging
from smart_thumbnail.errors import (
    CollaboratorFailure,
    FatalConfigError,
    InputError,
)
from smart_thumbnail.models.output import (
    FailureInfo,
    Thumbnail,
    ThumbnailRequest,
    ThumbnailResponse,
    VideoInfo,
)
from smart_thumbnail.pipeline.video import VideoThumbnailResult, generate_video_thumbnails


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_startup_time: float = 0.0
_runs_completed: int = 0
_runs_failed: int = 0
_frames_failed: int = 0
_last_pool_metrics: Dict[str, int] = {}


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    global _startup_time

    setup_logging(settings)
    _startup_time = time.time()
    logger.info(f"Starting {settings.service.name} {settings.service.version}")
    logger.info(
        f"Face backend: {settings.face_detection.backend}, "
        f"pool_size: {settings.pool.pool_size or os.cpu_count()}"
    )

    yield

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="SmartThumbnail",
    description="Scene-aware thumbnail selection for videos",
    version=settings.service.version,
    lifespan=lifespan,
)


def build_response(result: VideoThumbnailResult) -> ThumbnailResponse:
    """Convert a pipeline result into the HTTP response model."""
    return ThumbnailResponse(
        video=VideoInfo(**result.metadata.to_dict()),
        sampling_ms=result.sampling_ms,
        scene_count=result.scene_count,
        failures=[FailureInfo(**f.to_dict()) for f in result.failures],
        thumbnails=[
            Thumbnail(rank=rank, **score.to_dict())
            for rank, score in enumerate(result.thumbnails, start=1)
        ],
    )


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "SmartThumbnail",
        "version": settings.service.version,
        "name": settings.service.name,
        "status": "running",
        "face_backend": settings.face_detection.backend,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Run counters and the worker pool metrics of the last completed run."""
    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "runs_completed": _runs_completed,
        "runs_failed": _runs_failed,
        "frames_failed": _frames_failed,
        "last_run": _last_pool_metrics,
    })


@app.post("/thumbnails", response_model=ThumbnailResponse)
async def thumbnails(request: ThumbnailRequest):
    """Select the top-N thumbnail frames of a video."""
    global _runs_completed, _runs_failed, _frames_failed, _last_pool_metrics

    try:
        result = await generate_video_thumbnails(
            path=request.path,
            top_n=request.top_n,
            sampling_ms=request.sampling_ms,
            settings=settings,
        )
    except FatalConfigError as e:
        _runs_failed += 1
        logger.error(f"Configuration error: {e}")
        return JSONResponse({"error": str(e)}, status_code=400)
    except (InputError, CollaboratorFailure) as e:
        _runs_failed += 1
        logger.warning(f"Cannot process {request.path}: {e}")
        return JSONResponse({"error": str(e)}, status_code=422)

    _runs_completed += 1
    _frames_failed += len(result.failures)
    _last_pool_metrics = result.pool_metrics
    return build_response(result)


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    # Cloud Run uses PORT env var
    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "smart_thumbnail.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
