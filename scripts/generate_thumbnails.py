#!/usr/bin/env python3
"""
Thumbnail Generation Script
===========================

Standalone script that runs the thumbnail pipeline on a video file.

This script:
    1. Reads video metadata and picks a sampling interval
    2. Samples, segments and scores the frames
    3. Logs the ranked thumbnails and any per-frame failures
    4. Optionally writes the selected frames as JPEG files

Prerequisites:
    - Install the package: pip install -e .

Usage:
    python scripts/generate_thumbnails.py video.mp4 --top-n 5
    python scripts/generate_thumbnails.py video.mp4 --face-backend mock --output-dir thumbs/
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import cv2

from smart_thumbnail.config import load_config
from smart_thumbnail.errors import ThumbnailEngineError
from smart_thumbnail.pipeline.video import VideoThumbnailResult, generate_video_thumbnails


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("generate_thumbnails")


def write_thumbnails(result: VideoThumbnailResult, output_dir: str, jpeg_quality: int) -> int:
    """Write the selected frames as JPEG files. Returns the number written."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    stem = Path(result.metadata.name).stem
    written = 0
    for rank, score in enumerate(result.thumbnails, start=1):
        target = out / f"{stem}_{rank:02d}_frame{score.frame.index}.jpg"
        bgr = cv2.cvtColor(score.frame.image, cv2.COLOR_RGB2BGR)
        if cv2.imwrite(str(target), bgr, [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality]):
            written += 1
        else:
            logger.error(f"Failed to write {target}")
    return written


async def run(args: argparse.Namespace) -> VideoThumbnailResult:
    settings = load_config(args.config)
    if args.face_backend:
        settings.face_detection.backend = args.face_backend

    logger.info("=" * 60)
    logger.info("SmartThumbnail")
    logger.info("=" * 60)
    logger.info(f"Video: {args.video}")
    logger.info(f"Top N: {args.top_n}")
    logger.info(f"Face backend: {settings.face_detection.backend}")
    logger.info("=" * 60)

    result = await generate_video_thumbnails(
        path=args.video,
        top_n=args.top_n,
        sampling_ms=args.sampling_ms,
        settings=settings,
    )

    logger.info("=" * 60)
    logger.info("SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Duration: {result.metadata.duration_ms / 1000:.1f}s")
    logger.info(f"Sampling interval: {result.sampling_ms}ms")
    logger.info(f"Scenes: {result.scene_count}")
    logger.info(f"Failures: {len(result.failures)}")
    for failure in result.failures:
        logger.info(
            f"  frame {failure.frame_index} (scene {failure.scene_index}, "
            f"{failure.stage}): {failure.reason}"
        )
    for rank, score in enumerate(result.thumbnails, start=1):
        logger.info(
            f"  {rank}. frame {score.frame.index} @ {score.frame.timestamp:.2f}s "
            f"score={score.total_score:.4f}"
        )
    logger.info("=" * 60)

    if args.output_dir:
        written = write_thumbnails(result, args.output_dir, settings.sampling.jpeg_quality)
        logger.info(f"Wrote {written} thumbnails to {args.output_dir}")

    return result


def main():
    parser = argparse.ArgumentParser(
        description="Select the best thumbnail frames of a video"
    )
    parser.add_argument("video", type=str, help="Path to the video file")
    parser.add_argument(
        "--top-n",
        type=int,
        default=10,
        help="Number of thumbnails (default: 10)",
    )
    parser.add_argument(
        "--sampling-ms",
        type=int,
        default=None,
        help="Sampling interval in ms (default: chosen from duration)",
    )
    parser.add_argument(
        "--face-backend",
        type=str,
        choices=["mock", "haar", "vision"],
        default=os.environ.get("SMART_THUMBNAIL_FACE_BACKEND"),
        help="Face detection backend (default: from config)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config.yaml",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for the selected frames as JPEG",
    )

    args = parser.parse_args()

    try:
        result = asyncio.run(run(args))
    except ThumbnailEngineError as e:
        logger.error(f"❌ {type(e).__name__}: {e}")
        sys.exit(1)

    sys.exit(0 if result.thumbnails or args.top_n == 0 else 1)


if __name__ == "__main__":
    main()
