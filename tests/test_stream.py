"""Tests for OpenCV frame sampling and video metadata."""

import asyncio

import cv2
import numpy as np
import pytest

from smart_thumbnail.config import PoolConfig, Settings
from smart_thumbnail.errors import CollaboratorFailure
from smart_thumbnail.perception.face import MockFaceDetector
from smart_thumbnail.pipeline.video import generate_video_thumbnails
from smart_thumbnail.stream.metadata import OpenCVMetadataProvider
from smart_thumbnail.stream.source import OpenCVFrameSource


FPS = 10
FRAME_COUNT = 20


class CountingMetadataProvider:
    """OpenCV metadata provider that counts extract() calls."""

    def __init__(self) -> None:
        self.calls = 0
        self._provider = OpenCVMetadataProvider()

    def extract(self, path):
        self.calls += 1
        return self._provider.extract(path)


@pytest.fixture
def video_path(tmp_path):
    """Two-second MJPG clip: one second dark, one second bright."""
    path = tmp_path / "clip.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), FPS, (64, 48))
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")

    for i in range(FRAME_COUNT):
        value = 30 if i < FRAME_COUNT // 2 else 220
        bgr = np.full((48, 64, 3), value, dtype=np.uint8)
        bgr[:, : 4 + i] = 255 - value
        writer.write(bgr)
    writer.release()
    return str(path)


class TestMetadata:

    def test_missing_file(self, tmp_path):
        with pytest.raises(CollaboratorFailure):
            OpenCVMetadataProvider().extract(str(tmp_path / "missing.mp4"))

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "not_a_video.mp4"
        path.write_bytes(b"definitely not a video")
        with pytest.raises(CollaboratorFailure):
            OpenCVMetadataProvider().extract(str(path))

    def test_reads_video_properties(self, video_path):
        metadata = OpenCVMetadataProvider().extract(video_path)

        assert metadata.name == "clip.avi"
        assert metadata.width == 64
        assert metadata.height == 48
        assert metadata.duration_ms == pytest.approx(2000, abs=200)
        assert metadata.size_bytes > 0


class TestFrameSource:

    def test_invalid_interval(self, video_path):
        with pytest.raises(ValueError):
            list(OpenCVFrameSource().iter_frames(video_path, 0))

    def test_samples_dense_rgb_frames(self, video_path):
        source = OpenCVFrameSource(bins=8)

        frames = list(source.iter_frames(video_path, 250))

        assert 1 <= len(frames) <= 10
        assert [f.index for f in frames] == list(range(len(frames)))
        assert all(f.image.shape == (48, 64, 3) for f in frames)
        assert all(len(f.histogram) == 24 for f in frames)

    def test_timestamps_increase(self, video_path):
        frames = list(OpenCVFrameSource().iter_frames(video_path, 500))
        timestamps = [f.timestamp for f in frames]
        assert timestamps == sorted(timestamps)

    def test_given_metadata_is_not_extracted_again(self, video_path):
        provider = CountingMetadataProvider()
        metadata = OpenCVMetadataProvider().extract(video_path)
        source = OpenCVFrameSource(metadata_provider=provider)

        frames = list(source.iter_frames(video_path, 500, metadata))

        assert frames
        assert provider.calls == 0

    def test_extracts_metadata_when_missing(self, video_path):
        provider = CountingMetadataProvider()
        list(OpenCVFrameSource(metadata_provider=provider).iter_frames(video_path, 500))
        assert provider.calls == 1


class TestVideoThumbnails:

    def test_end_to_end(self, video_path):
        settings = Settings(pool=PoolConfig(pool_size=2))

        result = asyncio.run(
            generate_video_thumbnails(
                video_path,
                top_n=3,
                settings=settings,
                face_detector_factory=MockFaceDetector,
            )
        )

        assert result.sampling_ms == 250
        assert result.metadata.name == "clip.avi"
        assert 1 <= len(result.thumbnails) <= 3
        assert result.scene_count >= 1
        assert result.pool_metrics["frames_processed"] >= 1
        assert result.pool_metrics["scenes_processed"] == result.scene_count

    def test_metadata_extracted_once(self, video_path):
        provider = CountingMetadataProvider()

        asyncio.run(
            generate_video_thumbnails(
                video_path,
                top_n=1,
                settings=Settings(pool=PoolConfig(pool_size=2)),
                face_detector_factory=MockFaceDetector,
                metadata_provider=provider,
            )
        )

        assert provider.calls == 1

    def test_missing_video(self, tmp_path):
        with pytest.raises(CollaboratorFailure):
            asyncio.run(
                generate_video_thumbnails(
                    str(tmp_path / "missing.mp4"),
                    face_detector_factory=MockFaceDetector,
                )
            )
