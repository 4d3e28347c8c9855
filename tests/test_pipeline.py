"""Tests for the end-to-end thumbnail pipeline."""

import asyncio

import pytest

from smart_thumbnail.config import FaceDetectionConfig, PoolConfig, Settings
from smart_thumbnail.errors import DimensionMismatchError, FatalConfigError, InputError
from smart_thumbnail.models.frame import Frame
from smart_thumbnail.perception.face import MockFaceDetector
from smart_thumbnail.pipeline.orchestrator import ThumbnailPipeline, generate_thumbnails
from smart_thumbnail.pool.worker_pool import FeatureWorkerPool
from smart_thumbnail.stream.source import make_frame

from conftest import FailingFaceDetector, frame_with_histogram, solid_image


def small_settings() -> Settings:
    return Settings(pool=PoolConfig(pool_size=2, face_concurrency=2))


class DetectorRecorder:
    """Face detector factory that keeps every detector it creates."""

    def __init__(self, score: float = 0.0) -> None:
        self.score = score
        self.detectors = []

    def __call__(self) -> MockFaceDetector:
        detector = MockFaceDetector(fixed_score=self.score)
        self.detectors.append(detector)
        return detector


class ExplodingPool:
    """Worker pool double whose scene processing always fails."""

    async def process_scene(self, scene, face_detector=None):
        raise RuntimeError("worker crashed")


class StallingPool:
    """Processes scene 0 with a real pool and blocks on every later scene."""

    def __init__(self) -> None:
        self._pool = FeatureWorkerPool(pool_size=2)

    async def process_scene(self, scene, face_detector=None):
        if scene.scene_index == 0:
            return await self._pool.process_scene(scene, face_detector)
        await asyncio.Event().wait()


class TestGenerateThumbnails:

    def test_returns_global_top_n(self, scene_frames):
        pipeline = ThumbnailPipeline(settings=small_settings(), face_detector_factory=DetectorRecorder())

        top = asyncio.run(pipeline.generate_thumbnails(scene_frames, top_n=4))

        assert len(top) == 4
        totals = [s.total_score for s in top]
        assert totals == sorted(totals, reverse=True)
        assert len(pipeline.completed_scenes) == 2
        assert pipeline.failures == []

    def test_fewer_frames_than_requested(self):
        frames = [make_frame(i, i * 0.5, solid_image(50 + 100 * i)) for i in range(2)]

        top = asyncio.run(
            generate_thumbnails(
                frames,
                top_n=3,
                settings=small_settings(),
                face_detector_factory=DetectorRecorder(),
            )
        )

        assert len(top) == 2

    def test_top_zero(self, solid_frames):
        pipeline = ThumbnailPipeline(settings=small_settings(), face_detector_factory=DetectorRecorder())
        assert asyncio.run(pipeline.generate_thumbnails(solid_frames, top_n=0)) == []

    def test_accepts_async_iterable(self, solid_frames):
        async def stream():
            for frame in solid_frames:
                yield frame

        pipeline = ThumbnailPipeline(settings=small_settings(), face_detector_factory=DetectorRecorder())
        top = asyncio.run(pipeline.generate_thumbnails(stream(), top_n=10))

        assert sorted(s.frame.index for s in top) == [f.index for f in solid_frames]

    def test_face_presence_ranks_first(self, solid_frames):
        target = int(solid_frames[3].image[0, 0, 0])

        def factory():
            return MockFaceDetector(score_fn=lambda image: 1.0 if int(image[0, 0, 0]) == target else 0.0)

        pipeline = ThumbnailPipeline(settings=small_settings(), face_detector_factory=factory)
        top = asyncio.run(pipeline.generate_thumbnails(solid_frames, top_n=1))

        assert top[0].frame.index == 3
        assert top[0].face_score == 1.0

    def test_idempotent(self, scene_frames):
        def run():
            pipeline = ThumbnailPipeline(
                settings=small_settings(),
                face_detector_factory=DetectorRecorder(score=0.5),
            )
            top = asyncio.run(pipeline.generate_thumbnails(scene_frames, top_n=5))
            boundaries = [r.scene.frame_indices for r in pipeline.completed_scenes]
            return boundaries, [(s.frame.index, s.total_score) for s in top]

        assert run() == run()

    def test_records_face_failures(self, solid_frames):
        fail_value = int(solid_frames[0].image[0, 0, 0])
        pipeline = ThumbnailPipeline(
            settings=small_settings(),
            face_detector_factory=lambda: FailingFaceDetector([fail_value]),
        )

        top = asyncio.run(pipeline.generate_thumbnails(solid_frames, top_n=10))

        assert len(top) == len(solid_frames)
        assert [f.frame_index for f in pipeline.failures] == [0]


class TestDetectorLifecycle:

    def test_closed_after_success(self, solid_frames):
        factory = DetectorRecorder()
        pipeline = ThumbnailPipeline(settings=small_settings(), face_detector_factory=factory)

        asyncio.run(pipeline.generate_thumbnails(solid_frames, top_n=2))

        assert len(factory.detectors) == 1
        assert factory.detectors[0].closed

    def test_closed_after_error(self, solid_frames):
        factory = DetectorRecorder()
        pipeline = ThumbnailPipeline(
            settings=small_settings(),
            face_detector_factory=factory,
            pool=ExplodingPool(),
        )

        with pytest.raises(RuntimeError):
            asyncio.run(pipeline.generate_thumbnails(solid_frames, top_n=2))

        assert factory.detectors[0].closed

    def test_one_detector_per_run(self, solid_frames):
        factory = DetectorRecorder()
        pipeline = ThumbnailPipeline(settings=small_settings(), face_detector_factory=factory)

        asyncio.run(pipeline.generate_thumbnails(solid_frames, top_n=2))
        asyncio.run(pipeline.generate_thumbnails(solid_frames, top_n=2))

        assert len(factory.detectors) == 2
        assert all(d.closed for d in factory.detectors)

    def test_cancel_keeps_finished_scenes_and_closes_detector(self, scene_frames):
        factory = DetectorRecorder()
        pipeline = ThumbnailPipeline(
            settings=small_settings(),
            face_detector_factory=factory,
            pool=StallingPool(),
        )

        async def run():
            task = asyncio.create_task(pipeline.generate_thumbnails(scene_frames, top_n=3))
            for _ in range(200):
                if pipeline.completed_scenes:
                    break
                await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(run())

        assert [r.scene_index for r in pipeline.completed_scenes] == [0]
        assert len(pipeline.completed_scenes[0].scores) == 3
        assert factory.detectors[0].closed

    def test_broken_backend_fails_before_segmentation(self, solid_frames, tmp_path):
        settings = Settings(
            pool=PoolConfig(pool_size=2),
            face_detection=FaceDetectionConfig(
                backend="haar",
                cascade_path=str(tmp_path / "missing.xml"),
            ),
        )
        pipeline = ThumbnailPipeline(settings=settings)

        with pytest.raises(FatalConfigError):
            asyncio.run(pipeline.generate_thumbnails(solid_frames, top_n=2))

        assert pipeline.segmenter.runs == 0
        assert pipeline.completed_scenes == []


class TestValidation:

    def _pipeline(self, factory=None):
        return ThumbnailPipeline(
            settings=small_settings(),
            face_detector_factory=factory or DetectorRecorder(),
        )

    def test_empty_input(self):
        with pytest.raises(InputError):
            asyncio.run(self._pipeline().generate_thumbnails([], top_n=3))

    def test_negative_top_n(self, solid_frames):
        factory = DetectorRecorder()
        with pytest.raises(FatalConfigError):
            asyncio.run(self._pipeline(factory).generate_thumbnails(solid_frames, top_n=-1))
        assert factory.detectors == []

    def test_non_increasing_indices(self):
        frames = [make_frame(0, 0.0, solid_image(10)), make_frame(0, 0.5, solid_image(20))]
        with pytest.raises(InputError):
            asyncio.run(self._pipeline().generate_thumbnails(frames, top_n=1))

    def test_histogram_length_mismatch(self):
        frames = [
            frame_with_histogram(0, (0.5, 0.5)),
            frame_with_histogram(1, (0.5, 0.5, 0.0)),
        ]
        with pytest.raises(DimensionMismatchError):
            asyncio.run(self._pipeline().generate_thumbnails(frames, top_n=1))

    def test_invalid_image_shape(self):
        with pytest.raises(InputError):
            Frame(index=0, timestamp=0.0, image=solid_image(0)[..., 0], histogram=(1.0,))


class TestSegment:

    def test_segment_validates_and_partitions(self, scene_frames):
        pipeline = ThumbnailPipeline(settings=small_settings(), face_detector_factory=DetectorRecorder())
        scenes = pipeline.segment(scene_frames)
        assert [s.frame_indices for s in scenes] == [(0, 1, 2), (3, 4, 5)]
