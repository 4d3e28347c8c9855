"""
Vision Face Detector
====================

Face detector backed by the Google Cloud Vision API.

This detector:
    - Calls Vision API face detection for each image
    - Applies a minimum interval between calls (rate limiting)
    - Logs a running error count

Design Rules:
    - Fail fast on misconfiguration (missing package, bad credentials)
    - API errors propagate to the caller; the worker pool records them
      and defaults the frame's face score to 0.0
"""

import asyncio
import logging
import time
from typing import Optional

import cv2
import numpy as np

from smart_thumbnail.perception.face import _ScopedDetector


logger = logging.getLogger(__name__)


class VisionAPIError(Exception):
    """Raised when a Vision API call fails."""
    pass


class VisionFaceDetector(_ScopedDetector):
    """
    Face detector using Google Cloud Vision.

    Attributes:
        confidence_threshold: Minimum detection confidence for a face
        max_rps: Maximum API calls per second (0 = unlimited)
    """

    def __init__(
        self,
        credentials_path: Optional[str] = None,
        confidence_threshold: float = 0.6,
        max_rps: float = 5.0,
        jpeg_quality: int = 80,
        client=None,
    ) -> None:
        """
        Initialize Vision face detector.

        Args:
            credentials_path: Path to service account JSON (None = default credentials)
            confidence_threshold: Minimum confidence to count a face
            max_rps: Maximum API requests per second
            jpeg_quality: JPEG quality used to upload frames
            client: Pre-built ImageAnnotatorClient (default: created from credentials)

        Raises:
            ImportError: If google-cloud-vision is not installed
            VisionAPIError: If the client cannot be created
        """
        self.confidence_threshold = confidence_threshold
        self.max_rps = max_rps
        self.min_interval = 1.0 / max_rps if max_rps > 0 else 0.0
        self.jpeg_quality = jpeg_quality

        self._last_call_time: float = 0.0
        self._rate_lock = asyncio.Lock()
        self._api_error_count: int = 0
        self._closed = False

        self._client = client
        if self._client is None:
            self._init_client(credentials_path)

        logger.info(
            f"VisionFaceDetector initialized: "
            f"confidence>={confidence_threshold}, max_rps={max_rps}"
        )

    def _init_client(self, credentials_path: Optional[str]) -> None:
        """Initialize Google Cloud Vision client."""
        try:
            from google.cloud import vision

            if credentials_path:
                self._client = vision.ImageAnnotatorClient.from_service_account_json(
                    credentials_path
                )
                logger.info(f"Vision client initialized from: {credentials_path}")
            else:
                self._client = vision.ImageAnnotatorClient()
                logger.info("Vision client initialized with default credentials")

        except ImportError:
            raise ImportError(
                "google-cloud-vision is required for VisionFaceDetector. "
                "Install with: pip install 'smart-thumbnail[vision]'"
            )
        except Exception as e:
            raise VisionAPIError(f"Failed to initialize Vision client: {e}") from e

    async def detect(self, image: np.ndarray) -> float:
        """
        Detect faces using the Vision API.

        Args:
            image: RGB image (H, W, 3)

        Returns:
            1.0 if a face above the confidence threshold was found, else 0.0

        Raises:
            VisionAPIError: If encoding or the API call fails
        """
        if self.closed:
            raise VisionAPIError("VisionFaceDetector is closed")

        # Rate limiting: wait if calling too fast
        async with self._rate_lock:
            elapsed = time.time() - self._last_call_time
            if elapsed < self.min_interval:
                await asyncio.sleep(self.min_interval - elapsed)
            self._last_call_time = time.time()

        try:
            faces = await self._detect_faces(image)
        except Exception as e:
            self._api_error_count += 1
            logger.error(
                f"Vision API error: {e}. Total errors: {self._api_error_count}"
            )
            if isinstance(e, VisionAPIError):
                raise
            raise VisionAPIError(str(e)) from e

        return 1.0 if faces > 0 else 0.0

    async def _detect_faces(self, image: np.ndarray) -> int:
        """Run face detection and count confident faces."""
        bgr = cv2.cvtColor(np.ascontiguousarray(image), cv2.COLOR_RGB2BGR)
        ok, encoded = cv2.imencode(
            ".jpg", bgr, [int(cv2.IMWRITE_JPEG_QUALITY), self.jpeg_quality]
        )
        if not ok:
            raise VisionAPIError("Failed to encode frame as JPEG")

        response = await asyncio.to_thread(
            self._client.face_detection,
            image={"content": encoded.tobytes()},
        )

        if response.error.message:
            raise VisionAPIError(f"Vision API: {response.error.message}")

        return sum(
            1
            for face in response.face_annotations
            if face.detection_confidence >= self.confidence_threshold
        )

    async def close(self) -> None:
        """Close the underlying gRPC transport."""
        if self._client is not None and not self._closed:
            await asyncio.to_thread(self._client.transport.close)
        self._closed = True

