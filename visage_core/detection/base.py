"""
Base Face Detector Interface
============================

Abstract base class defining the interface for all face detectors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging

import numpy as np

from visage_core.config import FeatureConfig
from visage_core.utils.image_utils import frame_thumbnail


logger = logging.getLogger(__name__)


@dataclass
class FaceDetection:
    """
    Represents a single detected face.

    Attributes:
        bbox: Bounding box (x, y, w, h) in input image pixels
        confidence: Detection confidence score [0, 1]
        mesh: Optional ordered mesh points, shape (N, 2) or (N, 3)
        iris: Optional eye/iris refinement points, shape (M, 2) or (M, 3)
        embedding: Optional identity descriptor (absent when description is off)
        live_score: Optional liveness estimate [0, 1]
    """
    bbox: Tuple[float, float, float, float]
    confidence: float = 1.0
    mesh: Optional[np.ndarray] = None
    iris: Optional[np.ndarray] = None
    embedding: Optional[np.ndarray] = None
    live_score: Optional[float] = None

    @property
    def x(self) -> float:
        return self.bbox[0]

    @property
    def y(self) -> float:
        return self.bbox[1]

    @property
    def width(self) -> float:
        return self.bbox[2]

    @property
    def height(self) -> float:
        return self.bbox[3]

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def points(self) -> int:
        """Total mesh and iris points."""
        count = 0
        if self.mesh is not None:
            count += len(self.mesh)
        if self.iris is not None:
            count += len(self.iris)
        return count

    def to_dict(self) -> dict:
        """Convert to dictionary (excluding numpy arrays)."""
        return {
            "bbox": [float(v) for v in self.bbox],
            "confidence": float(self.confidence),
            "points": self.points,
            "has_embedding": self.embedding is not None,
            "live_score": self.live_score,
        }


class FaceDetector(ABC):
    """
    Abstract base class for face detection models.

    Detectors are initialized once per backend with a FeatureConfig and can
    take a new FeatureConfig later through configure(). detect_frame() adds
    near-duplicate frame caching on top of detect().
    """

    def __init__(self, max_cached_frames: int = 5):
        """
        Initialize the face detector.

        Args:
            max_cached_frames: Consecutive frames a cached result may be reused
        """
        self.max_cached_frames = max_cached_frames
        self.features = FeatureConfig()
        self.backend: Optional[str] = None
        self._ready = False
        self._last_thumb: Optional[np.ndarray] = None
        self._last_result: List[FaceDetection] = []
        self._cached_streak = 0

    @property
    def is_ready(self) -> bool:
        return self._ready

    def initialize(self, features: FeatureConfig, backend: str) -> None:
        """
        Load models for a backend.

        Raises whatever the backend raises on failure; the caller decides
        about fallback.
        """
        self._ready = False
        self.features = features
        self.backend = backend
        self._reset_cache()
        self._load(backend)
        self._ready = True

    def configure(self, features: FeatureConfig) -> None:
        """Swap in a new feature set without re-initializing the backend."""
        self.features = features
        self._reset_cache()

    def detect_frame(self, image: np.ndarray) -> List[FaceDetection]:
        """
        Detect faces in a video frame, reusing the previous result for
        near-identical consecutive frames when cache_sensitivity > 0.
        """
        sensitivity = self.features.cache_sensitivity
        if sensitivity <= 0 or self.max_cached_frames <= 0:
            return self.detect(image)

        thumb = frame_thumbnail(image)
        if (
            self._last_thumb is not None
            and self._last_thumb.shape == thumb.shape
            and self._cached_streak < self.max_cached_frames
        ):
            change = float(np.mean(np.abs(thumb - self._last_thumb)))
            if change < sensitivity / 100.0:
                self._cached_streak += 1
                return list(self._last_result)

        result = self.detect(image)
        self._last_thumb = thumb
        self._last_result = list(result)
        self._cached_streak = 0
        return result

    def _reset_cache(self) -> None:
        self._last_thumb = None
        self._last_result = []
        self._cached_streak = 0

    @abstractmethod
    def _load(self, backend: str) -> None:
        """Load model weights for the given backend."""
        pass

    @abstractmethod
    def detect(self, image: np.ndarray) -> List[FaceDetection]:
        """
        Detect faces in an image.

        Args:
            image: Input image (RGB format, uint8, shape HxWxC)

        Returns:
            List of FaceDetection objects for each detected face
        """
        pass

    def warmup(self) -> None:
        """Run one dummy inference so the first real frame is not slow."""
        dummy = np.zeros((640, 640, 3), dtype=np.uint8)
        self.detect(dummy)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"backend={self.backend}, "
            f"ready={self.is_ready})"
        )
