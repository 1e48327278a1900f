"""
Shared test doubles
===================
"""

from typing import Callable, List, Optional, Union

import numpy as np
import pytest

from visage_core.capture.camera import FrameSource
from visage_core.config import FeatureConfig
from visage_core.detection.base import FaceDetection, FaceDetector
from visage_core.exceptions import CaptureError
from visage_core.matching.gallery import FaceGallery
from visage_core.matching.matcher import SimilarityMatcher
from visage_core.pipeline.features import DetectorSession
from visage_core.utils.device import FidelityTier


FaceSupplier = Union[List[FaceDetection], Callable[[np.ndarray], List[FaceDetection]]]


class StubDetector(FaceDetector):
    """Detector returning canned faces."""

    def __init__(
        self,
        faces: Optional[FaceSupplier] = None,
        fail_backends=(),
        max_cached_frames: int = 5,
    ):
        super().__init__(max_cached_frames=max_cached_frames)
        self.faces = faces if faces is not None else []
        self.fail_backends = set(fail_backends)
        self.load_calls: List[str] = []
        self.configure_calls: List[FeatureConfig] = []
        self.detect_calls = 0
        self.error: Optional[Exception] = None

    def _load(self, backend: str) -> None:
        self.load_calls.append(backend)
        if backend in self.fail_backends:
            raise RuntimeError(f"{backend} unavailable")

    def configure(self, features: FeatureConfig) -> None:
        self.configure_calls.append(features)
        super().configure(features)

    def detect(self, image: np.ndarray) -> List[FaceDetection]:
        self.detect_calls += 1
        if self.error is not None:
            raise self.error
        if callable(self.faces):
            return self.faces(image)
        return list(self.faces)

    def warmup(self) -> None:
        pass


class StubSource(FrameSource):
    """Frame source serving a fixed frame."""

    def __init__(self, frame: Optional[np.ndarray] = None, fail: bool = False):
        self.frame = frame if frame is not None else np.zeros((100, 100, 3), dtype=np.uint8)
        self.fail = fail
        self.paused = False
        self.opened = False
        self.released = False
        self.constraints = None

    def open(self, constraints) -> None:
        if self.fail:
            raise CaptureError("Permission denied")
        self.constraints = constraints
        self.opened = True

    @property
    def is_ready(self) -> bool:
        return self.opened and not self.released

    def read(self) -> Optional[np.ndarray]:
        return self.frame

    def release(self) -> None:
        self.released = True


class FakeClock:
    """Clock advancing a fixed step per call."""

    def __init__(self, step: float = 0.02):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


def make_session(detector: FaceDetector, tier: FidelityTier = FidelityTier.STANDARD) -> DetectorSession:
    features = FeatureConfig()
    detector.initialize(features, "cpu")
    return DetectorSession(detector=detector, backend="cpu", features=features, tier=tier)


@pytest.fixture
def gallery():
    return FaceGallery()


@pytest.fixture
def detector():
    return StubDetector()


@pytest.fixture
def session(detector):
    return make_session(detector)


@pytest.fixture
def matcher(gallery, session):
    return SimilarityMatcher(gallery, session=session)
