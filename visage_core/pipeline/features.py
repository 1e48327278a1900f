"""
Pipeline Configuration Selector
===============================

Maps a fidelity tier and the performance-mode switch to a detection feature
set, and brings a detector up with one backend fallback.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

from visage_core.config import FeatureConfig
from visage_core.detection.base import FaceDetector
from visage_core.exceptions import DetectorInitError
from visage_core.utils.device import FidelityTier


logger = logging.getLogger(__name__)

STANDARD_FEATURES = FeatureConfig(
    mesh=True,
    iris=True,
    rotation=True,
    description=True,
    antispoof=True,
    liveness=True,
    max_faces=10,
    cache_sensitivity=0.0,
)

CONSTRAINED_FEATURES = STANDARD_FEATURES.model_copy(update={
    "iris": False,
    "rotation": False,
    "max_faces": 1,
    "cache_sensitivity": 0.7,
})


def select_features(tier: FidelityTier, performance_mode: bool = False) -> FeatureConfig:
    """
    Choose which sub-detectors run.

    Args:
        tier: Device fidelity tier
        performance_mode: Disable mesh, iris, and rotation for throughput

    Returns:
        A new FeatureConfig
    """
    if tier == FidelityTier.CONSTRAINED:
        features = CONSTRAINED_FEATURES
    else:
        features = STANDARD_FEATURES

    if performance_mode:
        features = features.model_copy(update={
            "mesh": False,
            "iris": False,
            "rotation": False,
        })

    return features


@dataclass
class DetectorSession:
    """
    Result of detector initialization.

    Owned by the loop controller and handed to the matcher and importer.

    Attributes:
        detector: The initialized detector
        backend: Backend the detector is running on
        features: Feature set currently applied
        tier: Fidelity tier the features were selected for
        ready: Whether the detector can be used
    """
    detector: FaceDetector
    backend: str
    features: FeatureConfig
    tier: FidelityTier = FidelityTier.STANDARD
    ready: bool = True


def initialize_detector(
    detector: FaceDetector,
    features: FeatureConfig,
    backend: str = "gpu",
    fallback_backend: str = "cpu",
    tier: FidelityTier = FidelityTier.STANDARD,
    warmup: bool = True,
) -> DetectorSession:
    """
    Initialize a detector, retrying once on the fallback backend.

    Args:
        detector: Detector to initialize
        features: Feature set to apply
        backend: Primary backend
        fallback_backend: Backend for the single retry
        tier: Tier the features came from
        warmup: Run a dummy inference after loading

    Returns:
        A ready DetectorSession

    Raises:
        DetectorInitError: If both backends fail
    """
    try:
        logger.info(f"Initializing detector with backend: {backend}")
        _bring_up(detector, features, backend, warmup)
        active = backend
    except Exception as first_error:
        logger.error(
            f"Detector init failed on {backend}, falling back to {fallback_backend}: {first_error}"
        )
        try:
            _bring_up(detector, features, fallback_backend, warmup)
        except Exception as e:
            raise DetectorInitError(
                f"Detector failed on {backend} and {fallback_backend}: {e}"
            ) from e
        active = fallback_backend
        logger.info("Detector fallback initialized successfully")
    else:
        logger.info("Detector initialized successfully")

    return DetectorSession(
        detector=detector,
        backend=active,
        features=features,
        tier=tier,
        ready=True,
    )


def _bring_up(detector: FaceDetector, features: FeatureConfig, backend: str, warmup: bool) -> None:
    detector.initialize(features, backend)
    if warmup:
        detector.warmup()
