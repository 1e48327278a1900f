"""
Visage Core - Real-Time Face Identification
===========================================

A small face identification library with:
- Hardware-aware detection fidelity (mesh, iris, rotation, face caps)
- Live detection loop with suspend/resume on a surfaced match
- In-memory enrolled gallery with cosine nearest-neighbour matching
- InsightFace detection and ArcFace descriptors

Example:
    >>> from visage_core import IdentificationPipeline, load_config
    >>> pipeline = IdentificationPipeline(load_config())
    >>> pipeline.importer.import_directory("./faces")
    >>> pipeline.start_camera()
    >>> pipeline.controller.run()
"""

__version__ = "1.0.0"
__author__ = "Visage Project"

from visage_core.config import (
    SystemConfig,
    HardwareConfig,
    DetectorConfig,
    FeatureConfig,
    CameraConfig,
    MatchingConfig,
    LoopConfig,
    load_config,
)

from visage_core.exceptions import (
    VisageError,
    DetectorInitError,
    DetectorNotReadyError,
    CaptureError,
    DetectionError,
)
from visage_core.utils.device import FidelityTier, HardwareProfile, probe_hardware, classify_tier
from visage_core.detection import FaceDetector, FaceDetection, InsightFaceDetector
from visage_core.capture import FrameSource, CameraSource
from visage_core.matching import FaceGallery, SimilarityMatcher, MatchResult, cosine_similarity
from visage_core.pipeline import (
    DetectionLoopController,
    DetectorSession,
    EnrollmentImporter,
    IdentificationPipeline,
    initialize_detector,
    select_features,
)

__all__ = [
    # Version
    "__version__",
    # Config
    "SystemConfig",
    "HardwareConfig",
    "DetectorConfig",
    "FeatureConfig",
    "CameraConfig",
    "MatchingConfig",
    "LoopConfig",
    "load_config",
    # Errors
    "VisageError",
    "DetectorInitError",
    "DetectorNotReadyError",
    "CaptureError",
    "DetectionError",
    # Hardware
    "FidelityTier",
    "HardwareProfile",
    "probe_hardware",
    "classify_tier",
    # Detection
    "FaceDetector",
    "FaceDetection",
    "InsightFaceDetector",
    # Capture
    "FrameSource",
    "CameraSource",
    # Matching
    "FaceGallery",
    "SimilarityMatcher",
    "MatchResult",
    "cosine_similarity",
    # Pipeline
    "DetectionLoopController",
    "DetectorSession",
    "EnrollmentImporter",
    "IdentificationPipeline",
    "initialize_detector",
    "select_features",
]
