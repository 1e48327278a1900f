"""
Identification Pipeline
=======================

Wires hardware profiling, detector initialization, the gallery, the matcher,
enrollment, and the detection loop together from a SystemConfig.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional
import logging

from visage_core.capture.camera import CameraSource, FrameSource
from visage_core.config import SystemConfig, load_config
from visage_core.detection.base import FaceDetector
from visage_core.detection.insightface_detector import InsightFaceDetector
from visage_core.matching.gallery import FaceGallery
from visage_core.matching.matcher import SimilarityMatcher
from visage_core.pipeline.enrollment import EnrollmentImporter
from visage_core.pipeline.features import initialize_detector, select_features
from visage_core.pipeline.loop import DetectionLoopController, FrameReport, MatchEvent
from visage_core.utils.device import (
    HardwareProfile,
    camera_constraints,
    classify_tier,
    probe_hardware,
)


logger = logging.getLogger(__name__)


class IdentificationPipeline:
    """
    Complete live identification pipeline.

    Example:
        >>> pipeline = IdentificationPipeline(load_config())
        >>> pipeline.importer.import_directory("./faces")
        >>> pipeline.start_camera()
        >>> pipeline.controller.run()
    """

    def __init__(
        self,
        config: SystemConfig,
        detector: Optional[FaceDetector] = None,
        source: Optional[FrameSource] = None,
        profile: Optional[HardwareProfile] = None,
        on_frame: Optional[Callable[[FrameReport], None]] = None,
        on_match: Optional[Callable[[MatchEvent], None]] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: System configuration
            detector: Face detector (InsightFace from config if None)
            source: Frame source (OpenCV camera from config if None)
            profile: Hardware profile (probed if None)
            on_frame: Frame report callback
            on_match: Match event callback

        Raises:
            DetectorInitError: If the detector fails on both backends
        """
        self.config = config

        hw = config.hardware
        self.profile = profile or probe_hardware(
            memory_gb=hw.memory_gb,
            cores=hw.cores,
            platform=hw.platform,
        )
        self.tier = classify_tier(self.profile, hw.low_memory_threshold_gb)
        features = select_features(self.tier, config.detector.performance_mode)
        logger.info(f"Fidelity tier: {self.tier.value}")

        self.session = initialize_detector(
            detector or self._create_detector(),
            features,
            backend=config.detector.backend,
            fallback_backend=config.detector.fallback_backend,
            tier=self.tier,
        )

        self.gallery = FaceGallery()
        self.matcher = SimilarityMatcher(
            self.gallery,
            session=self.session,
            threshold=config.matching.similarity_threshold,
        )
        self.importer = EnrollmentImporter(self.session, self.gallery)
        self.controller = DetectionLoopController(
            self.session,
            self.matcher,
            source or CameraSource(index=config.camera.index),
            config=config,
            on_frame=on_frame,
            on_match=on_match,
        )

    @classmethod
    def from_config(cls, config_path: str, **kwargs: Any) -> "IdentificationPipeline":
        """Create pipeline from configuration file."""
        return cls(load_config(config_path), **kwargs)

    def _create_detector(self) -> FaceDetector:
        """Create face detector from config."""
        return InsightFaceDetector(
            pack_name=self.config.detector.pack_name,
            pack_root=self.config.detector.pack_root,
            det_size=self.config.detector.det_size,
            confidence_threshold=self.config.detector.confidence_threshold,
            max_cached_frames=self.config.loop.max_cached_frames,
        )

    def start_camera(self) -> None:
        """Open the camera with constraints for this device."""
        constraints = camera_constraints(
            self.profile,
            self.config.camera,
            low_memory_threshold_gb=self.config.hardware.camera_low_memory_threshold_gb,
        )
        self.controller.start(constraints)

    def get_statistics(self) -> Dict[str, Any]:
        """Get pipeline statistics."""
        return {
            "tier": self.tier.value,
            "backend": self.session.backend,
            "performance_mode": self.controller.performance_mode,
            "enrolled": len(self.gallery),
            "state": self.controller.state.value,
            "fps": self.controller.fps,
            "frames_processed": self.controller.frames_processed,
            "failed_frames": self.controller.failed_frames,
        }

    def __repr__(self) -> str:
        return (
            f"IdentificationPipeline(tier={self.tier.value}, "
            f"backend={self.session.backend}, enrolled={len(self.gallery)})"
        )
