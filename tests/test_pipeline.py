"""
Test Identification Pipeline
============================
"""

import numpy as np
import pytest

from visage_core.config import DetectorConfig, HardwareConfig, MatchingConfig, SystemConfig
from visage_core.detection.base import FaceDetection
from visage_core.exceptions import DetectorInitError
from visage_core.pipeline import IdentificationPipeline, ImportStatus, TickOutcome
from visage_core.utils.device import FidelityTier, HardwareProfile

from conftest import StubDetector, StubSource


DESKTOP = HardwareProfile(memory_gb=16, cores=8, platform="linux")
LOW_END_ANDROID = HardwareProfile(memory_gb=3, cores=8, platform="android")


def build(config=None, profile=DESKTOP, faces=None, fail_backends=()):
    detector = StubDetector(faces=faces, fail_backends=fail_backends)
    source = StubSource()
    pipeline = IdentificationPipeline(
        config or SystemConfig(),
        detector=detector,
        source=source,
        profile=profile,
    )
    return pipeline, detector, source


class TestIdentificationPipeline:
    """Tests for IdentificationPipeline wiring."""

    def test_desktop(self):
        pipeline, detector, _ = build()

        assert pipeline.tier == FidelityTier.STANDARD
        assert pipeline.session.backend == "gpu"
        assert detector.features.max_faces == 10

    def test_low_end_android(self):
        """Constrained devices get reduced features and a lower capture ceiling."""
        pipeline, detector, source = build(profile=LOW_END_ANDROID)

        pipeline.start_camera()

        assert pipeline.tier == FidelityTier.CONSTRAINED
        assert detector.features.iris is False
        assert detector.features.max_faces == 1
        assert (source.constraints.width, source.constraints.height) == (1920, 1440)

    def test_hardware_overrides(self):
        """Config overrides feed the profiler when no profile is given."""
        config = SystemConfig(hardware=HardwareConfig(memory_gb=2, platform="iphone"))
        pipeline = IdentificationPipeline(config, detector=StubDetector(), source=StubSource())

        assert pipeline.profile.memory_gb == 2
        assert pipeline.tier == FidelityTier.CONSTRAINED

    def test_performance_mode_from_config(self):
        config = SystemConfig(detector=DetectorConfig(performance_mode=True))
        pipeline, detector, _ = build(config)

        assert detector.features.mesh is False
        assert pipeline.controller.performance_mode is True

    def test_backend_fallback(self):
        pipeline, detector, _ = build(fail_backends={"gpu"})

        assert pipeline.session.backend == "cpu"
        assert detector.load_calls == ["gpu", "cpu"]

    def test_init_failure(self):
        with pytest.raises(DetectorInitError):
            build(fail_backends={"gpu", "cpu"})

    def test_threshold_from_config(self):
        config = SystemConfig(matching=MatchingConfig(similarity_threshold=0.9))
        pipeline, _, _ = build(config)

        assert pipeline.matcher.threshold == 0.9

    def test_enroll_then_identify(self):
        """End to end: enroll alice, see alice, loop suspends."""
        alice = np.array([0.2, 0.9, 0.1, 0.4], dtype=np.float32)
        pipeline, _, _ = build(faces=[FaceDetection(bbox=(10, 10, 30, 30), embedding=alice)])

        report = pipeline.importer.import_batch([("alice.jpg", np.zeros((8, 8, 3), dtype=np.uint8))])
        assert report.status == ImportStatus.COMPLETE

        pipeline.start_camera()

        assert pipeline.controller.tick() == TickOutcome.MATCHED
        assert pipeline.controller.last_match.name == "alice"
        assert pipeline.get_statistics()["state"] == "suspended"
        assert pipeline.get_statistics()["enrolled"] == 1
