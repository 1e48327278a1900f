"""
Pipeline Module
===============

Feature selection, the detection loop, enrollment, and the composed
identification pipeline.
"""

from visage_core.pipeline.features import (
    CONSTRAINED_FEATURES,
    STANDARD_FEATURES,
    DetectorSession,
    initialize_detector,
    select_features,
)
from visage_core.pipeline.loop import (
    DetectionLoopController,
    FaceAnnotation,
    FrameReport,
    LoopState,
    MatchEvent,
    TickOutcome,
)
from visage_core.pipeline.enrollment import (
    EnrollmentImporter,
    ImportReport,
    ImportStatus,
    derive_name,
)
from visage_core.pipeline.identification import IdentificationPipeline

__all__ = [
    "CONSTRAINED_FEATURES",
    "STANDARD_FEATURES",
    "DetectorSession",
    "initialize_detector",
    "select_features",
    "DetectionLoopController",
    "FaceAnnotation",
    "FrameReport",
    "LoopState",
    "MatchEvent",
    "TickOutcome",
    "EnrollmentImporter",
    "ImportReport",
    "ImportStatus",
    "derive_name",
    "IdentificationPipeline",
]
