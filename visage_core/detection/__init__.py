"""
Detection Module
================

Face detection with optional mesh, iris, and embedding sub-detectors.
"""

from visage_core.detection.base import FaceDetector, FaceDetection
from visage_core.detection.insightface_detector import InsightFaceDetector, required_modules

__all__ = [
    "FaceDetector",
    "FaceDetection",
    "InsightFaceDetector",
    "required_modules",
]
