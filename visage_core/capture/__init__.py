"""
Capture Module
==============

Webcam frame sources.
"""

from visage_core.capture.camera import FrameSource, CameraSource, list_available_cameras

__all__ = [
    "FrameSource",
    "CameraSource",
    "list_available_cameras",
]
