"""
Utility Module
==============

Common utilities for the Visage face identification system.
"""

from visage_core.utils.image_utils import (
    load_image,
    is_image_file,
    crop_face,
    rotate_image,
    unrotate_points,
    frame_thumbnail,
    sharpness_score,
    draw_annotations,
)
from visage_core.utils.device import (
    FidelityTier,
    HardwareProfile,
    CameraConstraints,
    probe_hardware,
    classify_tier,
    camera_constraints,
    is_compact_viewport,
    gpu_available,
    resolve_providers,
)

__all__ = [
    "load_image",
    "is_image_file",
    "crop_face",
    "rotate_image",
    "unrotate_points",
    "frame_thumbnail",
    "sharpness_score",
    "draw_annotations",
    "FidelityTier",
    "HardwareProfile",
    "CameraConstraints",
    "probe_hardware",
    "classify_tier",
    "camera_constraints",
    "is_compact_viewport",
    "gpu_available",
    "resolve_providers",
]
