"""
Device Utilities
================

Hardware profiling, fidelity tiers, camera constraints, and inference
backend resolution.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple
import logging
import os
import re
import sys

import psutil

from visage_core.config import CameraConfig


logger = logging.getLogger(__name__)

DEFAULT_MEMORY_GB = 8.0
DEFAULT_CORES = 4
LOW_MEMORY_THRESHOLD_GB = 4.0
COMPACT_VIEWPORT_WIDTH = 768

_ANDROID_PATTERN = re.compile(r"android", re.IGNORECASE)
_IOS_PATTERN = re.compile(r"iphone|ipad|ipod|\bios\b", re.IGNORECASE)

# Inference backends and their onnxruntime execution providers
BACKEND_PROVIDERS = {
    "gpu": ["CUDAExecutionProvider", "CPUExecutionProvider"],
    "cpu": ["CPUExecutionProvider"],
}


class FidelityTier(str, Enum):
    """Coarse device capability class."""
    CONSTRAINED = "constrained"
    STANDARD = "standard"


@dataclass(frozen=True)
class HardwareProfile:
    """
    Snapshot of the device signals used to choose detection fidelity.

    Attributes:
        memory_gb: Approximate device memory in GB
        cores: Logical core count
        platform: Platform string (sys.platform or a user agent)
        viewport: Optional display size (width, height)
    """
    memory_gb: float = DEFAULT_MEMORY_GB
    cores: int = DEFAULT_CORES
    platform: str = ""
    viewport: Optional[Tuple[int, int]] = None

    @property
    def is_android(self) -> bool:
        return bool(_ANDROID_PATTERN.search(self.platform))

    @property
    def is_ios(self) -> bool:
        return bool(_IOS_PATTERN.search(self.platform))

    @property
    def is_mobile(self) -> bool:
        return self.is_android or self.is_ios


@dataclass(frozen=True)
class CameraConstraints:
    """Requested capture resolution and facing for a device class."""
    width: int
    height: int
    facing_mode: str = "user"


def _probe_memory_gb() -> float:
    """Total physical memory rounded down to whole GB."""
    try:
        total = psutil.virtual_memory().total
    except (OSError, RuntimeError) as e:
        logger.debug(f"Memory probe failed: {e}")
        return DEFAULT_MEMORY_GB
    if not total:
        return DEFAULT_MEMORY_GB
    return float(int(total / (1024 ** 3)))


def probe_hardware(
    memory_gb: Optional[float] = None,
    cores: Optional[int] = None,
    platform: Optional[str] = None,
    viewport: Optional[Tuple[int, int]] = None,
) -> HardwareProfile:
    """
    Read the device signals, best-effort.

    Explicit arguments win over probed values. Missing signals fall back to
    8 GB memory and 4 cores.

    Args:
        memory_gb: Memory override (GB)
        cores: Core count override
        platform: Platform override
        viewport: Display size (width, height)

    Returns:
        HardwareProfile
    """
    if memory_gb is None:
        memory_gb = _probe_memory_gb()
    if not memory_gb:
        memory_gb = DEFAULT_MEMORY_GB

    if cores is None:
        cores = os.cpu_count()
    if not cores:
        cores = DEFAULT_CORES

    if platform is None:
        platform = sys.platform

    profile = HardwareProfile(
        memory_gb=float(memory_gb),
        cores=int(cores),
        platform=platform,
        viewport=viewport,
    )

    logger.info(
        f"Hardware: Memory={profile.memory_gb:g}GB, Cores={profile.cores}, "
        f"Android={profile.is_android}, iOS={profile.is_ios}, "
        f"PC={not profile.is_mobile}"
    )
    return profile


def classify_tier(
    profile: HardwareProfile,
    low_memory_threshold_gb: float = LOW_MEMORY_THRESHOLD_GB,
) -> FidelityTier:
    """Mobile devices below the memory threshold are constrained."""
    if profile.is_mobile and profile.memory_gb < low_memory_threshold_gb:
        return FidelityTier.CONSTRAINED
    return FidelityTier.STANDARD


def camera_constraints(
    profile: HardwareProfile,
    config: Optional[CameraConfig] = None,
    low_memory_threshold_gb: float = 5.0,
) -> CameraConstraints:
    """
    Capture constraints for a device.

    Low-memory Android devices get a lower resolution ceiling to avoid
    capture failures.
    """
    config = config or CameraConfig()

    if profile.is_android and profile.memory_gb < low_memory_threshold_gb:
        logger.info("Low memory Android detected, limiting resolution")
        return CameraConstraints(
            width=config.low_memory_width,
            height=config.low_memory_height,
            facing_mode=config.facing_mode,
        )

    return CameraConstraints(
        width=config.ideal_width,
        height=config.ideal_height,
        facing_mode=config.facing_mode,
    )


def is_compact_viewport(profile: HardwareProfile) -> bool:
    """True for phone-sized displays."""
    if profile.viewport is None:
        return False
    return profile.viewport[0] < COMPACT_VIEWPORT_WIDTH


def gpu_available() -> bool:
    """Check if onnxruntime can run on CUDA."""
    try:
        import onnxruntime as ort
    except ImportError:
        return False
    return "CUDAExecutionProvider" in ort.get_available_providers()


def resolve_providers(backend: str) -> List[str]:
    """
    Map a backend identifier to onnxruntime execution providers.

    Args:
        backend: Backend identifier (gpu, cpu)

    Returns:
        Ordered provider list
    """
    backend = backend.lower()
    if backend not in BACKEND_PROVIDERS:
        raise ValueError(f"Unknown backend: {backend}")
    return list(BACKEND_PROVIDERS[backend])
