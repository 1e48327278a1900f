"""
Configuration Management Module
===============================

Centralized configuration for the Visage face identification system.
Supports YAML files, environment variables, and programmatic configuration.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Dict, Any, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# Configuration Classes (Pydantic Models)
# =============================================================================

class HardwareConfig(BaseModel):
    """Hardware profiling overrides and thresholds."""

    memory_gb: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Override detected device memory (GB)"
    )
    cores: Optional[int] = Field(
        default=None,
        ge=1,
        description="Override detected logical core count"
    )
    platform: Optional[str] = Field(
        default=None,
        description="Override detected platform string (e.g. android, ios, linux)"
    )
    low_memory_threshold_gb: float = Field(
        default=4.0,
        gt=0.0,
        description="Mobile devices below this memory get the constrained tier"
    )
    camera_low_memory_threshold_gb: float = Field(
        default=5.0,
        gt=0.0,
        description="Android devices below this memory get a lower capture ceiling"
    )


class DetectorConfig(BaseModel):
    """Face detector configuration."""

    pack_name: str = Field(
        default="buffalo_l",
        description="InsightFace model pack name"
    )
    pack_root: Optional[str] = Field(
        default=None,
        description="Directory holding InsightFace model packs"
    )
    backend: str = Field(
        default="gpu",
        description="Primary inference backend (gpu, cpu)"
    )
    fallback_backend: str = Field(
        default="cpu",
        description="Backend tried once if the primary fails to initialize"
    )
    det_size: Tuple[int, int] = Field(
        default=(640, 640),
        description="Detector input size (width, height)"
    )
    confidence_threshold: float = Field(
        default=0.5,
        ge=0.0, le=1.0,
        description="Minimum confidence for face detection"
    )
    performance_mode: bool = Field(
        default=False,
        description="Trade accuracy for throughput (mesh/iris/rotation off)"
    )


class FeatureConfig(BaseModel):
    """
    Which optional sub-detectors run, and their quality parameters.

    Immutable: a new value is selected for every tier or performance mode
    change and swapped in whole.
    """

    model_config = ConfigDict(frozen=True)

    mesh: bool = Field(default=True, description="Dense face mesh points")
    iris: bool = Field(default=True, description="Eye/iris refinement points")
    rotation: bool = Field(default=True, description="Rotation correction")
    description: bool = Field(default=True, description="Identity embedding")
    antispoof: bool = Field(default=True, description="Anti-spoofing check")
    liveness: bool = Field(default=True, description="Liveness check")
    max_faces: int = Field(
        default=10,
        ge=1,
        description="Maximum simultaneous faces"
    )
    cache_sensitivity: float = Field(
        default=0.0,
        ge=0.0, le=1.0,
        description="Frame-skip sensitivity; 0 disables result caching"
    )


class CameraConfig(BaseModel):
    """Camera capture configuration."""

    index: int = Field(
        default=0,
        ge=0,
        description="OpenCV camera index"
    )
    ideal_width: int = Field(default=1920, ge=1)
    ideal_height: int = Field(default=1920, ge=1)
    low_memory_width: int = Field(default=1920, ge=1)
    low_memory_height: int = Field(default=1440, ge=1)
    facing_mode: str = Field(
        default="user",
        description="Preferred camera facing (user, environment)"
    )
    mirror: bool = Field(
        default=True,
        description="Present frames and live crops mirrored"
    )


class MatchingConfig(BaseModel):
    """Identity matching configuration."""

    similarity_threshold: float = Field(
        default=0.5,
        ge=-1.0, le=1.0,
        description="Similarity must exceed this value for a match"
    )
    crop_padding: float = Field(
        default=0.5,
        ge=0.0,
        description="Padding around a matched face crop (fraction of box size)"
    )


class LoopConfig(BaseModel):
    """Detection loop configuration."""

    tick_interval: float = Field(
        default=0.0,
        ge=0.0,
        description="Seconds to sleep between loop ticks"
    )
    max_cached_frames: int = Field(
        default=5,
        ge=0,
        description="Consecutive frames a cached detection result may be reused"
    )


# =============================================================================
# Master System Configuration
# =============================================================================

class SystemConfig(BaseSettings):
    """Master system configuration combining all modules."""

    model_config = SettingsConfigDict(
        env_prefix="VISAGE_",
        env_nested_delimiter="__",
    )

    # Project metadata
    project_name: str = Field(default="Visage")
    version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Sub-configurations
    hardware: HardwareConfig = Field(default_factory=HardwareConfig)
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    camera: CameraConfig = Field(default_factory=CameraConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    loop: LoopConfig = Field(default_factory=LoopConfig)

    def model_post_init(self, __context: Any) -> None:
        """Debug mode always logs at DEBUG."""
        if self.debug:
            self.log_level = "DEBUG"

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()

    def save_yaml(self, path: str | Path) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json")
        with open(path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False, indent=2, sort_keys=False)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "SystemConfig":
        """Load configuration from YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)


# =============================================================================
# Utility Functions
# =============================================================================

def load_config(path: Optional[str | Path] = None) -> SystemConfig:
    """
    Load system configuration from file or environment.

    Args:
        path: Path to YAML configuration file.
              If None, checks VISAGE_CONFIG_PATH env var, then uses defaults.

    Returns:
        SystemConfig instance

    Example:
        >>> config = load_config("configs/default.yaml")
        >>> config = load_config()  # Uses env var or defaults
    """
    if path is not None:
        return SystemConfig.from_yaml(path)

    env_path = os.environ.get("VISAGE_CONFIG_PATH")
    if env_path and Path(env_path).exists():
        return SystemConfig.from_yaml(env_path)

    return SystemConfig()


def create_default_config(path: str | Path = "configs/default.yaml") -> SystemConfig:
    """Create and save a default configuration file."""
    config = SystemConfig()
    config.save_yaml(path)
    return config
