"""
Test Configuration Module
=========================
"""

import pytest
import tempfile
from pathlib import Path

from pydantic import ValidationError

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


class TestDetectorConfig:
    """Tests for DetectorConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        config = DetectorConfig()

        assert config.pack_name == "buffalo_l"
        assert config.backend == "gpu"
        assert config.fallback_backend == "cpu"
        assert config.det_size == (640, 640)
        assert config.performance_mode is False

    def test_validation(self):
        """Test validation constraints."""
        # Confidence threshold must be 0-1
        with pytest.raises(ValueError):
            DetectorConfig(confidence_threshold=1.5)


class TestFeatureConfig:
    """Tests for FeatureConfig."""

    def test_default_values(self):
        """Everything is on by default."""
        config = FeatureConfig()

        assert config.mesh and config.iris and config.rotation
        assert config.description
        assert config.max_faces == 10
        assert config.cache_sensitivity == 0.0

    def test_immutable(self):
        """Feature sets are swapped whole, never edited."""
        config = FeatureConfig()

        with pytest.raises(ValidationError):
            config.iris = False

    def test_max_faces_positive(self):
        """At least one face must be allowed."""
        with pytest.raises(ValueError):
            FeatureConfig(max_faces=0)


class TestHardwareConfig:
    """Tests for HardwareConfig."""

    def test_memory_override_must_be_positive(self):
        """A zero memory override is rejected rather than read as unknown."""
        with pytest.raises(ValueError):
            HardwareConfig(memory_gb=0)

        assert HardwareConfig(memory_gb=3).memory_gb == 3
        assert HardwareConfig().memory_gb is None


class TestCameraConfig:
    """Tests for CameraConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        config = CameraConfig()

        assert (config.ideal_width, config.ideal_height) == (1920, 1920)
        assert (config.low_memory_width, config.low_memory_height) == (1920, 1440)
        assert config.facing_mode == "user"
        assert config.mirror is True


class TestMatchingConfig:
    """Tests for MatchingConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        config = MatchingConfig()

        assert config.similarity_threshold == 0.5
        assert config.crop_padding == 0.5


class TestSystemConfig:
    """Tests for SystemConfig."""

    def test_default_values(self):
        """Test default system configuration."""
        config = SystemConfig()

        assert config.project_name == "Visage"
        assert config.log_level == "INFO"
        assert config.hardware.low_memory_threshold_gb == 4.0
        assert config.loop == LoopConfig()

    def test_debug_forces_debug_logging(self):
        """Debug mode logs at DEBUG."""
        config = SystemConfig(debug=True, log_level="WARNING")

        assert config.log_level == "DEBUG"

    def test_nested_configs(self):
        """Test that nested configs are properly initialized."""
        config = SystemConfig(
            detector=DetectorConfig(pack_name="buffalo_s"),
            matching=MatchingConfig(similarity_threshold=0.6),
        )

        assert config.detector.pack_name == "buffalo_s"
        assert config.matching.similarity_threshold == 0.6

    def test_env_override(self, monkeypatch):
        """Nested values can be set from the environment."""
        monkeypatch.setenv("VISAGE_MATCHING__SIMILARITY_THRESHOLD", "0.7")
        monkeypatch.setenv("VISAGE_DETECTOR__BACKEND", "cpu")

        config = SystemConfig()

        assert config.matching.similarity_threshold == 0.7
        assert config.detector.backend == "cpu"

    def test_yaml_save_load(self):
        """Test YAML serialization."""
        config = SystemConfig(
            detector=DetectorConfig(det_size=(320, 320), backend="cpu"),
            camera=CameraConfig(index=2, mirror=False),
        )

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.yaml"

            config.save_yaml(path)
            assert path.exists()

            loaded = load_config(str(path))
            assert loaded.detector.det_size == (320, 320)
            assert loaded.detector.backend == "cpu"
            assert loaded.camera.index == 2
            assert loaded.camera.mirror is False


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_missing_file(self):
        """Test loading non-existent file."""
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/config.yaml")

    def test_load_valid_yaml(self):
        """Test loading valid YAML configuration."""
        yaml_content = """
project_name: Lobby
hardware:
  memory_gb: 3
  platform: android
detector:
  pack_name: buffalo_sc
  fallback_backend: cpu
matching:
  similarity_threshold: 0.55
"""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "test_config.yaml"
            path.write_text(yaml_content)

            config = load_config(str(path))

            assert config.project_name == "Lobby"
            assert config.hardware.memory_gb == 3
            assert config.hardware.platform == "android"
            assert config.detector.pack_name == "buffalo_sc"
            assert config.matching.similarity_threshold == 0.55

    def test_env_config_path(self, monkeypatch, tmp_path):
        """VISAGE_CONFIG_PATH points load_config at a file."""
        path = tmp_path / "env.yaml"
        path.write_text("project_name: FromEnv\n")
        monkeypatch.setenv("VISAGE_CONFIG_PATH", str(path))

        assert load_config().project_name == "FromEnv"

    def test_defaults_without_file(self, monkeypatch):
        """No path and no env var gives defaults."""
        monkeypatch.delenv("VISAGE_CONFIG_PATH", raising=False)

        assert load_config().project_name == "Visage"
