"""
Configuration Tests
===================

Tests for YAML loading, environment overrides and validation.
"""

import pytest


ENV_VARS = (
    "REVEAL_SYNTHESIS_BACKEND",
    "REVEAL_CONCEPT_MODEL",
    "REVEAL_IMAGE_MODEL",
    "GEMINI_API_KEY",
    "REVEAL_FRAME_INTERVAL",
    "REVEAL_SEED",
    "REVEAL_JPEG_QUALITY",
    "REVEAL_PORT",
    "REVEAL_LOG_LEVEL",
    "PORT",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every environment override."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLoadConfig:
    """Tests for load_config precedence."""

    def test_defaults(self, clean_env, tmp_path):
        """Verify defaults when no file and no env vars exist."""
        from synthesis_reveal.config import load_config

        settings = load_config(str(tmp_path / "missing.yaml"))

        assert settings.synthesis.backend == "mock"
        assert settings.synthesis.concept_model == "gemini-2.5-flash"
        assert settings.synthesis.image_model == "gemini-2.5-flash-image"
        assert settings.synthesis.fallback_concept == "Unidentified object"
        assert settings.synthesis.error_caption == "Error: system failed to generate image"
        assert settings.capture.jpeg_quality == 80
        assert settings.stipple.stride == 3
        assert settings.stipple.exponent == 2.5
        assert settings.animation.total_steps == 90
        assert settings.animation.grid_resolution == 64
        assert settings.animation.display_size == 640
        assert settings.animation.seed is None

    def test_yaml_overrides_defaults(self, clean_env, tmp_path):
        """Verify YAML values replace defaults."""
        from synthesis_reveal.config import load_config

        path = tmp_path / "config.yaml"
        path.write_text(
            "synthesis:\n"
            "  backend: gemini\n"
            "  mock:\n"
            "    latency_sec: 0.0\n"
            "animation:\n"
            "  total_steps: 30\n"
            "  seed: 11\n"
        )

        settings = load_config(str(path))

        assert settings.synthesis.backend == "gemini"
        assert settings.synthesis.mock.latency_sec == 0.0
        assert settings.animation.total_steps == 30
        assert settings.animation.seed == 11

    def test_env_overrides_yaml(self, clean_env, tmp_path):
        """Verify environment variables beat YAML values."""
        from synthesis_reveal.config import load_config

        path = tmp_path / "config.yaml"
        path.write_text(
            "synthesis:\n"
            "  backend: gemini\n"
            "capture:\n"
            "  jpeg_quality: 60\n"
        )
        clean_env.setenv("REVEAL_SYNTHESIS_BACKEND", "mock")
        clean_env.setenv("REVEAL_JPEG_QUALITY", "90")
        clean_env.setenv("GEMINI_API_KEY", "test-key")
        clean_env.setenv("REVEAL_SEED", "42")

        settings = load_config(str(path))

        assert settings.synthesis.backend == "mock"
        assert settings.synthesis.api_key == "test-key"
        assert settings.capture.jpeg_quality == 90
        assert settings.animation.seed == 42

    def test_cloud_run_port_wins(self, clean_env, tmp_path):
        """Verify PORT takes precedence over REVEAL_PORT."""
        from synthesis_reveal.config import load_config

        clean_env.setenv("REVEAL_PORT", "9000")
        clean_env.setenv("PORT", "8080")

        settings = load_config(str(tmp_path / "missing.yaml"))
        assert settings.server.port == 8080

    def test_invalid_values_rejected(self, clean_env, tmp_path):
        """Verify out of range values fail validation."""
        from pydantic import ValidationError

        from synthesis_reveal.config import load_config

        path = tmp_path / "config.yaml"
        path.write_text("capture:\n  jpeg_quality: 0\n")

        with pytest.raises(ValidationError):
            load_config(str(path))

    def test_empty_yaml(self, clean_env, tmp_path):
        """Verify an empty file is treated as no overrides."""
        from synthesis_reveal.config import load_config

        path = tmp_path / "config.yaml"
        path.write_text("")

        settings = load_config(str(path))
        assert settings.app.name == "synthesis-reveal"
