"""
Synthesis Reveal Configuration
==============================

This module handles configuration loading for the reveal service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    REVEAL_SYNTHESIS_BACKEND -> synthesis.backend
    REVEAL_CONCEPT_MODEL     -> synthesis.concept_model
    REVEAL_IMAGE_MODEL       -> synthesis.image_model
    GEMINI_API_KEY           -> synthesis.api_key
    REVEAL_FRAME_INTERVAL    -> animation.frame_interval_sec
    REVEAL_SEED              -> animation.seed
    REVEAL_JPEG_QUALITY      -> capture.jpeg_quality
    REVEAL_PORT              -> server.port
    REVEAL_LOG_LEVEL         -> logging.level
    PORT                     -> server.port (Cloud Run)

Example:
    from synthesis_reveal.config import settings

    print(settings.synthesis.backend)
    print(settings.animation.total_steps)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="synthesis-reveal", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class CaptureConfig(BaseModel):
    """Capture encoding configuration."""

    jpeg_quality: int = Field(
        default=80,
        ge=1,
        le=100,
        description="JPEG quality of the capture sent for concept extraction",
    )


class StippleConfig(BaseModel):
    """Point cloud ("light capture") configuration."""

    stride: int = Field(default=3, ge=1, description="Sampling grid spacing in pixels")
    exponent: float = Field(
        default=2.5,
        gt=0,
        description="Brightness response exponent for dot probability",
    )
    dot_size: float = Field(default=1.2, gt=0, le=2.0, description="Dot side length in pixels")
    dot_alpha: float = Field(default=0.9, gt=0, le=1.0, description="Dot opacity")
    jitter: float = Field(default=1.0, ge=0, description="Maximum dot offset per axis in pixels")


class AnimationConfig(BaseModel):
    """Noise and denoising animation configuration."""

    grid_resolution: int = Field(
        default=64,
        ge=8,
        le=256,
        description="Working grid side length for noise and denoising",
    )
    display_size: int = Field(
        default=640,
        ge=8,
        description="Synthesis pane side length in pixels",
    )
    frame_interval_sec: float = Field(
        default=1.0 / 60.0,
        ge=0,
        description="Delay between animation frames (display refresh cadence)",
    )
    total_steps: int = Field(
        default=90,
        ge=1,
        description="Denoising steps before the terminal frame",
    )
    seed: Optional[int] = Field(
        default=None,
        description="Seed for the shared random generator (None = entropy)",
    )


class MockSynthesisConfig(BaseModel):
    """Mock synthesis backend configuration."""

    concept: str = Field(default="pale ceramic coffee mug", description="Fixed concept text")
    latency_sec: float = Field(default=1.5, ge=0, description="Simulated latency per call")
    image_size: int = Field(default=256, ge=8, description="Side of generated mock images")
    fail_concept: bool = Field(default=False, description="Inject concept extraction failures")
    fail_image: bool = Field(default=False, description="Inject image generation failures")
    empty_image: bool = Field(default=False, description="Return no image data")


class SynthesisConfig(BaseModel):
    """External inference configuration."""

    backend: str = Field(
        default="mock",
        description="Synthesis backend: 'mock' or 'gemini'",
    )
    api_key: Optional[str] = Field(default=None, description="Gemini API key")
    concept_model: str = Field(
        default="gemini-2.5-flash",
        description="Model used for concept extraction",
    )
    image_model: str = Field(
        default="gemini-2.5-flash-image",
        description="Model used for image generation",
    )
    style_suffix: str = Field(
        default=", full color photography, vivid, detailed",
        description="Appended to the concept to form the image prompt",
    )
    fallback_concept: str = Field(
        default="Unidentified object",
        description="Concept used when extraction returns empty text",
    )
    error_caption: str = Field(
        default="Error: system failed to generate image",
        description="Caption shown when the sequence fails",
    )
    mock: MockSynthesisConfig = Field(default_factory=MockSynthesisConfig)


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")
    state_push_interval_sec: float = Field(
        default=0.25,
        gt=0,
        description="Interval between /ws/state pushes",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the reveal service.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    stipple: StippleConfig = Field(default_factory=StippleConfig)
    animation: AnimationConfig = Field(default_factory=AnimationConfig)
    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    # Build settings object
    settings = Settings.model_validate(config_data)

    return settings


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Synthesis settings
    if env_backend := os.environ.get("REVEAL_SYNTHESIS_BACKEND"):
        config_data.setdefault("synthesis", {})["backend"] = env_backend
    if env_concept_model := os.environ.get("REVEAL_CONCEPT_MODEL"):
        config_data.setdefault("synthesis", {})["concept_model"] = env_concept_model
    if env_image_model := os.environ.get("REVEAL_IMAGE_MODEL"):
        config_data.setdefault("synthesis", {})["image_model"] = env_image_model
    if env_key := os.environ.get("GEMINI_API_KEY"):
        config_data.setdefault("synthesis", {})["api_key"] = env_key

    # Animation settings
    if env_interval := os.environ.get("REVEAL_FRAME_INTERVAL"):
        config_data.setdefault("animation", {})["frame_interval_sec"] = float(env_interval)
    if env_seed := os.environ.get("REVEAL_SEED"):
        config_data.setdefault("animation", {})["seed"] = int(env_seed)

    # Capture settings
    if env_quality := os.environ.get("REVEAL_JPEG_QUALITY"):
        config_data.setdefault("capture", {})["jpeg_quality"] = int(env_quality)

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("REVEAL_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("REVEAL_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
