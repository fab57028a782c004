"""
Pydantic schemas for configuration validation.

Provides type-safe, declarative validation with clear error messages.
Every section has defaults, so an empty file is a valid config.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.constants import (
    CAMERA_RECONNECT_DELAY,
    DEFAULT_CAMERA_HEIGHT,
    DEFAULT_CAMERA_WIDTH,
    DEFAULT_TICK_HZ,
    DEFAULT_WORKER_QUEUE_SIZE,
    DEFAULT_WORKER_SPAWN_TIMEOUT,
    MAX_CAMERA_RECONNECT_ATTEMPTS,
)

WasteCategory = Literal["biodegradable", "recyclable", "hazardous"]
BinCategory = Literal["biodegradable", "recyclable", "hazardous", "general"]


class StrictModel(BaseModel):
    """Base model that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid")


class CameraConfig(StrictModel):
    """Camera settings. Sources map a facing to a device index, path or URL."""

    sources: dict[Literal["environment", "user"], int | str] = Field(
        default_factory=lambda: {"environment": 0}
    )
    width: int = Field(default=DEFAULT_CAMERA_WIDTH, gt=0)
    height: int = Field(default=DEFAULT_CAMERA_HEIGHT, gt=0)
    reconnect_attempts: int = Field(default=MAX_CAMERA_RECONNECT_ATTEMPTS, ge=0)
    reconnect_delay: float = Field(default=CAMERA_RECONNECT_DELAY, ge=0)


class DetectorConfig(StrictModel):
    """Detector worker settings."""

    backend: Literal["null", "yolo"] = "null"
    model_file: str | None = Field(default=None, description="YOLO model file path (.pt)")
    confidence_threshold: float = Field(default=0.25, ge=0.0, le=1.0)
    tracking: bool = True
    waste_classes: dict[str, WasteCategory] = Field(default_factory=dict)
    bin_classes: dict[str, BinCategory] = Field(default_factory=dict)
    suggestions: dict[WasteCategory, list[str]] = Field(default_factory=dict)
    spawn_timeout: float = Field(default=DEFAULT_WORKER_SPAWN_TIMEOUT, gt=0)
    queue_size: int = Field(default=DEFAULT_WORKER_QUEUE_SIZE, ge=1)

    @field_validator("model_file")
    @classmethod
    def validate_model_file(cls, v: str | None) -> str | None:
        if v is not None and not v.endswith(".pt"):
            raise ValueError("Model file must be .pt format")
        return v

    @model_validator(mode="after")
    def validate_backend(self):
        if self.backend == "yolo" and not self.model_file:
            raise ValueError("model_file is required for the yolo backend")
        overlap = set(self.waste_classes) & set(self.bin_classes)
        if overlap:
            raise ValueError(
                f"Classes mapped as both waste and bin: {', '.join(sorted(overlap))}"
            )
        return self


class PipelineConfig(StrictModel):
    """Detection pipeline settings."""

    tick_hz: float = Field(default=DEFAULT_TICK_HZ, gt=0, le=120)


class RenderConfig(StrictModel):
    """Render target settings. Headless means snapshots are consumed off-device."""

    headless: bool = False


class OutputConfig(StrictModel):
    """Output configuration."""

    snapshot_file: str | None = None
    snapshot_interval: float = Field(default=1.0, gt=0)


class ContentConfig(StrictModel):
    """Content catalog location (built-in catalog when unset)."""

    catalog_file: str | None = None


class GuideConfig(StrictModel):
    """Complete configuration schema."""

    camera: CameraConfig = Field(default_factory=CameraConfig)
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)


def validate_config_pydantic(config: dict) -> GuideConfig:
    """
    Validate configuration using Pydantic.

    Args:
        config: Raw configuration dictionary

    Returns:
        Validated GuideConfig object

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return GuideConfig(**config)
