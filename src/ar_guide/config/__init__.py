"""
Configuration loading and validation.

- load_config: Find, parse, override and validate config.yaml
- validate_config_full: Validation with errors/warnings
- load_config_with_env: Apply environment variable overrides

Pydantic schemas available for type-safe access:
- GuideConfig: Complete configuration schema
"""

from .loader import (
    ConfigValidationError,
    ValidationResult,
    find_config_file,
    load_config,
    load_config_with_env,
    print_validation_result,
    validate_config_full,
)
from .schemas import (
    CameraConfig,
    ContentConfig,
    DetectorConfig,
    GuideConfig,
    OutputConfig,
    PipelineConfig,
    RenderConfig,
    validate_config_pydantic,
)

__all__ = [
    # Pydantic validation
    "CameraConfig",
    "ContentConfig",
    "DetectorConfig",
    "GuideConfig",
    "OutputConfig",
    "PipelineConfig",
    "RenderConfig",
    "validate_config_pydantic",
    # Loading
    "ConfigValidationError",
    "ValidationResult",
    "find_config_file",
    "load_config",
    "load_config_with_env",
    "print_validation_result",
    "validate_config_full",
]
