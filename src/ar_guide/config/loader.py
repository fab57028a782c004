"""
Configuration loading and validation.

- find_config_file: search standard locations
- load_config_with_env: apply environment variable overrides
- validate_config_full: pydantic validation with errors/warnings
- load_config: all of the above, returning a GuideConfig
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..utils.constants import ENV_CAMERA_SOURCE
from .schemas import GuideConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "config.yaml"


class ConfigValidationError(Exception):
    """Raised when config loading or validation fails."""


# ANSI color codes for terminal output
class Colors:
    GREEN = "\033[92m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    @classmethod
    def disable(cls):
        """Disable colors for non-TTY output."""
        cls.GREEN = cls.RED = cls.YELLOW = cls.CYAN = cls.BOLD = cls.RESET = ""


# Disable colors if not a TTY
if not sys.stdout.isatty():
    Colors.disable()


@dataclass
class ValidationResult:
    """Result of config validation."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    config: GuideConfig | None = None


def find_config_file(config_path: str | None = None) -> Path | None:
    """
    Find config file in standard locations.

    Search order:
    1. Specified path (if provided)
    2. Current directory (config.yaml)
    3. ~/.config/ar-guide/config.yaml

    Returns:
        Path to config file, or None to use built-in defaults

    Raises:
        ConfigValidationError: If a specified path does not exist
    """
    if config_path:
        specified = Path(config_path)
        if not specified.exists():
            raise ConfigValidationError(f"Specified config file not found: {config_path}")
        return specified

    search_paths = [
        Path.cwd() / DEFAULT_CONFIG_NAME,
        Path.home() / ".config" / "ar-guide" / DEFAULT_CONFIG_NAME,
    ]
    for path in search_paths:
        if path.exists():
            logger.info(f"Using config: {path}")
            return path

    logger.info("No config file found, using built-in defaults")
    return None


def load_config_with_env(config: dict) -> dict:
    """
    Apply environment variable overrides to config.

    Args:
        config: Base configuration dictionary

    Returns:
        Configuration with environment variables applied
    """
    if ENV_CAMERA_SOURCE in os.environ:
        logger.info(f"Using camera source from environment: {ENV_CAMERA_SOURCE}")
        camera = config.setdefault("camera", {})
        sources = camera.setdefault("sources", {})
        sources["environment"] = os.environ[ENV_CAMERA_SOURCE]
    return config


def validate_config_full(config: dict) -> ValidationResult:
    """
    Validate a raw config dict.

    Args:
        config: Configuration dictionary to validate

    Returns:
        ValidationResult with errors, warnings and the parsed config
    """
    result = ValidationResult(valid=True)

    try:
        parsed = GuideConfig(**config)
    except ValidationError as e:
        result.valid = False
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"]) or "config"
            result.errors.append(f"{location}: {error['msg']}")
        return result

    result.config = parsed
    _collect_warnings(parsed, result)
    return result


def _collect_warnings(config: GuideConfig, result: ValidationResult) -> None:
    """Non-fatal issues worth surfacing."""
    detector = config.detector
    if detector.model_file and not Path(detector.model_file).exists():
        result.warnings.append(
            f"Model file not found: {detector.model_file} (will be downloaded if valid)"
        )
    if detector.backend == "yolo" and not detector.waste_classes:
        result.warnings.append(
            "detector.waste_classes is empty - no item will receive guidance"
        )
    if "environment" not in config.camera.sources:
        result.warnings.append(
            "No environment-facing camera source - sessions will fall back to another facing"
        )


def load_config(config_path: str | None = None) -> GuideConfig:
    """
    Load, override and validate configuration.

    Args:
        config_path: Explicit config path (None = search standard locations)

    Returns:
        Validated GuideConfig

    Raises:
        ConfigValidationError: If the file cannot be read or is invalid
    """
    config_file = find_config_file(config_path)

    raw: dict[str, Any] = {}
    if config_file is not None:
        try:
            with open(config_file, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML in {config_file}: {e}") from e
        logger.info(f"Configuration loaded from {config_file}")

    raw = load_config_with_env(raw)
    result = validate_config_full(raw)
    if not result.valid:
        raise ConfigValidationError("; ".join(result.errors))

    for warning in result.warnings:
        logger.warning(warning)
    return result.config


def print_validation_result(result: ValidationResult) -> None:
    """Print validation result in Terraform-like format."""
    print()
    print(f"{Colors.BOLD}Configuration Validation{Colors.RESET}")
    print("=" * 60)

    if result.valid:
        print(f"\n{Colors.GREEN}✓ Configuration is valid{Colors.RESET}")
    else:
        print(f"\n{Colors.RED}✗ Configuration has errors{Colors.RESET}")

    if result.errors:
        print(f"\n{Colors.RED}Errors:{Colors.RESET}")
        for error in result.errors:
            print(f"  {Colors.RED}✗{Colors.RESET} {error}")

    if result.warnings:
        print(f"\n{Colors.YELLOW}Warnings:{Colors.RESET}")
        for warning in result.warnings:
            print(f"  {Colors.YELLOW}!{Colors.RESET} {warning}")

    if result.valid and result.config is not None:
        config = result.config
        print(f"\n{Colors.CYAN}Effective Configuration:{Colors.RESET}")
        print(f"  Camera sources: {dict(config.camera.sources)}")
        print(f"  Resolution: {config.camera.width}x{config.camera.height}")
        print(f"  Detector backend: {config.detector.backend}")
        print(f"  Tick rate: {config.pipeline.tick_hz} Hz")

    print()
