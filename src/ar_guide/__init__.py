"""
AR Guide

Real-time waste sorting guidance over a live camera feed. Detects waste
items and bins, matches each item to the right bin, and emits overlay
directives for an external renderer.

Package structure:
  core/       - Session manager, detection pipeline, overlay store, guidance
  detectors/  - Detector worker service and backends (null, yolo)
  models/     - Detection, overlay, session and content data models
  content/    - Education and game catalogs
  config/     - Configuration loading and validation
  utils/      - Constants, worker protocol, snapshot output
"""

__version__ = "1.0.0"

from .config import GuideConfig, load_config
from .content import ContentCatalog
from .core import (
    DeviceResources,
    OverlayStore,
    SessionManager,
    ThreadingTimerService,
    TickScheduler,
    guide,
)
from .errors import (
    ARGuideError,
    ContentNotFound,
    DetectorUnavailable,
    DeviceUnavailable,
    PermissionDenied,
    Unsupported,
)

__all__ = [
    # Config
    "GuideConfig",
    "load_config",
    # Content
    "ContentCatalog",
    # Core
    "DeviceResources",
    "OverlayStore",
    "SessionManager",
    "ThreadingTimerService",
    "TickScheduler",
    "guide",
    # Errors
    "ARGuideError",
    "ContentNotFound",
    "DetectorUnavailable",
    "DeviceUnavailable",
    "PermissionDenied",
    "Unsupported",
]
