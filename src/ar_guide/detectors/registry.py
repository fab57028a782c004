"""
Detector Backend Registry - maps backend names to detector classes.

Registry is populated by backend modules. The active backend is built
from the detector config inside the worker process.
"""

import logging

logger = logging.getLogger(__name__)

# Registry: backend name -> detector class
BACKEND_REGISTRY: dict[str, type] = {}


def register(name: str):
    """Decorator to register a detector class under a backend name."""

    def decorator(cls):
        BACKEND_REGISTRY[name] = cls
        return cls

    return decorator


def build_backend(detector_config: dict):
    """
    Instantiate the backend named in detector_config["backend"].

    Args:
        detector_config: Detector section of the config, as a dict

    Returns:
        Configured detector instance

    Raises:
        ValueError: If no backend is registered under that name
    """
    # Import backends to populate registry (decorators register on import).
    # yolo is imported only when asked for so the null backend never pulls in torch.
    from . import null  # noqa: F401

    name = detector_config.get("backend", "null")
    if name == "yolo":
        from . import yolo  # noqa: F401

    if name not in BACKEND_REGISTRY:
        raise ValueError(f"No detector backend registered as: {name}")

    backend_class = BACKEND_REGISTRY[name]
    backend = backend_class(detector_config)
    logger.info(f"Detector backend: {backend_class.__name__} -> {name}")
    return backend
