"""
Exception hierarchy for the AR guidance engine.

Only session start operations surface these to callers. Transient
conditions (no frame yet, stale or duplicate detector replies) are
absorbed by the pipeline and never raised.
"""


class ARGuideError(Exception):
    """Base class for all AR guidance errors."""


class Unsupported(ARGuideError):
    """Device lacks a capability required to run a session."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(
            f"AR features not supported on this device (missing: {', '.join(self.missing)})"
        )


class PermissionDenied(ARGuideError):
    """Camera access was declined."""


class DeviceUnavailable(ARGuideError):
    """No camera could be found or opened."""


class DetectorUnavailable(ARGuideError):
    """The detector worker could not be spawned."""


class ContentNotFound(ARGuideError, KeyError):
    """Requested education content or game mode is not in the catalog."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class MalformedMessage(ARGuideError, ValueError):
    """A detector payload did not match the expected shape."""
