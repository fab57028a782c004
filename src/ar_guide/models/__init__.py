"""
Consolidated data models for the AR guidance engine.

This package contains all core data structures used across the application.
"""

from .content import ARStep, EducationContent, GameMode, GameScoring
from .detection import (
    UNCATEGORIZED,
    BoundingBox,
    Classification,
    DetectedBin,
    DetectedObject,
    Position3D,
    TrackingSnapshot,
)
from .overlay import (
    AnimationKeyframe,
    ARAnimation,
    KeyframeProperties,
    OverlayDirective,
    OverlayElement,
    OverlayStyle,
    Point,
    RenderSnapshot,
    SuggestionPopup,
)
from .session import SESSION_MODES, ARSession, CameraDescriptor

__all__ = [
    # Detection
    "UNCATEGORIZED",
    "BoundingBox",
    "Classification",
    "DetectedBin",
    "DetectedObject",
    "Position3D",
    "TrackingSnapshot",
    # Overlay
    "ARAnimation",
    "AnimationKeyframe",
    "KeyframeProperties",
    "OverlayDirective",
    "OverlayElement",
    "OverlayStyle",
    "Point",
    "RenderSnapshot",
    "SuggestionPopup",
    # Session
    "SESSION_MODES",
    "ARSession",
    "CameraDescriptor",
    # Content
    "ARStep",
    "EducationContent",
    "GameMode",
    "GameScoring",
]
