"""
Core engine components.

Leaf-first: resources (camera + detector worker), timers and scheduler,
overlay store, guidance engine, detection pipeline, session manager.
"""

from .guidance import bin_color, bin_label, find_bin, guide, should_guide
from .overlay_store import OverlayStore
from .pipeline import DetectionPipeline, PipelineState, PipelineStats
from .resources import Capabilities, DeviceResources, ResourceAdapter
from .scheduler import ManualScheduler, TickHandle, TickScheduler
from .session import SessionManager
from .timers import ManualTimerService, ThreadingTimerService, TimerHandle

__all__ = [
    # Guidance
    "bin_color",
    "bin_label",
    "find_bin",
    "guide",
    "should_guide",
    # Overlay
    "OverlayStore",
    # Pipeline
    "DetectionPipeline",
    "PipelineState",
    "PipelineStats",
    # Resources
    "Capabilities",
    "DeviceResources",
    "ResourceAdapter",
    # Scheduling
    "ManualScheduler",
    "ManualTimerService",
    "ThreadingTimerService",
    "TickHandle",
    "TickScheduler",
    "TimerHandle",
    # Session
    "SessionManager",
]
