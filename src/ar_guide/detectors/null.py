"""
Null detector - reports empty scenes.

Useful for exercising the camera/worker plumbing without a model.
"""

from .registry import register


@register("null")
class NullDetector:
    def __init__(self, detector_config: dict):
        self.config = detector_config

    def detect(self, frame) -> tuple[list[dict], list[dict]]:
        return [], []
