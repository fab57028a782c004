"""
YOLO detector backend.

Runs an ultralytics model on each frame and maps model class names to
waste categories and bin categories through the detector config:

    detector:
      backend: yolo
      model_file: yolov8n.pt
      confidence_threshold: 0.25
      waste_classes: {bottle: recyclable, banana: biodegradable}
      bin_classes: {recycling_bin: recyclable}
      suggestions: {recyclable: ["Rinse before recycling"]}

Classes in neither map are reported as uncategorized waste items so
the engine can still track them without guiding them.
"""

import logging

import torch
from ultralytics import YOLO

from ..utils.constants import BIN_COLORS, DEFAULT_BIN_COLOR
from .registry import register

logger = logging.getLogger(__name__)


@register("yolo")
class YoloDetector:
    """Ultralytics YOLO, optionally with ByteTrack ids for stable overlay ids."""

    def __init__(self, detector_config: dict):
        self._device = "cuda" if torch.cuda.is_available() else "cpu"
        self._model = YOLO(detector_config["model_file"])
        self._model.to(self._device)

        self._confidence = detector_config.get("confidence_threshold", 0.25)
        self._tracking = detector_config.get("tracking", True)
        self._waste_classes: dict[str, str] = detector_config.get("waste_classes", {})
        self._bin_classes: dict[str, str] = detector_config.get("bin_classes", {})
        self._suggestions: dict[str, list[str]] = detector_config.get("suggestions", {})

        logger.info(f"Model initialized: {detector_config['model_file']}")
        logger.info(f"Device: {self._device}")
        if self._device == "cpu":
            logger.warning("Running on CPU - performance will be slow")

    def detect(self, frame) -> tuple[list[dict], list[dict]]:
        results = self._run_inference(frame)
        boxes = results[0].boxes
        if boxes is None or len(boxes) == 0:
            return [], []

        names = results[0].names
        xyxy = boxes.xyxy.cpu().numpy()
        classes = boxes.cls.int().cpu().tolist()
        confidences = boxes.conf.cpu().tolist()
        track_ids = boxes.id.int().cpu().tolist() if boxes.id is not None else None

        objects, bins = [], []
        for index, (box, class_id, conf) in enumerate(zip(xyxy, classes, confidences)):
            x1, y1, x2, y2 = (float(v) for v in box)
            name = names[class_id]
            ident = str(track_ids[index]) if track_ids else str(index)

            if name in self._bin_classes:
                category = self._bin_classes[name]
                bins.append(
                    {
                        "id": ident,
                        "type": category,
                        "color": BIN_COLORS.get(category, DEFAULT_BIN_COLOR),
                        "position": {"x": (x1 + x2) / 2, "y": (y1 + y2) / 2, "z": 0},
                        "confidence": conf,
                        "capacity": 0,
                        "status": "available",
                    }
                )
                continue

            obj = {
                "id": ident,
                "type": "waste_item",
                "confidence": conf,
                "boundingBox": {"x": x1, "y": y1, "width": x2 - x1, "height": y2 - y1},
                "classification": {"material": name, "subtype": "", "disposal_method": ""},
                "suggestions": [],
            }
            category = self._waste_classes.get(name)
            if category:
                obj["wasteCategory"] = category
                obj["suggestions"] = list(self._suggestions.get(category, []))
            objects.append(obj)

        return objects, bins

    def _run_inference(self, frame):
        """Run YOLO inference with or without tracking."""
        if self._tracking:
            return self._model.track(
                source=frame,
                tracker="bytetrack.yaml",
                conf=self._confidence,
                device=self._device,
                persist=True,
                verbose=False,
            )
        return self._model.predict(
            source=frame,
            conf=self._confidence,
            device=self._device,
            verbose=False,
        )
