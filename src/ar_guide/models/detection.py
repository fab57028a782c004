"""
Detection data models - what the detector reports each cycle.

Objects and bins are immutable once parsed. Each detection cycle
produces a fresh list that supersedes the previous one; nothing here
is ever merged across cycles.
"""

from dataclasses import dataclass
from typing import Any, Literal

from ..errors import MalformedMessage

ObjectKind = Literal["waste_item", "bin", "hand", "surface"]
BinStatus = Literal["available", "full", "contaminated"]

WASTE_CATEGORIES = ("biodegradable", "recyclable", "hazardous")
BIN_CATEGORIES = WASTE_CATEGORIES + ("general",)
OBJECT_KINDS = ("waste_item", "bin", "hand", "surface")
BIN_STATUSES = ("available", "full", "contaminated")

# Explicit variant for items the detector could not categorize
UNCATEGORIZED = "uncategorized"


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in frame pixel space."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass(frozen=True)
class Position3D:
    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class Classification:
    """Optional detail attached to a detected object."""

    material: str
    subtype: str = ""
    disposal_method: str = ""


@dataclass(frozen=True)
class DetectedObject:
    """
    A single object found in a frame.

    Attributes:
        id: Detector-assigned identifier
        kind: waste_item, bin, hand or surface
        waste_category: biodegradable/recyclable/hazardous, or UNCATEGORIZED
        confidence: Detector confidence in [0, 1]
        bbox: Bounding box in frame pixels
        classification: Optional material detail
        suggestions: Free-form disposal suggestions
    """

    id: str
    kind: str
    confidence: float
    bbox: BoundingBox
    waste_category: str = UNCATEGORIZED
    classification: Classification | None = None
    suggestions: tuple[str, ...] = ()

    @property
    def is_categorized(self) -> bool:
        return self.waste_category != UNCATEGORIZED

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DetectedObject":
        """
        Parse a detector payload entry.

        Accepts both the worker's camelCase keys (wasteCategory,
        boundingBox) and snake_case equivalents.

        Raises:
            MalformedMessage: If required fields are missing or invalid
        """
        if not isinstance(data, dict):
            raise MalformedMessage(f"Detected object must be an object, got {type(data).__name__}")
        try:
            kind = data.get("type", data.get("kind"))
            if kind not in OBJECT_KINDS:
                raise MalformedMessage(f"Unknown object kind: {kind!r}")

            box = data.get("boundingBox", data.get("bbox"))
            bbox = BoundingBox(
                x=float(box["x"]),
                y=float(box["y"]),
                width=float(box["width"]),
                height=float(box["height"]),
            )

            category = data.get("wasteCategory", data.get("waste_category"))
            if category not in WASTE_CATEGORIES:
                category = UNCATEGORIZED

            classification = None
            detail = data.get("classification")
            if detail and not isinstance(detail, dict):
                raise MalformedMessage(f"Invalid classification: {detail!r}")
            if detail:
                classification = Classification(
                    material=str(detail.get("material", "")),
                    subtype=str(detail.get("subtype", "")),
                    disposal_method=str(detail.get("disposal_method", "")),
                )

            return cls(
                id=str(data["id"]),
                kind=kind,
                confidence=_confidence(data["confidence"]),
                bbox=bbox,
                waste_category=category,
                classification=classification,
                suggestions=tuple(str(s) for s in data.get("suggestions") or ()),
            )
        except MalformedMessage:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise MalformedMessage(f"Invalid detected object: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "type": self.kind,
            "confidence": self.confidence,
            "boundingBox": {
                "x": self.bbox.x,
                "y": self.bbox.y,
                "width": self.bbox.width,
                "height": self.bbox.height,
            },
            "suggestions": list(self.suggestions),
        }
        if self.is_categorized:
            data["wasteCategory"] = self.waste_category
        if self.classification:
            data["classification"] = {
                "material": self.classification.material,
                "subtype": self.classification.subtype,
                "disposal_method": self.classification.disposal_method,
            }
        return data


@dataclass(frozen=True)
class DetectedBin:
    """
    A disposal bin found in a frame.

    The category is reported by the detector under "type" in the
    worker payload.
    """

    id: str
    category: str
    position: Position3D
    confidence: float = 1.0
    color: str = ""
    capacity: float = 0.0
    status: str = "available"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DetectedBin":
        """
        Parse a detector payload entry.

        Raises:
            MalformedMessage: If required fields are missing or invalid
        """
        if not isinstance(data, dict):
            raise MalformedMessage(f"Detected bin must be an object, got {type(data).__name__}")
        try:
            category = data.get("type", data.get("category"))
            if not isinstance(category, str) or not category:
                raise MalformedMessage(f"Invalid bin category: {category!r}")

            status = data.get("status", "available")
            if status not in BIN_STATUSES:
                raise MalformedMessage(f"Invalid bin status: {status!r}")

            pos = data.get("position") or {}
            if not isinstance(pos, dict):
                raise MalformedMessage(f"Invalid bin position: {pos!r}")
            return cls(
                id=str(data["id"]),
                category=category,
                position=Position3D(
                    x=float(pos.get("x", 0)),
                    y=float(pos.get("y", 0)),
                    z=float(pos.get("z", 0)),
                ),
                confidence=_confidence(data.get("confidence", 1.0)),
                color=str(data.get("color", "")),
                capacity=float(data.get("capacity", 0)),
                status=status,
            )
        except MalformedMessage:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise MalformedMessage(f"Invalid detected bin: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.category,
            "color": self.color,
            "position": {
                "x": self.position.x,
                "y": self.position.y,
                "z": self.position.z,
            },
            "confidence": self.confidence,
            "capacity": self.capacity,
            "status": self.status,
        }


@dataclass(frozen=True)
class TrackingSnapshot:
    """Latest detection results for a session. Replaced, never merged."""

    objects: tuple[DetectedObject, ...] = ()
    bins: tuple[DetectedBin, ...] = ()
    accuracy: float = 0.0


def _confidence(value: Any) -> float:
    conf = float(value)
    if not 0.0 <= conf <= 1.0:
        raise MalformedMessage(f"Confidence out of range: {conf}")
    return conf
