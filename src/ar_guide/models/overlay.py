"""
Overlay data models - directives handed to the external renderer.

The engine never draws. It produces OverlayElements and ARAnimations,
and the renderer consumes RenderSnapshots of whatever is currently
active in the overlay store.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

OverlayKind = Literal["arrow", "label", "animation", "tutorial", "feedback"]
AnimationType = Literal["highlight", "path", "celebration", "warning"]


@dataclass(frozen=True)
class Point:
    """Screen position."""

    x: float
    y: float


@dataclass(frozen=True)
class OverlayStyle:
    color: str
    size: float
    opacity: float
    animation: str | None = None


@dataclass(frozen=True)
class OverlayElement:
    """
    A single overlay directive.

    Attributes:
        id: Unique within the store; re-inserting an id replaces it
        kind: arrow, label, animation, tutorial or feedback
        position: Screen position
        content: Text or glyph to show
        style: Color, size, opacity and optional animation tag
        ttl_ms: Lifetime in milliseconds (None = until removed)
        target_object: Optional id of the object this element points at
    """

    id: str
    kind: str
    position: Point
    content: str
    style: OverlayStyle
    ttl_ms: int | None = None
    target_object: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SuggestionPopup:
    """Disposal suggestions for an item, shown by an external collaborator."""

    item_id: str
    suggestions: tuple[str, ...]


# A guidance directive is either an element for the store or a popup
OverlayDirective = OverlayElement | SuggestionPopup


@dataclass(frozen=True)
class KeyframeProperties:
    """Closed set of animatable properties. Unset fields are left alone."""

    x: float | None = None
    y: float | None = None
    scale: float | None = None
    opacity: float | None = None
    rotation: float | None = None
    color: str | None = None


@dataclass(frozen=True)
class AnimationKeyframe:
    time: float
    properties: KeyframeProperties = field(default_factory=KeyframeProperties)


@dataclass(frozen=True)
class ARAnimation:
    """Descriptive animation payload. Keyframes are not interpreted here."""

    id: str
    type: str
    target: str
    keyframes: tuple[AnimationKeyframe, ...] = ()
    duration: float = 0.0
    loop: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RenderSnapshot:
    """Everything the renderer needs for one frame, in insertion order."""

    elements: tuple[OverlayElement, ...] = ()
    animations: tuple[ARAnimation, ...] = ()

    def element_ids(self) -> list[str]:
        return [e.id for e in self.elements]

    def get(self, element_id: str) -> OverlayElement | None:
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "elements": [e.to_dict() for e in self.elements],
            "animations": [a.to_dict() for a in self.animations],
        }
