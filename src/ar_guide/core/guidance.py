"""
Guidance Engine - map a detected waste item to overlay directives.

Pure functions only: no store, no session, no clock. Given an item and
the bins currently in view, produce the arrow/label/popup that point
the item at the right bin, or a warning when no suitable bin is seen.

Bin selection is first-match in detection order, not nearest-by-distance.
"""

from ..models import (
    DetectedBin,
    DetectedObject,
    OverlayDirective,
    OverlayElement,
    OverlayStyle,
    Point,
    SuggestionPopup,
)
from ..utils.constants import (
    BIN_COLORS,
    DEFAULT_BIN_COLOR,
    GUIDANCE_CONFIDENCE_THRESHOLD,
    GUIDANCE_TTL_MS,
    LABEL_COLOR,
    NO_BIN_MESSAGE,
    WARNING_COLOR,
    WARNING_TTL_MS,
)


def bin_color(category: str) -> str:
    """Overlay color for a bin category; unknown categories are gray."""
    return BIN_COLORS.get(category, DEFAULT_BIN_COLOR)


def should_guide(item: DetectedObject) -> bool:
    """Only confident waste items get guidance."""
    return item.kind == "waste_item" and item.confidence > GUIDANCE_CONFIDENCE_THRESHOLD


def find_bin(item: DetectedObject, known_bins: list[DetectedBin]) -> DetectedBin | None:
    """First bin whose category matches the item's waste category."""
    for candidate in known_bins:
        if candidate.category == item.waste_category:
            return candidate
    return None


def guide(item: DetectedObject, known_bins: list[DetectedBin]) -> list[OverlayDirective]:
    """
    Build guidance directives for one item.

    Args:
        item: Detected object (uncategorized items produce nothing)
        known_bins: Bins from the latest detection cycle, in detector order

    Returns:
        [arrow, label] plus a SuggestionPopup when the item carries
        suggestions, or [warning] when no bin of the item's category
        is in view.
    """
    if not item.is_categorized:
        return []

    target = find_bin(item, known_bins)
    if target is None:
        return [_warning(item)]

    directives: list[OverlayDirective] = [_arrow(item, target), _info_label(item)]
    if item.suggestions:
        directives.append(SuggestionPopup(item_id=item.id, suggestions=item.suggestions))
    return directives


def bin_label(detected_bin: DetectedBin) -> OverlayElement:
    """Persistent label marking a bin; same id every cycle so it is overwritten."""
    return OverlayElement(
        id=f"bin-{detected_bin.id}",
        kind="label",
        position=Point(detected_bin.position.x, detected_bin.position.y),
        content=detected_bin.category.upper(),
        style=OverlayStyle(color=bin_color(detected_bin.category), size=16, opacity=0.8),
    )


def _arrow(item: DetectedObject, target: DetectedBin) -> OverlayElement:
    cx, cy = item.bbox.center
    return OverlayElement(
        id=f"arrow-{item.id}-{target.id}",
        kind="arrow",
        position=Point(cx, cy),
        content="→",
        style=OverlayStyle(
            color=bin_color(target.category), size=24, opacity=0.8, animation="pulse"
        ),
        ttl_ms=GUIDANCE_TTL_MS,
        target_object=target.id,
    )


def _info_label(item: DetectedObject) -> OverlayElement:
    material = item.classification.material if item.classification else ""
    return OverlayElement(
        id=f"info-{item.id}",
        kind="label",
        position=Point(item.bbox.x, item.bbox.y - 30),
        content=f"{material or 'Item'} → {item.waste_category}",
        style=OverlayStyle(color=LABEL_COLOR, size=14, opacity=0.9),
        ttl_ms=GUIDANCE_TTL_MS,
    )


def _warning(item: DetectedObject) -> OverlayElement:
    return OverlayElement(
        id=f"warning-{item.id}",
        kind="feedback",
        position=Point(item.bbox.x, item.bbox.y),
        content=NO_BIN_MESSAGE,
        style=OverlayStyle(color=WARNING_COLOR, size=14, opacity=0.9),
        ttl_ms=WARNING_TTL_MS,
    )
