"""
Tests for guidance matching (item -> bin directives)
"""

import unittest

from ar_guide.core.guidance import bin_color, bin_label, find_bin, guide, should_guide
from ar_guide.models import (
    UNCATEGORIZED,
    BoundingBox,
    Classification,
    DetectedBin,
    DetectedObject,
    OverlayElement,
    Position3D,
    SuggestionPopup,
)


def make_item(
    category=UNCATEGORIZED,
    confidence=0.9,
    kind="waste_item",
    item_id="i1",
    suggestions=(),
    material=None,
):
    return DetectedObject(
        id=item_id,
        kind=kind,
        confidence=confidence,
        bbox=BoundingBox(x=100, y=100, width=50, height=50),
        waste_category=category,
        classification=Classification(material=material) if material else None,
        suggestions=tuple(suggestions),
    )


def make_bin(category, bin_id="b1", x=400.0, y=300.0):
    return DetectedBin(id=bin_id, category=category, position=Position3D(x, y))


class TestGuide(unittest.TestCase):
    """Test guide() directive generation."""

    def test_matching_bin_gets_arrow_and_label(self):
        """Recyclable item with a recyclable bin in view -> arrow to that bin + label."""
        item = make_item("recyclable")
        bins = [make_bin("biodegradable", "b1"), make_bin("recyclable", "b2")]

        directives = guide(item, bins)

        self.assertEqual(len(directives), 2)
        arrow, label = directives
        self.assertEqual(arrow.id, "arrow-i1-b2")
        self.assertEqual(arrow.kind, "arrow")
        self.assertEqual(arrow.target_object, "b2")
        self.assertEqual(arrow.ttl_ms, 3000)
        self.assertEqual(arrow.style.color, "#3b82f6")
        self.assertEqual((arrow.position.x, arrow.position.y), (125, 125))

        self.assertEqual(label.id, "info-i1")
        self.assertEqual(label.kind, "label")
        self.assertEqual(label.content, "Item → recyclable")
        self.assertEqual(label.ttl_ms, 3000)
        self.assertEqual((label.position.x, label.position.y), (100, 70))

    def test_no_matching_bin_gives_single_warning(self):
        """Recyclable item with only a hazardous bin -> one warning, no arrow."""
        item = make_item("recyclable")

        directives = guide(item, [make_bin("hazardous")])

        self.assertEqual(len(directives), 1)
        warning = directives[0]
        self.assertEqual(warning.id, "warning-i1")
        self.assertEqual(warning.kind, "feedback")
        self.assertEqual(warning.content, "No appropriate bin detected")
        self.assertEqual(warning.ttl_ms, 2000)
        self.assertEqual((warning.position.x, warning.position.y), (100, 100))

    def test_no_bins_at_all_gives_warning(self):
        directives = guide(make_item("hazardous"), [])
        self.assertEqual([d.id for d in directives], ["warning-i1"])

    def test_uncategorized_item_gets_nothing(self):
        directives = guide(make_item(UNCATEGORIZED), [make_bin("recyclable")])
        self.assertEqual(directives, [])

    def test_material_used_in_label(self):
        item = make_item("recyclable", material="plastic")
        directives = guide(item, [make_bin("recyclable")])
        self.assertEqual(directives[1].content, "plastic → recyclable")

    def test_suggestions_produce_popup(self):
        item = make_item("recyclable", suggestions=["Rinse it", "Remove the cap"])

        directives = guide(item, [make_bin("recyclable")])

        self.assertEqual(len(directives), 3)
        popup = directives[2]
        self.assertIsInstance(popup, SuggestionPopup)
        self.assertEqual(popup.item_id, "i1")
        self.assertEqual(popup.suggestions, ("Rinse it", "Remove the cap"))

    def test_no_popup_when_no_matching_bin(self):
        item = make_item("recyclable", suggestions=["Rinse it"])
        directives = guide(item, [make_bin("hazardous")])
        self.assertTrue(all(isinstance(d, OverlayElement) for d in directives))

    def test_first_match_not_nearest(self):
        """Two bins of the same category: the first one listed wins."""
        item = make_item("biodegradable")
        far = make_bin("biodegradable", "far", x=5000, y=5000)
        near = make_bin("biodegradable", "near", x=120, y=120)

        self.assertIs(find_bin(item, [far, near]), far)
        self.assertEqual(guide(item, [far, near])[0].id, "arrow-i1-far")


class TestShouldGuide(unittest.TestCase):
    """Test the confidence gate."""

    def test_threshold_is_exclusive(self):
        self.assertFalse(should_guide(make_item("recyclable", confidence=0.70)))
        self.assertTrue(should_guide(make_item("recyclable", confidence=0.71)))

    def test_low_confidence_rejected(self):
        self.assertFalse(should_guide(make_item("recyclable", confidence=0.5)))

    def test_only_waste_items(self):
        self.assertFalse(should_guide(make_item("recyclable", kind="hand")))
        self.assertFalse(should_guide(make_item("recyclable", kind="surface")))


class TestBinColor(unittest.TestCase):
    """Test category -> color mapping."""

    def test_known_categories(self):
        self.assertEqual(bin_color("biodegradable"), "#4ade80")
        self.assertEqual(bin_color("recyclable"), "#3b82f6")
        self.assertEqual(bin_color("hazardous"), "#ef4444")

    def test_unknown_category_is_gray(self):
        self.assertEqual(bin_color("general"), "#6b7280")
        self.assertEqual(bin_color("compost"), "#6b7280")
        self.assertEqual(bin_color(""), "#6b7280")


class TestBinLabel(unittest.TestCase):
    def test_label_fields(self):
        label = bin_label(make_bin("hazardous", "b9", x=10, y=20))

        self.assertEqual(label.id, "bin-b9")
        self.assertEqual(label.kind, "label")
        self.assertEqual(label.content, "HAZARDOUS")
        self.assertEqual(label.style.color, "#ef4444")
        self.assertIsNone(label.ttl_ms)
        self.assertEqual((label.position.x, label.position.y), (10, 20))


if __name__ == "__main__":
    unittest.main()
