"""Tests for lifting repeating nodes to the document root."""

import pytest

from xml_flattener.flatten.promoter import NodePromoter, PromotionStats
from xml_flattener.tree import parse_xml


def fields(element):
    return {child.tag: child.text for child in element.children}


class TestNodePromoter:
    """Test level-by-level promotion."""

    def test_single_level_promotion(self):
        """Test the target is renamed and pulls in its parent's scalars."""
        document = parse_xml(
            "<catalog><store><city>Oslo</city><book><title>T</title></book></store></catalog>"
        )
        book = document.root.find("book")
        stats = PromotionStats()

        promoted = NodePromoter().promote(document, book, stats)

        assert promoted.tag == "store_book"
        assert promoted.parent is document.root
        assert fields(promoted) == {"title": "T", "city": "Oslo"}
        # the emptied parent is removed
        assert [child.tag for child in document.root.children] == ["store_book"]
        assert stats.steps == 1

    def test_multi_level_promotion(self):
        """Test names accumulate the vertical separator level by level."""
        document = parse_xml(
            "<r><region><name>N</name><shop><id>9</id>"
            "<item><p>1</p></item></shop></region></r>"
        )
        item = document.root.find("item")
        stats = PromotionStats()

        promoted = NodePromoter().promote(document, item, stats)

        assert promoted.tag == "region_shop_item"
        assert fields(promoted) == {"p": "1", "id": "9", "name": "N"}
        assert stats.steps == 2

    def test_parent_kept_for_pending_instances(self):
        """Test a parent survives until its last instance is lifted."""
        document = parse_xml(
            "<r><order><no>1</no><line><sku>a</sku></line>"
            "<line><sku>b</sku></line></order></r>"
        )
        first, second = document.root.find_all("line")
        promoter = NodePromoter()

        promoter.promote(document, first)

        order = document.root.find_child("order")
        assert order is not None
        # the order number was pushed into the pending line as well
        assert fields(second) == {"sku": "b", "no": "1"}

        promoter.promote(document, second)

        assert document.root.find_child("order") is None
        assert [fields(row) for row in document.root.children] == [
            {"sku": "a", "no": "1"},
            {"sku": "b", "no": "1"},
        ]

    def test_unrelated_structures_are_collapsed(self):
        """Test structured siblings of the target become prefixed leaves."""
        document = parse_xml(
            "<r><order><ship><city>X</city></ship><line><sku>a</sku></line></order></r>"
        )
        line = document.root.find("line")

        promoted = NodePromoter().promote(document, line)

        assert fields(promoted) == {"sku": "a", "ship-city": "X"}

    def test_grandparent_context_reaches_every_row(self):
        """Test nested context next to the parent is flattened and shared."""
        document = parse_xml(
            "<root><region><meta><code>N</code></meta><shop>"
            "<item><p>1</p></item><item><p>2</p></item>"
            "</shop></region></root>"
        )
        promoter = NodePromoter()

        for item in document.root.find_all("item"):
            promoter.promote(document, item)

        rows = document.root.children
        assert [row.tag for row in rows] == ["region_shop_item", "region_shop_item"]
        assert [fields(row) for row in rows] == [
            {"p": "1", "meta-code": "N"},
            {"p": "2", "meta-code": "N"},
        ]

    def test_pending_instances_in_other_branches_survive(self):
        """Test collapsing context never swallows a pending instance."""
        document = parse_xml(
            "<root><r><a><t><v>1</v></t></a><b><t><v>2</v></t></b></r></root>"
        )
        first, second = document.root.find_all("t")
        promoter = NodePromoter()

        promoter.promote(document, first)
        assert document.contains(second)
        promoter.promote(document, second)

        assert [row.tag for row in document.root.children] == ["r_a_t", "r_b_t"]
        assert [fields(row) for row in document.root.children] == [{"v": "1"}, {"v": "2"}]

    def test_other_repeating_groups_wait_for_the_parent(self):
        """Test a second group next to the targets is not collapsed into one row."""
        document = parse_xml(
            "<root><grp><k>K</k><a><v>1</v></a><a><v>2</v></a>"
            "<b><w>9</w></b><b><w>8</w></b></grp></root>"
        )
        first, second = document.root.find_all("a")
        promoter = NodePromoter()

        promoted = promoter.promote(document, first)

        assert fields(promoted) == {"v": "1", "k": "K"}
        grp = document.root.find_child("grp")
        assert [child.tag for child in grp.children] == ["a", "b", "b"]

        promoter.promote(document, second)

        assert fields(document.root.children[1]) == {"v": "2", "k": "K"}
        # the parent is kept while it still holds the other group
        assert [child.tag for child in grp.children] == ["b", "b"]
        assert grp.parent is document.root

    def test_parent_text_reaches_every_target(self):
        """Test text of a parent is copied into each of its targets."""
        document = parse_xml(
            "<root><g>label<item><v>1</v></item><item><v>2</v></item></g></root>"
        )
        promoter = NodePromoter()

        for item in document.root.find_all("item"):
            promoter.promote(document, item)

        assert [fields(row) for row in document.root.children] == [
            {"v": "1", "g": "label"},
            {"v": "2", "g": "label"},
        ]

    def test_carried_context_keeps_the_target_field(self):
        """Test a leftover duplicate never replaces the target's own field."""
        document = parse_xml(
            "<r><o><n>1</n><n>2</n><i><n>own</n></i></o></r>"
        )

        promoted = NodePromoter().promote(document, document.root.find("i"))

        assert promoted.find_child("n").text == "own"
        assert fields(promoted)["o-n"] == "2"

    def test_attributes_and_text_move_with_the_target(self):
        """Test the renamed element keeps the target's attributes."""
        document = parse_xml('<r><g><i id="7"><v>1</v></i></g></r>')

        promoted = NodePromoter().promote(document, document.root.find("i"))

        assert promoted.get_attribute("id") == "7"

    def test_child_of_root_is_unchanged(self):
        """Test a target already under the root is returned as is."""
        document = parse_xml("<r><i><v>1</v></i></r>")
        item = document.root.children[0]

        assert NodePromoter().promote(document, item) is item

    def test_invalid_targets(self):
        """Test the root and foreign nodes are refused."""
        document = parse_xml("<r><i><v>1</v></i></r>")
        other = parse_xml("<x><y/></x>")

        with pytest.raises(ValueError, match="root cannot be promoted"):
            NodePromoter().promote(document, document.root)
        with pytest.raises(ValueError, match="not part of this document"):
            NodePromoter().promote(document, other.root.children[0])
