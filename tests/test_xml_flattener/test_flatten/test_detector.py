"""Tests for repeating node detection."""

import pytest

from xml_flattener.flatten.detector import (
    STRATEGY_INFERRED,
    STRATEGY_QUERY,
    STRATEGY_TAG,
    FrequencyTable,
    RepeatedNodeDetector,
    collect_frequencies,
    select_candidate,
)
from xml_flattener.shared import FlattenConfig, StructureNotFoundError
from xml_flattener.tree import parse_xml
from xml_flattener.tree.nodes import XMLDocument


class TestCollectFrequencies:
    """Test the collection pass."""

    def test_counts_structured_elements_by_depth(self):
        """Test only elements with children are counted, root excluded."""
        document = parse_xml(
            "<root><a><b><c>1</c></b></a><a><b><c>2</c></b></a><leaf>x</leaf></root>"
        )

        table = collect_frequencies(document)

        assert table.keys == (("a", 1), ("b", 2))
        assert table.count("a", 1) == 2
        assert table.count("b", 2) == 2
        assert table.count("leaf", 1) == 0
        assert table.count("root", 0) == 0

    def test_same_tag_at_different_depths(self):
        """Test a tag is counted separately per depth."""
        document = parse_xml("<r><n><n><v>1</v></n></n></r>")

        table = collect_frequencies(document)

        assert table.to_list() == [
            {"tag": "n", "depth": 1, "count": 1},
            {"tag": "n", "depth": 2, "count": 1},
        ]

    def test_empty_document(self):
        """Test a document without root gives an empty table."""
        assert len(collect_frequencies(XMLDocument())) == 0


class TestSelectCandidate:
    """Test the selection pass."""

    def test_highest_count_wins(self):
        """Test the most frequent key is chosen."""
        table = FrequencyTable(
            counts={("a", 1): 1, ("b", 2): 3},
            keys=(("a", 1), ("b", 2)),
        )

        assert select_candidate(table) == ("b", 2, 3)

    def test_tie_goes_to_deeper_key(self):
        """Test equally frequent candidates resolve to the larger depth."""
        document = parse_xml(
            "<root>"
            "<outer><inner><v>1</v></inner></outer>"
            "<outer><inner><v>2</v></inner></outer>"
            "</root>"
        )

        assert select_candidate(collect_frequencies(document)) == ("inner", 2, 2)

    def test_tie_at_same_depth_goes_to_first_seen(self):
        """Test remaining ties keep document order."""
        document = parse_xml("<root><a><v>1</v></a><b><v>2</v></b></root>")

        assert select_candidate(collect_frequencies(document)) == ("a", 1, 1)

    def test_empty_table(self):
        """Test no candidate for an empty table."""
        assert select_candidate(FrequencyTable()) is None


class TestRepeatedNodeDetector:
    """Test detection strategies."""

    def test_query_strategy(self):
        """Test an XPath selector is used first."""
        document = parse_xml("<r><g><i><v>1</v></i></g><i><v>2</v></i></r>")

        result = RepeatedNodeDetector().detect(document, "g/i")

        assert result.strategy == STRATEGY_QUERY
        assert result.node_name == "i"
        assert len(result.nodes) == 1
        assert result.frequencies is None

    def test_tag_strategy_matches_anywhere(self):
        """Test a bare tag falls back to a name match anywhere in the tree."""
        document = parse_xml("<r><g><i><v>1</v></i></g><h><i><v>2</v></i></h></r>")

        result = RepeatedNodeDetector().detect(document, "i")

        # "i" as XPath only sees direct children of the root
        assert result.strategy == STRATEGY_TAG
        assert [n.find_child("v").text for n in result.nodes] == ["1", "2"]

    def test_inference_when_selector_missing(self):
        """Test the deeper of two equally frequent candidates is inferred."""
        document = parse_xml(
            "<root>"
            "<outer><inner><v>1</v></inner></outer>"
            "<outer><inner><v>2</v></inner></outer>"
            "</root>"
        )

        result = RepeatedNodeDetector().detect(document)

        assert result.strategy == STRATEGY_INFERRED
        assert result.node_name == "inner"
        assert len(result.nodes) == 2
        assert result.frequencies.count("outer", 1) == 2

    def test_unmatched_selector_falls_back_to_inference(self):
        """Test selectors matching nothing use inference."""
        document = parse_xml("<r><i><v>1</v></i><i><v>2</v></i></r>")

        result = RepeatedNodeDetector().detect(document, "missing")

        assert result.strategy == STRATEGY_INFERRED
        assert result.node_name == "i"

    def test_invalid_xpath_is_treated_as_tag(self):
        """Test an uncompilable expression falls through without failing."""
        document = parse_xml("<r><i><v>1</v></i></r>")

        result = RepeatedNodeDetector().detect(document, "i[")

        assert result.strategy == STRATEGY_INFERRED
        assert result.node_name == "i"

    def test_root_is_never_selected(self):
        """Test a query matching the root is ignored."""
        document = parse_xml("<r><i><v>1</v></i></r>")

        result = RepeatedNodeDetector().detect(document, "/r")

        assert result.node_name == "i"

    def test_no_structure_raises(self):
        """Test a document of leaves has no repeating node."""
        document = parse_xml("<r><a>1</a><b>2</b></r>")

        with pytest.raises(StructureNotFoundError) as exc_info:
            RepeatedNodeDetector().detect(document)

        assert exc_info.value.candidates == []

    def test_min_repeat_count(self):
        """Test single occurrences are refused when repetition is required."""
        document = parse_xml("<r><a><v>1</v></a></r>")
        detector = RepeatedNodeDetector(FlattenConfig(min_repeat_count=2))

        with pytest.raises(StructureNotFoundError) as exc_info:
            detector.detect(document)

        assert exc_info.value.candidates == ["a@1"]

    def test_document_without_root(self):
        """Test an empty document cannot be searched."""
        with pytest.raises(StructureNotFoundError, match="no root element"):
            RepeatedNodeDetector().detect(XMLDocument(), "i")
