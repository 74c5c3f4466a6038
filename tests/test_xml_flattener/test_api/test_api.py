"""Tests for the progressive disclosure API."""

import pytest

from xml_flattener import (
    FlattenerConfig,
    XMLFlattener,
    flatten_document,
    flatten_file,
    flatten_json,
    flatten_string,
    load_records,
    records_from_json,
)
from xml_flattener.shared import (
    DocumentLoadError,
    FieldNameCollisionError,
    StructureNotFoundError,
)
from xml_flattener.tree import parse_xml

FLAT_XML = "<r><i><id>1</id></i><i><id>2</id></i></r>"
NESTED_XML = "<r><list><i><id>1</id></i><i><id>2</id></i></list></r>"
ORDERS_JSON = (
    '{"orders": {"order": [{"id": 1, "customer": "A"}, '
    '{"id": 2, "customer": "B"}]}}'
)


class TestLevel1Functions:
    """Test the module-level functions."""

    def test_flatten_string(self):
        """Test flattening XML text with an explicit tag."""
        result = flatten_string(NESTED_XML, "i")

        assert result.node_name == "i"
        assert result.strategy == "tag"
        assert [row.tag for row in result.rows] == ["list_i", "list_i"]
        assert result.to_records().records == [{"id": "1"}, {"id": "2"}]

    def test_flatten_string_inferred(self):
        """Test the repeating node is inferred when no selector is given."""
        result = flatten_string(FLAT_XML)

        assert result.node_name == "i"
        assert result.strategy == "inferred"
        assert result.row_count == 2

    def test_flatten_document_leaves_input_alone(self):
        """Test the source document is not modified."""
        document = parse_xml(NESTED_XML)
        before = document.total_elements

        flatten_document(document, "i")

        assert document.total_elements == before
        assert document.root.children[0].tag == "list"

    def test_flatten_file(self, tmp_path):
        """Test flattening a file from disk."""
        path = tmp_path / "input.xml"
        path.write_text(FLAT_XML)

        result = flatten_file(path)

        assert result.row_count == 2

    def test_flatten_file_missing(self, tmp_path):
        """Test a missing file is a load error."""
        with pytest.raises(DocumentLoadError):
            flatten_file(tmp_path / "missing.xml")

    def test_flatten_invalid_xml(self):
        """Test malformed XML is a load error."""
        with pytest.raises(DocumentLoadError):
            flatten_string("<r><i></r>")

    def test_flatten_json(self):
        """Test a JSON payload is converted and flattened."""
        result = flatten_json(ORDERS_JSON)

        assert result.node_name == "order"
        assert result.to_records().records == [
            {"id": "1", "customer": "A"},
            {"id": "2", "customer": "B"},
        ]

    def test_load_records_from_text(self):
        """Test the cursor starts on the first row."""
        cursor = load_records(FLAT_XML, "i")

        assert cursor.position == 0
        assert cursor.item("id") == "1"
        assert cursor.record_count == 2

    def test_load_records_from_path(self, tmp_path):
        """Test a Path is read as a file."""
        path = tmp_path / "input.xml"
        path.write_text(NESTED_XML)

        cursor = load_records(path, "i")

        assert [record["id"] for record in cursor] == ["1", "2"]

    def test_load_records_from_document(self):
        """Test an already parsed document is accepted."""
        cursor = load_records(parse_xml(FLAT_XML))

        assert cursor.record_count == 2

    def test_load_records_rejects_other_types(self):
        """Test unsupported input types."""
        with pytest.raises(TypeError):
            load_records(42)

    def test_load_records_uses_cursor_config(self):
        """Test the cursor receives the bundle's cursor settings."""
        config = FlattenerConfig().override(cursor__max_read_count=5)

        cursor = load_records(FLAT_XML, config=config)

        assert cursor.config.max_read_count == 5

    def test_records_from_json(self):
        """Test records built straight from a JSON array."""
        cursor = records_from_json('[{"id": 1, "ok": true}, {"id": 2}]')

        assert cursor.records == [{"id": "1", "ok": "true"}, {"id": "2"}]

    def test_records_from_json_with_row_path(self):
        """Test rows selected with an XPath expression."""
        cursor = records_from_json(ORDERS_JSON, row_path="order")

        assert cursor.record_count == 2
        assert cursor.item("customer") == "A"

    def test_no_repeating_node(self):
        """Test a document without structure cannot be flattened."""
        with pytest.raises(StructureNotFoundError):
            flatten_string("<r><a>1</a></r>")


class TestXMLFlattener:
    """Test the configured flattener class."""

    def test_statistics(self):
        """Test runs and rows are counted."""
        flattener = XMLFlattener()

        flattener.flatten(FLAT_XML)
        flattener.records(NESTED_XML, "i")

        stats = flattener.statistics
        assert stats["total_runs"] == 2
        assert stats["failed_runs"] == 0
        assert stats["rows_produced"] == 4
        assert stats["total_processing_time_ms"] >= 0
        assert stats["average_processing_time_ms"] >= 0

    def test_failures_are_counted(self):
        """Test a failing run is counted and re-raised."""
        flattener = XMLFlattener()

        with pytest.raises(StructureNotFoundError):
            flattener.flatten("<r><a>1</a></r>")

        assert flattener.statistics["total_runs"] == 1
        assert flattener.statistics["failed_runs"] == 1

    def test_reset_statistics(self):
        """Test statistics can be cleared."""
        flattener = XMLFlattener(correlation_id="run-1")
        flattener.flatten(FLAT_XML)

        flattener.reset_statistics()

        assert flattener.statistics == {
            "total_runs": 0,
            "failed_runs": 0,
            "rows_produced": 0,
            "total_processing_time_ms": 0.0,
            "average_processing_time_ms": 0.0,
            "correlation_id": "run-1",
        }

    def test_reconfigure(self):
        """Test a new configuration applies to later runs."""
        xml = (
            "<r><currency>USD</currency><i><id>1</id></i>"
            "<currency>USD</currency><i><id>2</id></i></r>"
        )
        flattener = XMLFlattener()
        assert flattener.records(xml, "i").record_count == 2

        flattener.reconfigure(FlattenerConfig.strict())

        with pytest.raises(FieldNameCollisionError):
            flattener.flatten(xml, "i")
        assert flattener.statistics["failed_runs"] == 1
