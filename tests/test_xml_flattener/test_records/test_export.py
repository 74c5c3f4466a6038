"""Tests for record export helpers."""

import json

import pytest

from xml_flattener.records import (
    RecordCursor,
    records_to_csv,
    records_to_dataframe,
    records_to_json,
)

RECORDS = [
    {"id": 1, "name": "Widget, large"},
    {"id": 2, "price": "9.99"},
]


@pytest.fixture
def cursor():
    return RecordCursor.from_records(RECORDS)


class TestJSONExport:
    """Test JSON output."""

    def test_plain_array(self, cursor):
        """Test output without a root is an array of string-valued objects."""
        data = json.loads(records_to_json(cursor))

        assert data == [
            {"id": "1", "name": "Widget, large"},
            {"id": "2", "price": "9.99"},
        ]

    def test_wrapped_with_count(self, cursor):
        """Test the root wrapper carries the record count."""
        data = json.loads(records_to_json(cursor, root="Products"))

        assert list(data) == ["Products", "recordCount"]
        assert data["recordCount"] == 2
        assert data["Products"][1]["price"] == "9.99"

    def test_extra_keys(self, cursor):
        """Test extra keys follow the record count."""
        data = json.loads(
            records_to_json(cursor, root="Products", extra={"page": 1})
        )

        assert list(data) == ["Products", "recordCount", "page"]
        assert data["page"] == 1

    def test_extra_key_clash(self, cursor):
        """Test an extra key may not replace the payload."""
        with pytest.raises(ValueError):
            records_to_json(cursor, root="Products", extra={"recordCount": 0})

    def test_extra_without_root(self, cursor):
        """Test extra keys need a wrapping object."""
        with pytest.raises(ValueError):
            records_to_json(cursor, extra={"page": 1})

    def test_non_ascii_kept(self):
        """Test non-ASCII text is written as is."""
        cursor = RecordCursor.from_records([{"city": "Zürich"}])

        assert "Zürich" in records_to_json(cursor)

    def test_empty_cursor(self):
        """Test an empty record set."""
        assert json.loads(records_to_json(RecordCursor(), root="r")) == {
            "r": [],
            "recordCount": 0,
        }


class TestCSVExport:
    """Test CSV output."""

    def test_union_header(self, cursor):
        """Test the header spans all rows and gaps are empty cells."""
        lines = records_to_csv(cursor).splitlines()

        assert lines == [
            "id,name,price",
            '1,"Widget, large",',
            "2,,9.99",
        ]

    def test_delimiter(self, cursor):
        """Test a custom delimiter."""
        lines = records_to_csv(cursor, delimiter=";").splitlines()

        assert lines[0] == "id;name;price"
        assert lines[1] == "1;Widget, large;"


class TestDataFrameExport:
    """Test pandas output."""

    def test_dataframe(self, cursor):
        """Test columns follow the union of field names."""
        pytest.importorskip("pandas")

        frame = records_to_dataframe(cursor)

        assert list(frame.columns) == ["id", "name", "price"]
        assert frame.shape == (2, 3)
        assert frame.loc[0, "price"] == ""
        assert frame.loc[1, "id"] == "2"
