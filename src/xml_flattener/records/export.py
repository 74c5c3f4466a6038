"""Exporting record cursors to JSON, CSV and pandas DataFrames."""

import csv
import io
import json
from typing import Any, Dict, Optional

from xml_flattener.records.cursor import RecordCursor


def records_to_json(
    cursor: RecordCursor,
    root: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
    indent: Optional[int] = None,
) -> str:
    """Serialize every record as a JSON object, all values as strings.

    Without ``root`` the output is a plain array. With ``root`` the array is
    wrapped as ``{"<root>": [...], "recordCount": n}`` and any ``extra``
    keys are added after it.

    Examples:
        >>> cursor = RecordCursor.from_records([{"id": 1}])
        >>> records_to_json(cursor)
        '[{"id": "1"}]'
        >>> records_to_json(cursor, root="items")
        '{"items": [{"id": "1"}], "recordCount": 1}'
    """
    records = cursor.records
    if root is None:
        if extra:
            raise ValueError("extra keys require a root name")
        return json.dumps(records, indent=indent, ensure_ascii=False)

    payload: Dict[str, Any] = {root: records, "recordCount": len(records)}
    for key, value in (extra or {}).items():
        if key in payload:
            raise ValueError(f"extra key '{key}' clashes with the payload")
        payload[key] = value
    return json.dumps(payload, indent=indent, ensure_ascii=False)


def records_to_csv(cursor: RecordCursor, delimiter: str = ",") -> str:
    """Render the records as CSV.

    The header is the union of field names in first-seen order; a row
    lacking a field gets an empty cell.
    """
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=cursor.field_names(),
        delimiter=delimiter,
        restval="",
        lineterminator="\n",
    )
    writer.writeheader()
    writer.writerows(cursor.records)
    return buffer.getvalue()


def records_to_dataframe(cursor: RecordCursor) -> Any:
    """Convert the records to a ``pandas.DataFrame`` of strings.

    Missing fields are empty strings. Requires the ``dataframe`` extra.

    Raises:
        ImportError: If pandas is not installed
    """
    try:
        import pandas as pd
    except ImportError as e:
        raise ImportError(
            "pandas is required for DataFrame export; "
            "install with 'pip install xml-flattener[dataframe]'"
        ) from e

    columns = cursor.field_names()
    rows = [[record.get(name, "") for name in columns] for record in cursor.records]
    return pd.DataFrame(rows, columns=columns, dtype=object)
