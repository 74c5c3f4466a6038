"""Cursor-style record set over flattened rows.

A :class:`RecordCursor` holds an ordered list of records (ordered mappings of
field name to string value) and a single position that may sit outside the
data on either side. Field access on an absent name is soft and returns an
empty value, while an out-of-range column index passed to :meth:`get_name`
is a hard error.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from xml_flattener.shared import (
    CollisionPolicy,
    CursorConfig,
    CursorPositionError,
    FieldNameCollisionError,
    FieldNotFoundError,
    RunawayReadError,
    get_logger,
)
from xml_flattener.tree.nodes import XMLDocument, XMLElement
from xml_flattener.tree.query import select_nodes

Record = Dict[str, str]
FieldKey = Union[str, int]

_TRUE_VALUES = {"true", "t", "yes", "y", "on"}


def to_str(value: Any) -> str:
    """Coerce a field value to the string stored in a record.

    None becomes an empty string and booleans are lower-cased so values
    loaded from JSON read back the way they were written.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def to_decimal(value: Optional[str]) -> Decimal:
    if not value:
        return Decimal(0)
    try:
        return Decimal(value.strip().replace(",", ""))
    except InvalidOperation:
        return Decimal(0)


def to_int(value: Optional[str]) -> int:
    number = to_decimal(value)
    if not number.is_finite():
        return 0
    return int(number)


def to_bool(value: Optional[str]) -> bool:
    """Interpret common textual truth values; anything else is False."""
    if not value:
        return False
    text = value.strip().lower()
    if text in _TRUE_VALUES:
        return True
    return to_decimal(text) != 0


def to_date(value: Optional[str], default: date) -> date:
    if not value:
        return default
    text = value.strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in ("%m/%d/%Y", "%d %b %Y", "%Y%m%d"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return default


class RecordCursor:
    """Navigable set of flat records with BOF/EOF semantics.

    The position starts before the data (-1) for an empty cursor; cursors
    built from documents or records are moved to the first row. ``bof`` is
    true at or before the first row and ``eof`` once the position passes
    the last row (or when there are no rows at all), so the usual loop is::

        cursor.move_first()
        while not cursor.eof:
            print(cursor.item("id"))
            cursor.move_next()

    Outside the data every field reads as absent: ``item`` returns ``""``,
    the typed accessors return their zero values and ``keys()`` is empty.

    Reads on one row are counted. Once ``max_read_count`` reads happened
    without a move, the next read raises :class:`RunawayReadError`; any move
    resets the counter.
    """

    def __init__(
        self,
        config: Optional[CursorConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or CursorConfig()
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, "cursor")
        self._records: List[Record] = []
        self._position = -1
        self._read_count = 0

    # Construction

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        config: Optional[CursorConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> "RecordCursor":
        """Build a cursor from mappings, one row each, positioned on row 0."""
        cursor = cls(config, correlation_id)
        for record in records:
            cursor.add_row()
            for name, value in record.items():
                cursor.add_column(name, value)
        cursor.move_first()
        return cursor

    @classmethod
    def from_document(
        cls,
        document: XMLDocument,
        row_path: Optional[str] = None,
        config: Optional[CursorConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> "RecordCursor":
        """Project a flat document into records.

        Rows are the root's children, or the elements matched by the XPath
        ``row_path``. A row element without children is skipped; every
        child of a row becomes one field whose value is its full inner text.
        """
        cursor = cls(config, correlation_id)
        if document.root is None:
            return cursor

        if row_path:
            rows = select_nodes(document, row_path, correlation_id)
        else:
            rows = list(document.root.children)

        for row in rows:
            cursor.add_element(row)
        cursor.move_first()

        cursor._logger.debug(
            "Built record cursor from document",
            extra={"row_path": row_path, "records": cursor.record_count},
        )
        return cursor

    # Manual population

    def add_row(self) -> None:
        """Append an empty row and make it the current row."""
        self._records.append({})
        self._position = len(self._records) - 1
        self._read_count = 0

    def add_column(self, name: str, value: Any) -> None:
        """Set a field on the most recently added row.

        A name the row already has is handled by the collision policy:
        last write wins keeps the field at its first position with the new
        value, error raises :class:`FieldNameCollisionError`.

        Raises:
            CursorPositionError: If no row has been added yet
        """
        if not self._records:
            raise CursorPositionError(self._position, 0)
        record = self._records[-1]
        text = to_str(value)
        if name in record:
            if self.config.collision_policy is CollisionPolicy.ERROR:
                raise FieldNameCollisionError(name, record[name], text)
            self._logger.debug(
                "Field written twice in one record",
                extra={"field": name, "position": self._position},
            )
        record[name] = text

    def add_element(self, row: XMLElement) -> bool:
        """Append ``row`` as a record; returns False if it has no children."""
        if not row.children:
            return False
        self.add_row()
        for child in row.children:
            self.add_column(child.tag, child.inner_text)
        return True

    # Navigation

    @property
    def position(self) -> int:
        return self._position

    @property
    def bof(self) -> bool:
        return self._position <= 0

    @property
    def eof(self) -> bool:
        return not self._records or self._position >= len(self._records)

    @property
    def record_count(self) -> int:
        return len(self._records)

    def move_first(self) -> None:
        self._position = 0
        self._read_count = 0

    def move_next(self) -> None:
        self._position += 1
        self._read_count = 0

    def move_previous(self) -> None:
        self._position -= 1
        self._read_count = 0

    def move_to(self, position: int) -> None:
        """Jump to an absolute position; it may be out of range."""
        self._position = position
        self._read_count = 0

    # Row inspection

    @property
    def column_count(self) -> int:
        return len(self._current())

    def keys(self) -> List[str]:
        """Field names of the current row in insertion order."""
        return list(self._current())

    def column_exists(self, name: str) -> bool:
        return name in self._current()

    def get_name(self, index: int) -> str:
        """Name of the field at ``index`` in the current row.

        Raises:
            FieldNotFoundError: If the row has no column at ``index``; at
                BOF/EOF outside the data no index exists
        """
        record = self._current()
        if 0 <= index < len(record):
            return list(record)[index]
        raise FieldNotFoundError(index, len(record))

    def name(self, index: int) -> str:
        """Name of the field at ``index`` in the first row, or ``""``."""
        if not self._records:
            return ""
        first = self._records[0]
        if 0 <= index < len(first):
            return list(first)[index]
        return ""

    # Field access

    def item(self, key: FieldKey) -> str:
        """Value of a field by name or index; ``""`` when it is absent."""
        value = self._read(key)
        return value if value is not None else ""

    def item_decimal(self, key: FieldKey) -> Decimal:
        return to_decimal(self._read(key))

    def item_int(self, key: FieldKey) -> int:
        return to_int(self._read(key))

    def item_bool(self, key: FieldKey) -> bool:
        return to_bool(self._read(key))

    def item_date(self, key: FieldKey) -> date:
        return to_date(self._read(key), self.config.default_date)

    def __getitem__(self, key: FieldKey) -> str:
        return self.item(key)

    def _read(self, key: FieldKey) -> Optional[str]:
        if self._read_count >= self.config.max_read_count:
            self._logger.error(
                "Runaway read detected",
                extra={
                    "limit": self.config.max_read_count,
                    "position": self._position,
                },
            )
            raise RunawayReadError(self.config.max_read_count, self._position)
        self._read_count += 1

        record = self._current()
        if isinstance(key, int):
            if 0 <= key < len(record):
                return list(record.values())[key]
            return None
        return record.get(key)

    def _current(self) -> Record:
        # Outside the data the current row reads as an empty record
        if not 0 <= self._position < len(self._records):
            return {}
        return self._records[self._position]

    # Whole-set access

    @property
    def records(self) -> List[Record]:
        """Copies of all records; mutating them does not affect the cursor."""
        return [dict(record) for record in self._records]

    def snapshot(self) -> "RecordCursor":
        """Independent copy with the same records and position."""
        clone = RecordCursor(self.config, self.correlation_id)
        clone._records = self.records
        clone._position = self._position
        return clone

    def field_names(self) -> List[str]:
        """Union of field names across all rows, in first-seen order."""
        names: Dict[str, None] = {}
        for record in self._records:
            for name in record:
                names.setdefault(name, None)
        return list(names)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return (
            f"RecordCursor(records={len(self._records)}, "
            f"position={self._position})"
        )
