"""Exception hierarchy for XML flattening and record cursor operations.

Every failure raised by this package derives from :class:`FlattenError` so
callers can catch the whole family at once, while the concrete subclasses
also inherit from the closest built-in exception to keep ``except KeyError``
and ``except IndexError`` style handling working.
"""

from typing import Any, Dict, List, Optional


class FlattenError(Exception):
    """Base exception for all flattening and cursor failures."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class DocumentLoadError(FlattenError):
    """Raised when input cannot be turned into a tree document."""


class StructureNotFoundError(FlattenError):
    """Raised when no explicit or inferred repeating node can be located."""

    def __init__(
        self,
        message: str = "Could not find any repeating XML nodes",
        selector: Optional[str] = None,
        candidates: Optional[List[str]] = None,
    ) -> None:
        super().__init__(
            message, {"selector": selector, "candidates": candidates or []}
        )
        self.selector = selector
        self.candidates = candidates or []


class FieldNotFoundError(FlattenError, KeyError):
    """Raised when an explicit column index does not exist in the current row."""

    def __init__(self, index: int, column_count: int) -> None:
        super().__init__(
            f"Column {index} wasn't found in the current row "
            f"({column_count} columns)",
            {"index": index, "column_count": column_count},
        )
        self.index = index
        self.column_count = column_count


class FieldNameCollisionError(FlattenError):
    """Raised when a record would receive the same field name twice."""

    def __init__(self, name: str, existing: str, incoming: str) -> None:
        super().__init__(
            f"Field '{name}' already exists in this record",
            {"name": name, "existing": existing, "incoming": incoming},
        )
        self.name = name


class RunawayReadError(FlattenError, RuntimeError):
    """Raised when a single row is read too many times without moving."""

    def __init__(self, limit: int, position: int) -> None:
        super().__init__(
            "Infinite loop detected: read counter has exceeded the max allowed "
            f"value of {limit} reads in a single row",
            {"limit": limit, "position": position},
        )
        self.limit = limit
        self.position = position


class CursorPositionError(FlattenError, IndexError):
    """Raised when a field is written before any row has been added."""

    def __init__(self, position: int, record_count: int) -> None:
        super().__init__(
            f"Cursor position {position} is outside the record set "
            f"({record_count} records)",
            {"position": position, "record_count": record_count},
        )
        self.position = position
        self.record_count = record_count
