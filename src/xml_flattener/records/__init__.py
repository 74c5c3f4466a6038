"""Record sets produced from flattened documents.

Key Components:
    RecordCursor: Cursor over flat records with BOF/EOF semantics
    records_to_json / records_to_csv / records_to_dataframe: Export helpers
"""

from .cursor import Record, RecordCursor, to_str
from .export import records_to_csv, records_to_dataframe, records_to_json

__all__ = [
    "Record",
    "RecordCursor",
    "to_str",
    "records_to_csv",
    "records_to_dataframe",
    "records_to_json",
]
