"""Public flattening API.

Level 1: flatten_document(), flatten_string(), flatten_file(), flatten_json(),
load_records(), records_from_json()
Level 2: XMLFlattener, a configured and reusable instance
"""

from .flatten import (
    XMLFlattener,
    flatten_document,
    flatten_file,
    flatten_json,
    flatten_string,
    load_records,
    records_from_json,
)

__all__ = [
    "XMLFlattener",
    "flatten_document",
    "flatten_file",
    "flatten_json",
    "flatten_string",
    "load_records",
    "records_from_json",
]
