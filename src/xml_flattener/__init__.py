"""XML Flattener.

Turns arbitrarily nested XML into a flat record set: one row per repeating
node, with ancestor and sibling context pulled into every row and nested
structures collapsed into prefixed fields.

Progressive API Disclosure:
- Level 1: Simple functions - flatten_string(), flatten_file(), load_records()
- Level 2: Configured flattener - XMLFlattener class
- Level 3: Components - FlattenEngine, RepeatedNodeDetector, RecordCursor
"""

__version__ = "0.1.0"
__author__ = "XML Flattener Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Configured flattener
from .api import (
    XMLFlattener,
    flatten_document,
    flatten_file,
    flatten_json,
    flatten_string,
    load_records,
    records_from_json,
)

# Components and result objects
from .flatten import FlattenEngine, FlattenResult, RepeatedNodeDetector
from .records import RecordCursor, records_to_csv, records_to_dataframe, records_to_json

# Configuration classes and exceptions
from .shared import (
    CollisionPolicy,
    ConfigError,
    ConfigValidationError,
    CursorConfig,
    CursorPositionError,
    DocumentLoadError,
    FieldNameCollisionError,
    FieldNotFoundError,
    FlattenConfig,
    FlattenError,
    FlattenerConfig,
    RunawayReadError,
    StructureNotFoundError,
)
from .tree import XMLDocument, XMLElement, parse_file, parse_xml, to_xml_string

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "flatten_document",
    "flatten_file",
    "flatten_json",
    "flatten_string",
    "load_records",
    "records_from_json",

    # Level 2: Configured flattener
    "XMLFlattener",

    # Components and results
    "FlattenEngine",
    "FlattenResult",
    "RepeatedNodeDetector",
    "RecordCursor",
    "records_to_csv",
    "records_to_dataframe",
    "records_to_json",

    # Tree
    "XMLDocument",
    "XMLElement",
    "parse_file",
    "parse_xml",
    "to_xml_string",

    # Configuration
    "CollisionPolicy",
    "CursorConfig",
    "FlattenConfig",
    "FlattenerConfig",

    # Exceptions
    "ConfigError",
    "ConfigValidationError",
    "CursorPositionError",
    "DocumentLoadError",
    "FieldNameCollisionError",
    "FieldNotFoundError",
    "FlattenError",
    "RunawayReadError",
    "StructureNotFoundError",
]
