"""Flattening API with progressive disclosure.

Level 1 is a handful of module-level functions (``flatten_string``,
``flatten_file``, ``load_records``...). Level 2 is :class:`XMLFlattener`, a
configured, reusable instance that keeps usage statistics.
"""

import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from xml_flattener.flatten import FlattenEngine, FlattenResult
from xml_flattener.records import RecordCursor
from xml_flattener.shared import FlattenerConfig, FlattenError, get_logger
from xml_flattener.tree import json_to_document, parse_file, parse_xml
from xml_flattener.tree.nodes import XMLDocument

# Type definitions for input data
InputType = Union[XMLDocument, str, bytes, Path]
JSONInput = Union[str, bytes, Dict[str, Any], List[Any]]

MS_PER_SECOND = 1000


def _load(input_data: InputType, correlation_id: Optional[str]) -> XMLDocument:
    if isinstance(input_data, XMLDocument):
        return input_data
    if isinstance(input_data, Path):
        return parse_file(input_data, correlation_id=correlation_id)
    if isinstance(input_data, (str, bytes)):
        return parse_xml(input_data, correlation_id=correlation_id)
    raise TypeError(f"Unsupported input type: {type(input_data).__name__}")


def flatten_document(
    document: XMLDocument,
    selector: Optional[str] = None,
    config: Optional[FlattenerConfig] = None,
    correlation_id: Optional[str] = None,
) -> FlattenResult:
    """Flatten an already loaded document.

    Args:
        document: Source tree; it is not modified
        selector: XPath expression or tag name of the repeating node,
            inferred when omitted
        config: Configuration bundle (defaults to ``FlattenerConfig()``)
        correlation_id: Optional correlation ID for request tracking

    Returns:
        FlattenResult with the flat tree and its rows

    Raises:
        StructureNotFoundError: If no repeating node can be resolved

    Examples:
        >>> from xml_flattener.tree import parse_xml
        >>> doc = parse_xml("<r><i><id>1</id></i><i><id>2</id></i></r>")
        >>> flatten_document(doc).row_count
        2
    """
    config = config or FlattenerConfig()
    engine = FlattenEngine(config.flatten, correlation_id)
    return engine.flatten(document, selector)


def flatten_string(
    xml_string: Union[str, bytes],
    selector: Optional[str] = None,
    config: Optional[FlattenerConfig] = None,
    correlation_id: Optional[str] = None,
) -> FlattenResult:
    """Parse XML text and flatten it.

    Raises:
        DocumentLoadError: If the text is not well-formed XML
        StructureNotFoundError: If no repeating node can be resolved
    """
    document = parse_xml(xml_string, correlation_id=correlation_id)
    return flatten_document(document, selector, config, correlation_id)


def flatten_file(
    file_path: Union[str, Path],
    selector: Optional[str] = None,
    config: Optional[FlattenerConfig] = None,
    correlation_id: Optional[str] = None,
) -> FlattenResult:
    """Parse an XML file and flatten it."""
    logger = get_logger(__name__, correlation_id, "flatten_file")
    logger.info("Flattening file", extra={"file_path": str(file_path)})

    document = parse_file(file_path, correlation_id=correlation_id)
    return flatten_document(document, selector, config, correlation_id)


def flatten_json(
    json_data: JSONInput,
    selector: Optional[str] = None,
    root_name: str = "",
    config: Optional[FlattenerConfig] = None,
    correlation_id: Optional[str] = None,
) -> FlattenResult:
    """Convert a JSON payload to a tree and flatten it.

    See :func:`xml_flattener.tree.json_to_document` for the conversion rules.
    """
    document = json_to_document(json_data, root_name)
    return flatten_document(document, selector, config, correlation_id)


def load_records(
    input_data: InputType,
    selector: Optional[str] = None,
    config: Optional[FlattenerConfig] = None,
    correlation_id: Optional[str] = None,
) -> RecordCursor:
    """Flatten XML input and return its records, positioned on the first row.

    Args:
        input_data: Loaded document, XML text/bytes, or a Path to a file
        selector: XPath expression or tag name of the repeating node
        config: Configuration bundle
        correlation_id: Optional correlation ID for request tracking

    Examples:
        >>> cursor = load_records("<r><i><id>1</id></i><i><id>2</id></i></r>", "i")
        >>> cursor.item("id")
        '1'
    """
    config = config or FlattenerConfig()
    document = _load(input_data, correlation_id)
    result = flatten_document(document, selector, config, correlation_id)
    return RecordCursor.from_document(
        result.document, config=config.cursor, correlation_id=correlation_id
    )


def records_from_json(
    json_data: JSONInput,
    root_name: str = "",
    row_path: Optional[str] = None,
    config: Optional[FlattenerConfig] = None,
    correlation_id: Optional[str] = None,
) -> RecordCursor:
    """Build records straight from a JSON payload, without flattening.

    The payload is converted to a tree; rows are the root's children or the
    elements matched by ``row_path``. Each field value is the inner text of
    the corresponding child, so nested objects collapse to their text.

    Examples:
        >>> cursor = records_from_json('[{"id": 1}, {"id": 2}]')
        >>> cursor.record_count
        2
    """
    config = config or FlattenerConfig()
    document = json_to_document(json_data, root_name)
    return RecordCursor.from_document(
        document, row_path, config=config.cursor, correlation_id=correlation_id
    )


class XMLFlattener:
    """Configured, reusable flattener.

    Keeps one engine per configuration and tracks usage statistics across
    calls.

    Examples:
        >>> flattener = XMLFlattener(FlattenerConfig.strict())
        >>> cursor = flattener.records("<r><i><id>1</id></i><i><id>2</id></i></r>")
        >>> flattener.statistics["total_runs"]
        1
    """

    def __init__(
        self,
        config: Optional[FlattenerConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or FlattenerConfig()
        self.correlation_id = correlation_id or self.config.flatten.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "xml_flattener")
        self._engine = FlattenEngine(self.config.flatten, self.correlation_id)

        self._run_count = 0
        self._failed_runs = 0
        self._rows_produced = 0
        self._total_processing_time = 0.0

        self.logger.info(
            "XMLFlattener initialized",
            extra={"config_name": self.config.name},
        )

    def flatten(
        self, input_data: InputType, selector: Optional[str] = None
    ) -> FlattenResult:
        """Flatten a document, XML text or file with this configuration."""
        start_time = time.time()
        try:
            document = _load(input_data, self.correlation_id)
            result = self._engine.flatten(document, selector)
        except FlattenError:
            self._failed_runs += 1
            raise
        finally:
            self._run_count += 1
            self._total_processing_time += (time.time() - start_time) * MS_PER_SECOND

        self._rows_produced += result.row_count
        return result

    def records(
        self, input_data: InputType, selector: Optional[str] = None
    ) -> RecordCursor:
        """Flatten and project the rows into a record cursor."""
        result = self.flatten(input_data, selector)
        return RecordCursor.from_document(
            result.document,
            config=self.config.cursor,
            correlation_id=self.correlation_id,
        )

    def reconfigure(self, config: FlattenerConfig) -> None:
        """Swap in a new configuration bundle."""
        self.config = config
        self._engine = FlattenEngine(config.flatten, self.correlation_id)
        self.logger.info("Flattener reconfigured", extra={"config_name": config.name})

    @property
    def statistics(self) -> Dict[str, Any]:
        """Usage statistics across all calls."""
        return {
            "total_runs": self._run_count,
            "failed_runs": self._failed_runs,
            "rows_produced": self._rows_produced,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._run_count
                if self._run_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        self._run_count = 0
        self._failed_runs = 0
        self._rows_produced = 0
        self._total_processing_time = 0.0
        self.logger.info("Flattener statistics reset")
