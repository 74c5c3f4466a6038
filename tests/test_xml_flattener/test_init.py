"""Test module for xml_flattener package initialization."""


def test_package_import() -> None:
    """Test that the package can be imported successfully."""
    # Arrange & Act
    import xml_flattener

    # Assert
    assert xml_flattener is not None


def test_package_has_version() -> None:
    """Test that the package has a version attribute."""
    # Arrange & Act
    import xml_flattener

    # Assert
    assert isinstance(xml_flattener.__version__, str)
    assert xml_flattener.__version__ == "0.1.0"


def test_package_has_author() -> None:
    """Test that the package has an author attribute."""
    import xml_flattener

    assert xml_flattener.__author__ == "XML Flattener Team"


def test_package_all_exports() -> None:
    """Test that __all__ contains expected exports."""
    # Arrange & Act
    import xml_flattener

    # Assert
    expected = {
        "flatten_document",
        "flatten_file",
        "flatten_json",
        "flatten_string",
        "load_records",
        "records_from_json",
        "XMLFlattener",
        "FlattenEngine",
        "RecordCursor",
        "FlattenConfig",
        "CursorConfig",
        "StructureNotFoundError",
        "RunawayReadError",
    }
    assert expected.issubset(set(xml_flattener.__all__))
    for name in xml_flattener.__all__:
        assert hasattr(xml_flattener, name), name
