"""Command-line interface module for XML Flattener.

This module provides the xml-flatten command for flattening XML and JSON
files into records and for inspecting repeating node detection.
"""

from .main import main

__all__ = ["main"]
