"""
Importing
=========

Parser collaborator: field-mapping configuration, the CSV/Excel section
parser, and the ImportManager that dispatches files to it.
"""

from .mapping import (
    MappingConfig,
    MappingEntry,
    MappingSeverity,
    MappingValidationResult,
    load_mapping,
    parse_mapping,
)
from .parser import ImportOptions, ParseSummary, TabularParser, read_csv_frame, read_excel_frames
from .manager import Importer, ImportManager

__all__ = [
    "MappingConfig",
    "MappingEntry",
    "MappingSeverity",
    "MappingValidationResult",
    "load_mapping",
    "parse_mapping",
    "ImportOptions",
    "ParseSummary",
    "TabularParser",
    "read_csv_frame",
    "read_excel_frames",
    "Importer",
    "ImportManager",
]
