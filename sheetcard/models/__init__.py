"""Domain models for the spreadsheet -> vCard converter."""

from .contact import ContactRecord
from .processing_result import FileStat, ProcessingResult
from .skip_record import SkipRecord
from .table import FIELDS, FieldMapping, ParsedSheet, Table

__all__ = [
    # Ingestion models
    "FIELDS",
    "FieldMapping",
    "ParsedSheet",
    "Table",
    # Contact model
    "ContactRecord",
    # Run results
    "FileStat",
    "ProcessingResult",
    "SkipRecord",
]
