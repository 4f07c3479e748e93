"""Tabular ingestion: CSV / workbook input -> Table + suggested FieldMapping."""

from .columns import DEFAULT_PATTERNS, compile_patterns, suggest_mapping
from .reader import parse_bytes, parse_csv, parse_file, parse_workbook

__all__ = [
    "DEFAULT_PATTERNS",
    "compile_patterns",
    "parse_bytes",
    "parse_csv",
    "parse_file",
    "parse_workbook",
    "suggest_mapping",
]
