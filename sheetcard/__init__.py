"""Spreadsheet (CSV / Excel / Google Sheets) -> vCard contact converter."""

__version__ = "0.1.0"
