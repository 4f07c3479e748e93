"""Remote spreadsheet sources."""

from .google_sheets import extract_sheet_id, fetch_sheet, fetch_sheet_csv, is_sheet_url

__all__ = [
    "extract_sheet_id",
    "fetch_sheet",
    "fetch_sheet_csv",
    "is_sheet_url",
]
