from __future__ import annotations

import csv
import io
import logging
import math
import re
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from ..errors import ParseError
from ..models.table import ParsedSheet, Table
from .columns import suggest_mapping

"""Spreadsheet ingestion (CSV text / Excel workbook -> Table).

Both paths share the same convention:
1. First record is the header row
2. Remaining records are data rows
3. Rows whose every trimmed cell is empty are dropped
4. All cells are coerced to str

Workbooks are decoded with pandas (openpyxl for .xlsx, xlrd for .xls) and only
the first sheet is read. Quoted CSV fields (embedded commas, doubled quotes,
newlines) are handled by the csv module; rows keep their own length, so rows
shorter or longer than the header survive ingestion untouched.
"""

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "parse_bytes",
    "parse_csv",
    "parse_file",
    "parse_workbook",
]

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = {"csv"}
WORKBOOK_EXTENSIONS = {"xlsx", "xls"}
SUPPORTED_EXTENSIONS = CSV_EXTENSIONS | WORKBOOK_EXTENSIONS

PatternTable = Mapping[str, Sequence[re.Pattern[str]]]


def _is_blank(row: Sequence[str]) -> bool:
    return all(cell.strip() == "" for cell in row)


def _cell_to_str(value: Any) -> str:
    """Coerce a decoded workbook cell to text.

    Missing cells become "", integral floats lose their ".0" (phone numbers
    typed as numbers would otherwise gain a decimal suffix).
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if value is pd.NaT:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _build_sheet(records: Iterable[list[str]], patterns: PatternTable | None) -> ParsedSheet:
    it = iter(records)
    try:
        headers = next(it)
    except StopIteration:  # pragma: no cover - callers check emptiness first
        raise ParseError("Spreadsheet is empty") from None
    rows = [row for row in it if not _is_blank(row)]
    logger.debug("ingested headers=%s rows=%d", headers, len(rows))
    table = Table(headers=headers, rows=rows)
    return ParsedSheet(table=table, suggested_mapping=suggest_mapping(headers, patterns))


def parse_csv(text: str, patterns: PatternTable | None = None) -> ParsedSheet:
    """Parse comma-separated text into a ParsedSheet.

    Raises:
        ParseError: zero records, or malformed CSV
    """
    try:
        records = [list(r) for r in csv.reader(io.StringIO(text, newline=""))]
    except csv.Error as e:
        raise ParseError(f"Invalid CSV: {e}") from e
    if not records:
        raise ParseError("CSV is empty")
    return _build_sheet(records, patterns)


def parse_workbook(data: bytes, patterns: PatternTable | None = None) -> ParsedSheet:
    """Parse the first sheet of an Excel workbook (.xlsx / .xls bytes).

    Additional sheets are ignored.

    Raises:
        ParseError: bytes are not a readable workbook, or the first sheet is empty
    """
    try:
        with pd.ExcelFile(io.BytesIO(data)) as xls:
            if not xls.sheet_names:
                raise ParseError("Workbook has no sheets")
            first = xls.sheet_names[0]
            # ヘッダなしで生読み、空セルは NaN にせず "" のまま保持
            # dtype=str: 文字列セル "0123" を数値推論で 123 にしない
            df = xls.parse(first, header=None, dtype=str, keep_default_na=False)
    except ParseError:
        raise
    except Exception as e:
        raise ParseError(f"Unable to read workbook: {e}") from e

    if df.shape[0] == 0:
        raise ParseError("Spreadsheet is empty")
    records = [[_cell_to_str(v) for v in raw] for raw in df.itertuples(index=False, name=None)]
    return _build_sheet(records, patterns)


def _extension(filename: str) -> str:
    return Path(filename).suffix.lower().lstrip(".")


def parse_bytes(filename: str, data: bytes, patterns: PatternTable | None = None) -> ParsedSheet:
    """Dispatch on the file extension of ``filename``.

    Raises:
        ParseError: unsupported extension, undecodable text, or any parse failure
    """
    ext = _extension(filename)
    if ext in CSV_EXTENSIONS:
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"CSV is not valid UTF-8: {e}") from e
        return parse_csv(text, patterns)
    if ext in WORKBOOK_EXTENSIONS:
        return parse_workbook(data, patterns)
    raise ParseError(f"Unsupported file format: {ext or filename}")


def parse_file(path: Path, patterns: PatternTable | None = None) -> ParsedSheet:
    """Read ``path`` from disk and parse it according to its extension."""
    if not path.exists():
        raise ParseError(f"file not found: {path}")
    if _extension(path.name) not in SUPPORTED_EXTENSIONS:
        raise ParseError(f"Unsupported file format: {_extension(path.name) or path.name}")
    logger.debug("reading %s", path)
    try:
        data = path.read_bytes()
    except OSError as e:
        # ディレクトリ / 権限なし など、入力側の問題は ParseError
        raise ParseError(f"Unable to read {path}: {e}") from e
    return parse_bytes(path.name, data, patterns)
