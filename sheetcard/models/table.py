from __future__ import annotations

from dataclasses import dataclass, replace

"""Table / FieldMapping models for the spreadsheet ingestion step.

A Table is the uniform header+rows view produced from either CSV text or the
first sheet of a workbook. A FieldMapping binds each logical contact field to
a column *index* (not header text), so renamed or duplicated headers do not
break an existing mapping.
"""

__all__ = [
    "FIELDS",
    "FieldMapping",
    "ParsedSheet",
    "Table",
]

# Logical contact fields, in suggestion order
FIELDS: tuple[str, ...] = ("name", "phone", "email", "company", "notes")


@dataclass(frozen=True)
class Table:
    """Header row plus data rows, every cell already coerced to ``str``.

    Rows may be shorter or longer than ``headers``; consumers index defensively.
    """
    headers: list[str]
    rows: list[list[str]]


@dataclass(frozen=True)
class FieldMapping:
    """Column index per logical field (``None`` = unmapped).

    The same index may be bound to several fields; each field binds at most one.
    """
    name: int | None = None
    phone: int | None = None
    email: int | None = None
    company: int | None = None
    notes: int | None = None

    def get(self, field: str) -> int | None:
        if field not in FIELDS:
            raise KeyError(f"unknown field: {field}")
        return getattr(self, field)

    def with_field(self, field: str, index: int | None) -> FieldMapping:
        """Return a copy with ``field`` rebound to ``index``."""
        if field not in FIELDS:
            raise KeyError(f"unknown field: {field}")
        return replace(self, **{field: index})

    def as_dict(self) -> dict[str, int | None]:
        return {f: getattr(self, f) for f in FIELDS}

    @property
    def is_valid(self) -> bool:
        # 名前 or 電話のどちらかが必須
        return self.name is not None or self.phone is not None


@dataclass(frozen=True)
class ParsedSheet:
    """Ingestor output: the table and the heuristically suggested mapping."""
    table: Table
    suggested_mapping: FieldMapping

    @property
    def headers(self) -> list[str]:
        return self.table.headers

    @property
    def rows(self) -> list[list[str]]:
        return self.table.rows
