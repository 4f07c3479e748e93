from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import replace

from ..errors import MappingValidationError
from ..models.contact import ContactRecord
from ..models.table import FieldMapping

"""Row -> ContactRecord mapping.

Pure and total: an unmapped field or an out-of-range index reads as an empty
cell, and a row with neither name nor phone is dropped instead of raising.
"""

__all__ = [
    "apply_label_prefix",
    "iter_mapped_rows",
    "map_all_rows",
    "map_row_to_contact",
    "validate_mapping",
]

_WS = re.compile(r"\s+")


def _cell(row: Sequence[str], index: int | None) -> str:
    if index is None or index < 0 or index >= len(row):
        return ""
    value = row[index]
    return "" if value is None else str(value).strip()


def _optional(row: Sequence[str], index: int | None) -> str | None:
    # 未マップ / 範囲外 / 空文字 は None (vCard 行ごと省略させる)
    value = _cell(row, index)
    return value or None


def map_row_to_contact(row: Sequence[str], mapping: FieldMapping) -> ContactRecord | None:
    """Build a ContactRecord from one row, or None when the row has no name and no phone."""
    name = _cell(row, mapping.name)
    phone = _cell(row, mapping.phone)
    if not name and not phone:
        return None

    parts = _WS.split(name) if name else []
    first_name = parts[0] if parts else ""
    last_name = " ".join(parts[1:])

    return ContactRecord(
        first_name=first_name,
        last_name=last_name,
        full_name=name or phone,
        phone=phone,
        email=_optional(row, mapping.email),
        company=_optional(row, mapping.company),
        notes=_optional(row, mapping.notes),
    )


def iter_mapped_rows(
    rows: Iterable[Sequence[str]], mapping: FieldMapping
) -> Iterator[tuple[int, ContactRecord | None]]:
    """Yield ``(row_no, contact)`` per row; row_no is 1-based, contact None for a dropped row."""
    for row_no, row in enumerate(rows, start=1):
        yield row_no, map_row_to_contact(row, mapping)


def map_all_rows(rows: Iterable[Sequence[str]], mapping: FieldMapping) -> list[ContactRecord]:
    """Map every row in order, dropping rows without identifying information."""
    return [c for _, c in iter_mapped_rows(rows, mapping) if c is not None]


def apply_label_prefix(contacts: Sequence[ContactRecord], prefix: str | None) -> list[ContactRecord]:
    """Return copies whose full_name reads ``"<prefix> - <full_name>"``.

    The prefix is trimmed first; an empty prefix leaves the records as they are.
    """
    label = (prefix or "").strip()
    if not label:
        return list(contacts)
    return [replace(c, full_name=f"{label} - {c.full_name}") for c in contacts]


def validate_mapping(mapping: FieldMapping) -> None:
    if not mapping.is_valid:
        raise MappingValidationError("Please map at least Name or Phone column")
