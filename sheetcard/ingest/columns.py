from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence

from ..models.table import FIELDS, FieldMapping

"""Heuristic column-role detection.

Each logical field has an ordered list of case-insensitive patterns that must
match the *whole* trimmed header (``fullmatch``), never a substring. Fields are
resolved independently: a header claimed by ``name`` can still satisfy
``notes`` if its text matches both.
"""

__all__ = [
    "DEFAULT_PATTERNS",
    "compile_patterns",
    "find_column_index",
    "suggest_mapping",
]


def _p(expr: str) -> re.Pattern[str]:
    return re.compile(expr, re.IGNORECASE)


DEFAULT_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "name": [
        _p(r"name"),
        _p(r"full\s*name"),
        _p(r"contact\s*name"),
        _p(r"client\s*name"),
        _p(r"lead\s*name"),
        _p(r"customer"),
        _p(r"first\s*name"),
        _p(r"naam"),
        _p(r"nombre"),
        _p(r"nom"),
        _p(r"nome"),
    ],
    "phone": [
        _p(r"phone"),
        _p(r"phone\s*number"),
        _p(r"mobile"),
        _p(r"cell"),
        _p(r"telephone"),
        _p(r"tel"),
        _p(r"contact\s*number"),
        _p(r"primary\s*phone"),
        _p(r"tel[eé]fono"),
        _p(r"celular"),
        _p(r"m[oó]vil"),
    ],
    "email": [
        _p(r"email"),
        _p(r"e-mail"),
        _p(r"email\s*address"),
        _p(r"mail"),
        _p(r"correo"),
    ],
    "company": [
        _p(r"company"),
        _p(r"organi[sz]ation"),
        _p(r"org"),
        _p(r"business"),
        _p(r"employer"),
        _p(r"workplace"),
        _p(r"empresa"),
    ],
    "notes": [
        _p(r"notes?"),
        _p(r"comment"),
        _p(r"remarks?"),
        _p(r"description"),
        _p(r"info"),
        _p(r"notas?"),
    ],
}


def compile_patterns(extra: Mapping[str, Iterable[str]] | None) -> dict[str, list[re.Pattern[str]]]:
    """Return the default pattern table with ``extra`` expressions appended per field.

    Raises:
        KeyError: unknown field name in ``extra``
        re.error: invalid regular expression
    """
    table = {field: list(patterns) for field, patterns in DEFAULT_PATTERNS.items()}
    if not extra:
        return table
    for field, exprs in extra.items():
        if field not in table:
            raise KeyError(f"unknown field: {field}")
        table[field].extend(_p(e) for e in exprs)
    return table


def find_column_index(headers: Sequence[str], patterns: Sequence[re.Pattern[str]]) -> int | None:
    """Index of the first header (left to right) fully matching any pattern."""
    for i, header in enumerate(headers):
        text = (header or "").strip()
        for pattern in patterns:
            if pattern.fullmatch(text):
                return i
    return None


def suggest_mapping(
    headers: Sequence[str],
    patterns: Mapping[str, Sequence[re.Pattern[str]]] | None = None,
) -> FieldMapping:
    """Propose a FieldMapping from header text.

    Deterministic: the same headers always give the same mapping.
    """
    table = patterns if patterns is not None else DEFAULT_PATTERNS
    found = {field: find_column_index(headers, table.get(field, ())) for field in FIELDS}
    return FieldMapping(**found)
