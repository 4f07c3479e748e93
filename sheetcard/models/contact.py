from __future__ import annotations

from dataclasses import dataclass

"""ContactRecord model.

One record is built per retained source row by the row mapper and is never
mutated afterwards; the label-prefix step produces copies.
"""

__all__ = [
    "ContactRecord",
]


@dataclass(frozen=True)
class ContactRecord:
    """A single contact ready for vCard serialization.

    Attributes:
        first_name: First whitespace token of the name cell ("" if no name)
        last_name: Remaining name tokens joined by single spaces
        full_name: Display name; the trimmed name, or the phone value if no name
        phone: Raw phone text (cleaned only at serialization time)
        email: Trimmed email, or None when unmapped / empty
        company: Trimmed company, or None when unmapped / empty
        notes: Trimmed notes, or None when unmapped / empty
    """
    first_name: str
    last_name: str
    full_name: str
    phone: str
    email: str | None = None
    company: str | None = None
    notes: str | None = None
