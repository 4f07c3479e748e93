"""Row mapping: table rows + FieldMapping -> ContactRecord list."""

from .row_mapper import (
    apply_label_prefix,
    iter_mapped_rows,
    map_all_rows,
    map_row_to_contact,
    validate_mapping,
)

__all__ = [
    "apply_label_prefix",
    "iter_mapped_rows",
    "map_all_rows",
    "map_row_to_contact",
    "validate_mapping",
]
