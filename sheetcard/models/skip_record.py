from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""SkipRecord model for the JSON Lines diagnostics log.

Each record explains why a row (or a whole source, row=-1) did not make it
into the exported document unchanged.
"""

__all__ = [
    "SkipRecord",
    "SOURCE_LEVEL_ROW",
]

SOURCE_LEVEL_ROW = -1


@dataclass(frozen=True)
class SkipRecord:
    """Structured skip record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        source: File path or sheet URL being converted
        row: 1-based position among retained data rows, -1 for source-level failures
        reason: UPPER_SNAKE_CASE classification (e.g. NO_NAME_OR_PHONE)
        detail: Human readable explanation
    """
    timestamp: str
    source: str
    row: int
    reason: str
    detail: str

    @staticmethod
    def create(source: str, row: int, reason: str, detail: str) -> SkipRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return SkipRecord(timestamp=ts, source=source, row=row, reason=reason, detail=detail)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
