from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models for the converter.

FileStat holds per-source numbers, ProcessingResult aggregates a whole run and
feeds the SUMMARY line.
"""


@dataclass(frozen=True)
class FileStat:
    """Per-source conversion statistics."""
    source: str  # ファイルパス or シート URL
    status: str  # success/failed
    contacts: int  # 出力した vCard 数
    skipped_rows: int  # mapper が捨てた行数
    elapsed_seconds: float
    output_path: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results for one CLI run."""
    success_sources: int
    failed_sources: int
    total_contacts: int
    skipped_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] | None = None

    @property
    def total_sources(self) -> int:
        return self.success_sources + self.failed_sources
