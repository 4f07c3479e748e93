from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.skip_record import SkipRecord

"""Skip log buffering (JSON Lines).

- One file per run: ``logs/skipped-YYYYMMDD-HHMMSS.log`` (UTC)
- Records are buffered in memory and appended on flush()
- No file is created for a run without skips
"""

__all__ = [
    "ErrorLogBuffer",
    "SkipRecord",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for skip records. Flush writes JSON Lines.

    Not thread-safe (the converter runs serially).
    """

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[SkipRecord] = []
        self._logs_dir = logs_dir or LOGS_DIR
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"skipped-{stamp}.log"
        return self._file_path

    def append(self, record: SkipRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file.

        Returns:
            The log file path, or None when nothing has ever been written
        """
        if not self._records:
            return self._file_path
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
