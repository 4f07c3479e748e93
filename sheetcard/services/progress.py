from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

A single bar counts converted sources. In non-TTY environments (CI, pipes)
no bar is created so the labeled log lines stay clean.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress tracker over the sources of one CLI run."""

    def __init__(self, total_sources: int, *, description: str = "Converting") -> None:
        self.total_sources = total_sources
        self.description = description
        self.current_source = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_sources,
                desc=description,
                unit="source",
                leave=True,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_source(self, label: str) -> None:
        """Show ``label`` (file name / sheet id) next to the bar description."""
        self.current_source += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({label})")

    def finish_source(self, contacts: int = 0) -> None:
        if self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)
            self.pbar.set_postfix(contacts=contacts)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
