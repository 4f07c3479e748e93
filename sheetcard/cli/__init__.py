"""Command line interface (``sheetcard`` / ``python -m sheetcard.cli``)."""

from .__main__ import main

__all__ = ["main"]
