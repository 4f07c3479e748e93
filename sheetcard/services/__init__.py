"""Conversion orchestration, progress display and run summary."""
