"""Logging setup and the JSON Lines skip log."""
