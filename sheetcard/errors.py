from __future__ import annotations

"""Exception taxonomy for the spreadsheet -> vCard converter.

Ingestion and remote-fetch failures are fatal for the source being processed;
per-row problems never raise (they degrade to omitted fields instead).
"""

__all__ = [
    "SheetcardError",
    "ParseError",
    "MappingValidationError",
    "ConfigError",
    "RemoteFetchError",
    "InvalidSheetUrlError",
    "SheetNotFoundError",
    "SheetAccessError",
    "EmptySheetError",
]


class SheetcardError(Exception):
    """Base exception for all converter errors."""


class ParseError(SheetcardError):
    """Raised when the input is empty or cannot be decoded as CSV / workbook."""


class MappingValidationError(SheetcardError):
    """Raised when neither the name nor the phone column is selected."""


class ConfigError(SheetcardError):
    pass


class RemoteFetchError(SheetcardError):
    """Network / sharing / availability failure while fetching a remote sheet.

    ``status_code`` mirrors the HTTP status the failure corresponds to so that
    callers exposing an HTTP surface can pass it through unchanged.
    """

    default_status = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code if status_code is not None else self.default_status


class InvalidSheetUrlError(RemoteFetchError):
    default_status = 400


class SheetNotFoundError(RemoteFetchError):
    default_status = 404


class SheetAccessError(RemoteFetchError):
    """Sheet exists but is not shared publicly (export blocked)."""


class EmptySheetError(RemoteFetchError):
    default_status = 400
