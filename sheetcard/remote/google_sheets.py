from __future__ import annotations

import logging
import re

import requests

from ..errors import (
    EmptySheetError,
    InvalidSheetUrlError,
    RemoteFetchError,
    SheetAccessError,
    SheetNotFoundError,
)
from ..ingest.reader import PatternTable, parse_csv
from ..models.table import ParsedSheet

"""Google Sheets CSV export fetch.

Only publicly shared sheets ("Anyone with the link") can be exported without
credentials. One GET per call, no retry; the failure is raised to the caller
as a RemoteFetchError subclass carrying an HTTP-equivalent status code.
"""

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "build_export_url",
    "extract_gid",
    "extract_sheet_id",
    "fetch_sheet",
    "fetch_sheet_csv",
    "is_sheet_url",
]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0
EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv"

_SHEET_ID = re.compile(r"/spreadsheets/d/([a-zA-Z0-9_-]+)")
_GID = re.compile(r"[#?&]gid=(\d+)")


def is_sheet_url(value: str) -> bool:
    return value.startswith(("http://", "https://")) and "/spreadsheets/d/" in value


def extract_sheet_id(url: str | None) -> str:
    if not url:
        raise InvalidSheetUrlError("URL is required")
    m = _SHEET_ID.search(url)
    if not m:
        raise InvalidSheetUrlError("Invalid Google Sheets URL")
    return m.group(1)


def extract_gid(url: str) -> str | None:
    m = _GID.search(url)
    return m.group(1) if m else None


def build_export_url(sheet_id: str, gid: str | None = None) -> str:
    url = EXPORT_URL.format(sheet_id=sheet_id)
    if gid is not None:
        url += f"&gid={gid}"
    return url


def fetch_sheet_csv(url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> str:
    """Fetch the CSV export of a public sheet.

    Args:
        url: Any Google Sheets URL containing ``/spreadsheets/d/<id>``
        timeout: Request timeout in seconds

    Returns:
        CSV text of the exported sheet

    Raises:
        InvalidSheetUrlError: no sheet id in the URL (400)
        SheetNotFoundError: export returned 404
        SheetAccessError: any other non-2xx status (sheet not public)
        EmptySheetError: export body is blank (400)
        RemoteFetchError: transport failure (500)
    """
    sheet_id = extract_sheet_id(url)
    export_url = build_export_url(sheet_id, extract_gid(url))
    logger.debug("fetching %s", export_url)
    try:
        response = requests.get(export_url, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise RemoteFetchError(f"Failed to fetch Google Sheet: {e}") from e

    if not response.ok:
        if response.status_code == 404:
            raise SheetNotFoundError("Sheet not found. Make sure it's publicly accessible.")
        raise SheetAccessError(
            "Failed to fetch sheet. Ensure it's shared publicly (Anyone with the link).",
            status_code=response.status_code,
        )

    # export は UTF-8 固定 (ヘッダに charset が無い場合 requests は latin-1 を推測する)
    response.encoding = "utf-8"
    text = response.text
    if not text.strip():
        raise EmptySheetError("Sheet appears to be empty")
    return text


def fetch_sheet(
    url: str,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    patterns: PatternTable | None = None,
) -> ParsedSheet:
    """Fetch a public sheet and run it through the CSV ingestion path."""
    return parse_csv(fetch_sheet_csv(url, timeout=timeout), patterns)
