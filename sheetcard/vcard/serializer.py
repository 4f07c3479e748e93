from __future__ import annotations

import base64
import re
from collections.abc import Sequence

from ..models.contact import ContactRecord

"""vCard serialization.

Framing rules:
- every line inside a card ends with CRLF
- cards are separated by exactly one blank line
- the document ends with a trailing CRLF

Card layout, in order: BEGIN, VERSION, N, FN, TEL?, EMAIL?, ORG?, NOTE?, END.
Optional lines are omitted entirely, never emitted empty.
"""

__all__ = [
    "LINE_BREAK",
    "QR_MAX_CONTACTS",
    "VCARD_VERSION",
    "VCF_MEDIA_TYPE",
    "clean_phone",
    "escape_vcard_text",
    "fits_qr_code",
    "generate_vcard",
    "generate_vcf_document",
    "get_vcf_data_url",
    "suggest_filename",
    "to_vcf_bytes",
]

VCARD_VERSION = "3.0"
LINE_BREAK = "\r\n"
CARD_SEPARATOR = LINE_BREAK * 2
VCF_MEDIA_TYPE = "text/vcard"
TEL_PREFIX = "TEL;type=CELL:"
QR_MAX_CONTACTS = 5

_NON_PHONE = re.compile(r"[^0-9+]")
_DIGIT = re.compile(r"[0-9]")


def escape_vcard_text(value: str) -> str:
    """Escape a text value: backslash, semicolon, comma, newline (in that order)."""
    text = value.replace("\r\n", "\n").replace("\r", "\n")
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def clean_phone(value: str | None) -> str:
    """Keep ASCII digits and a strictly leading '+'; "" when no digit remains.

    >>> clean_phone("+1 (555) 000-0000")
    '+15550000000'
    >>> clean_phone("12-34+56")
    '123456'
    """
    if not value:
        return ""
    cleaned = _NON_PHONE.sub("", value)
    # 先頭以外に '+' があれば全ての '+' を無効化
    if "+" in cleaned[1:]:
        cleaned = cleaned.replace("+", "")
    if not _DIGIT.search(cleaned):
        return ""
    return cleaned


def generate_vcard(contact: ContactRecord) -> str:
    """Render one contact as a card (lines joined by CRLF, no trailing CRLF)."""
    lines = [
        "BEGIN:VCARD",
        f"VERSION:{VCARD_VERSION}",
        f"N:{escape_vcard_text(contact.last_name)};{escape_vcard_text(contact.first_name)};;;",
        f"FN:{escape_vcard_text(contact.full_name)}",
    ]

    phone = clean_phone(contact.phone)
    if phone:
        lines.append(f"{TEL_PREFIX}{phone}")

    if contact.email and "@" in contact.email:
        lines.append(f"EMAIL:{escape_vcard_text(contact.email)}")

    if contact.company:
        lines.append(f"ORG:{escape_vcard_text(contact.company)}")

    if contact.notes:
        lines.append(f"NOTE:{escape_vcard_text(contact.notes)}")

    lines.append("END:VCARD")
    return LINE_BREAK.join(lines)


def generate_vcf_document(contacts: Sequence[ContactRecord]) -> str:
    """Concatenate cards with one blank line between them and a trailing CRLF."""
    if not contacts:
        return ""
    return CARD_SEPARATOR.join(generate_vcard(c) for c in contacts) + LINE_BREAK


def to_vcf_bytes(contacts: Sequence[ContactRecord]) -> bytes:
    """UTF-8 payload for download / share collaborators."""
    return generate_vcf_document(contacts).encode("utf-8")


def get_vcf_data_url(contacts: Sequence[ContactRecord]) -> str:
    # str -> UTF-8 bytes -> base64 (直接 base64 すると多バイト文字が壊れる)
    payload = base64.b64encode(to_vcf_bytes(contacts)).decode("ascii")
    return f"data:{VCF_MEDIA_TYPE};base64,{payload}"


def suggest_filename(count: int, stem: str = "contacts") -> str:
    return f"{stem}-{count}.vcf"


def fits_qr_code(count: int, limit: int = QR_MAX_CONTACTS) -> bool:
    """Whether a document of ``count`` contacts is small enough to offer as a QR code."""
    return 0 < count <= limit
