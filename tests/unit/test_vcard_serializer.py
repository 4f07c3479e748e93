from __future__ import annotations

import base64
from dataclasses import replace

import pytest

from sheetcard.models.contact import ContactRecord
from sheetcard.vcard.serializer import (
    clean_phone,
    escape_vcard_text,
    fits_qr_code,
    generate_vcard,
    generate_vcf_document,
    get_vcf_data_url,
    suggest_filename,
    to_vcf_bytes,
)

FULL = ContactRecord(
    first_name="Jane",
    last_name="Q. Public",
    full_name="Jane Q. Public",
    phone="555-1234",
    email="jane@x.com",
    company="Acme",
    notes="met at expo",
)


def _unescape(value: str) -> str:
    # 逆順で置換を戻す
    out = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "\\" and i + 1 < len(value):
            nxt = value[i + 1]
            out.append({"n": "\n", ";": ";", ",": ",", "\\": "\\"}[nxt])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def test_full_card_lines_in_order():
    lines = generate_vcard(FULL).split("\r\n")
    # BEGIN + VERSION marker, then N, FN, TEL, EMAIL, ORG, NOTE, END
    assert lines == [
        "BEGIN:VCARD",
        "VERSION:3.0",
        "N:Q. Public;Jane;;;",
        "FN:Jane Q. Public",
        "TEL;type=CELL:5551234",
        "EMAIL:jane@x.com",
        "ORG:Acme",
        "NOTE:met at expo",
        "END:VCARD",
    ]


def test_document_lines_are_all_crlf_terminated():
    doc = generate_vcf_document([FULL])
    assert doc.endswith("END:VCARD\r\n")
    body = doc[: -len("\r\n")]
    assert "\n" not in body.replace("\r\n", "")


@pytest.mark.parametrize(
    "field,prefix",
    [("phone", "TEL"), ("email", "EMAIL"), ("company", "ORG"), ("notes", "NOTE")],
)
def test_omitting_a_field_removes_exactly_its_line(field, prefix):
    full_lines = generate_vcard(FULL).split("\r\n")
    value = "" if field == "phone" else None
    lines = generate_vcard(replace(FULL, **{field: value})).split("\r\n")
    assert len(lines) == len(full_lines) - 1
    assert [l for l in full_lines if not l.startswith(prefix)] == lines


def test_email_without_at_is_omitted():
    card = generate_vcard(replace(FULL, email="not-an-email"))
    assert "EMAIL" not in card


def test_phone_without_digits_is_omitted():
    card = generate_vcard(replace(FULL, phone="n/a"))
    assert "TEL" not in card


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("+1 (555) 000-0000", "+15550000000"),
        ("12-34+56", "123456"),
        ("555-1234", "5551234"),
        ("  +44 20 7946 0000", "+442079460000"),
        ("++1", "1"),
        ("+", ""),
        ("ext.", ""),
        ("", ""),
        ("\uff10\uff19\uff10-\uff11\uff12\uff13\uff14", ""),
        ("+\u0669\u0666\u0666 5", "+5"),
    ],
)
def test_clean_phone(raw, expected):
    assert clean_phone(raw) == expected


def test_non_ascii_digits_omit_tel_line():
    # 全角数字はダイヤルできない
    card = generate_vcard(replace(FULL, phone="０９０-１２３４"))
    assert "TEL" not in card


@pytest.mark.parametrize("value", ["a\r\nb", "a\rb", "a\nb"])
def test_escape_normalises_carriage_returns(value):
    escaped = escape_vcard_text(value)
    assert escaped == "a\\nb"
    assert "\r" not in escaped
    # CR は LF として戻る
    assert _unescape(escaped) == "a\nb"


def test_escape_order_avoids_double_escaping():
    assert escape_vcard_text("a\\b;c,d\ne") == "a\\\\b\\;c\\,d\\ne"


@pytest.mark.parametrize("value", ["Doe; John", "Smith, Jr.", "back\\slash", "two\nlines", "\\;,\n\\n"])
def test_escape_is_reversible(value):
    assert _unescape(escape_vcard_text(value)) == value


def test_escaped_values_in_card():
    c = ContactRecord(first_name="A;B", last_name="C,D", full_name="A;B C,D", phone="", notes="x\ny")
    lines = generate_vcard(c).split("\r\n")
    assert "N:C\\,D;A\\;B;;;" in lines
    assert "FN:A\\;B C\\,D" in lines
    assert "NOTE:x\\ny" in lines


def test_two_card_document_framing():
    other = ContactRecord(first_name="Bob", last_name="", full_name="Bob", phone="1")
    doc = generate_vcf_document([FULL, other])
    assert doc == generate_vcard(FULL) + "\r\n\r\n" + generate_vcard(other) + "\r\n"


def test_empty_document():
    assert generate_vcf_document([]) == ""


def test_data_url_is_utf8_safe():
    c = ContactRecord(first_name="José", last_name="Müller", full_name="José Müller 王", phone="1")
    url = get_vcf_data_url([c])
    prefix = "data:text/vcard;base64,"
    assert url.startswith(prefix)
    decoded = base64.b64decode(url[len(prefix):]).decode("utf-8")
    assert decoded == generate_vcf_document([c])
    assert "FN:José Müller 王" in decoded
    assert to_vcf_bytes([c]) == decoded.encode("utf-8")


def test_suggest_filename_and_qr_policy():
    assert suggest_filename(3) == "contacts-3.vcf"
    assert suggest_filename(1, "leads") == "leads-1.vcf"
    assert fits_qr_code(5) is True
    assert fits_qr_code(6) is False
    assert fits_qr_code(0) is False
