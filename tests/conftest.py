# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from sheetcard.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("SHEETCARD_CONFIG", raising=False)
        monkeypatch.delenv("SHEETCARD_OUTPUT_DIR", raising=False)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """output_directory: ./out
label_prefix: ""
qr_max_contacts: 5
remote:
  timeout_seconds: 3
header_patterns:
  phone: ["whats\\\\s*app"]
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "sheetcard.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sample_csv_text() -> str:
    return (
        "Full Name,Mobile,Email Address,Company,Notes\n"
        "Jane Q. Public,555-1234,jane@x.com,Acme,met at expo\n"
        ",,,,\n"
        "Bob,+1 (555) 000-0000,,,\n"
        ",,,Orphan Corp,\n"
    )


@pytest.fixture()
def sample_csv(temp_workdir: Path, sample_csv_text: str) -> Path:
    p = temp_workdir / "data" / "leads.csv"
    p.write_text(sample_csv_text, encoding="utf-8")
    return p


def make_workbook(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    with pd.ExcelWriter(path) as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


@pytest.fixture()
def workbook_factory(temp_workdir: Path):
    def _factory(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        return make_workbook(temp_workdir / "data" / name, sheets)
    return _factory
