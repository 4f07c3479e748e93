from __future__ import annotations

import base64
import json
from pathlib import Path

import pytest

from sheetcard.cli import main

SUMMARY_OK = "SUMMARY sources=1 success=1 failed=0 contacts=2 skipped_rows=1"


def _last_line(out: str) -> str:
    return out.strip().splitlines()[-1]


def test_cli_converts_csv(sample_csv: Path, temp_workdir: Path, capsys: pytest.CaptureFixture[str]):
    code = main([str(sample_csv)])
    out = capsys.readouterr().out

    assert code == 0
    vcf = temp_workdir / "out" / "leads-2.vcf"
    assert vcf.exists()
    text = vcf.read_bytes().decode("utf-8")
    assert text.startswith("BEGIN:VCARD\r\nVERSION:3.0\r\n")
    assert text.endswith("END:VCARD\r\n")
    assert "INFO Converting 1 source(s) into: out" in out
    assert _last_line(out).startswith(SUMMARY_OK)

    # 行スキップのみ記録される
    logs = list((temp_workdir / "logs").glob("skipped-*.log"))
    assert len(logs) == 1
    assert json.loads(logs[0].read_text(encoding="utf-8").splitlines()[0])["reason"] == "NO_NAME_OR_PHONE"


def test_cli_uses_config_file(write_config: Path, temp_workdir: Path, capsys):
    src = temp_workdir / "data" / "wa.csv"
    src.write_text("Name,WhatsApp\nAnn,+34 600 000 000\n", encoding="utf-8")
    code = main([str(src)])
    capsys.readouterr()
    assert code == 0
    text = (temp_workdir / "out" / "wa-1.vcf").read_text(encoding="utf-8")
    assert "TEL;type=CELL:+34600000000" in text


def test_cli_partial_failure(sample_csv: Path, temp_workdir: Path, capsys):
    empty = temp_workdir / "data" / "empty.csv"
    empty.write_text("", encoding="utf-8")
    code = main([str(sample_csv), str(empty), "--output-dir", "vcards"])
    out = capsys.readouterr().out

    assert code == 2
    assert (temp_workdir / "vcards" / "leads-2.vcf").exists()
    assert f"ERROR {empty}: CSV is empty" in out
    assert _last_line(out).startswith("SUMMARY sources=2 success=1 failed=1 contacts=2 skipped_rows=1")


def test_cli_no_sources_is_fatal(temp_workdir: Path, capsys):
    code = main([])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR no sources given" in out


@pytest.mark.parametrize("item", ["phone", "fax=Mobile"])
def test_cli_bad_map_option_is_fatal(sample_csv: Path, capsys, item: str):
    code = main([str(sample_csv), "--map", item])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR --map:" in out


def test_cli_map_override(sample_csv: Path, temp_workdir: Path, capsys):
    code = main([str(sample_csv), "--map", "email=none", "--map", "notes=Company"])
    capsys.readouterr()
    assert code == 0
    text = (temp_workdir / "out" / "leads-2.vcf").read_text(encoding="utf-8")
    assert "EMAIL" not in text
    assert "NOTE:Acme" in text


def test_cli_map_unknown_header_fails_source(sample_csv: Path, temp_workdir: Path, capsys):
    code = main([str(sample_csv), "--map", "phone=Fax"])
    out = capsys.readouterr().out
    assert code == 2
    assert "column not found" in out
    assert not (temp_workdir / "out").exists()


def test_cli_missing_explicit_config_is_fatal(sample_csv: Path, capsys):
    code = main([str(sample_csv), "--config", "config/nope.yml"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR config:" in out


def test_cli_invalid_config_is_fatal(sample_csv: Path, temp_workdir: Path, capsys):
    (temp_workdir / "config" / "sheetcard.yml").write_text("qr_max_contacts: lots\n", encoding="utf-8")
    code = main([str(sample_csv)])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR config: config validation failed" in out


def test_cli_inspect_data(sample_csv: Path, temp_workdir: Path, capsys):
    code = main([str(sample_csv), str(temp_workdir / "data" / "missing.csv"), "--inspect-data"])
    out = capsys.readouterr().out
    assert code == 2
    assert f"SOURCE: {sample_csv}" in out
    assert "headers=['Full Name', 'Mobile', 'Email Address', 'Company', 'Notes']" in out
    assert "valid=True" in out
    assert "rows=3" in out
    assert "read_error: file not found" in out
    assert not (temp_workdir / "out").exists()


def test_cli_data_uri_and_prefix(sample_csv: Path, temp_workdir: Path, capsys):
    code = main([str(sample_csv), "--data-uri", "--prefix", "Expo"])
    out = capsys.readouterr().out
    assert code == 0
    uri = next(line for line in out.splitlines() if line.startswith("data:text/vcard;base64,"))
    decoded = base64.b64decode(uri.split(",", 1)[1]).decode("utf-8")
    assert "FN:Expo - Jane Q. Public\r\n" in decoded
    assert decoded == (temp_workdir / "out" / "leads-2.vcf").read_text(encoding="utf-8", newline="")


def test_cli_data_uri_warns_over_qr_limit(temp_workdir: Path, capsys):
    src = temp_workdir / "data" / "many.csv"
    rows = "".join(f"P{i},{i}\n" for i in range(6))
    src.write_text("Name,Phone\n" + rows, encoding="utf-8")
    code = main([str(src), "--data-uri"])
    out = capsys.readouterr().out
    assert code == 0
    assert "WARN" in out and "qr_max_contacts=5" in out


def test_cli_env_file_sets_output_dir(sample_csv: Path, temp_workdir: Path, monkeypatch, capsys):
    # .env は上書きモード; monkeypatch に元の値を覚えさせておく
    monkeypatch.setenv("SHEETCARD_OUTPUT_DIR", "from-process")
    (temp_workdir / ".env").write_text("SHEETCARD_OUTPUT_DIR=from-dotenv\n", encoding="utf-8")
    code = main([str(sample_csv)])
    capsys.readouterr()
    assert code == 0
    assert (temp_workdir / "from-dotenv" / "leads-2.vcf").exists()


def test_cli_output_dir_flag_wins_over_env(sample_csv: Path, temp_workdir: Path, monkeypatch, capsys):
    monkeypatch.setenv("SHEETCARD_OUTPUT_DIR", "from-env")
    code = main([str(sample_csv), "--output-dir", "flag"])
    capsys.readouterr()
    assert code == 0
    assert (temp_workdir / "flag" / "leads-2.vcf").exists()
    assert not (temp_workdir / "from-env").exists()


def test_cli_debug_flag(sample_csv: Path, capsys):
    code = main([str(sample_csv), "--debug"])
    out = capsys.readouterr().out
    assert code == 0
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG source=" in out
