from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from sheetcard.config.loader import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, load_config
from sheetcard.errors import SheetcardError
from sheetcard.logging.error_log import ErrorLogBuffer
from sheetcard.logging.init import log_summary, set_debug, setup_logging
from sheetcard.models.table import FIELDS
from sheetcard.services.converter import ConversionOutcome, apply_overrides, load_source, process_all
from sheetcard.services.summary import render_summary_line
from sheetcard.vcard.serializer import fits_qr_code, get_vcf_data_url

"""CLI entrypoint.

Flow:
- Load .env (override mode) and the YAML config
- Convert every SOURCE (CSV / XLSX / XLS path or Google Sheets URL) to a .vcf
- Print the SUMMARY line and exit with 0 (all ok), 2 (some source failed) or 1 (fatal)
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

INSPECT_SAMPLE_ROWS = 3


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; values in .env win over the process env."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sheetcard", description="Spreadsheet -> vCard (.vcf) converter")
    p.add_argument("sources", nargs="*", help="CSV / XLSX / XLS file or Google Sheets URL")
    p.add_argument("--config", help=f"YAML config path (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--output-dir", help="Directory for generated .vcf files")
    p.add_argument("--prefix", help="Label prepended to every display name as '<prefix> - <name>'")
    p.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="FIELD=COLUMN",
        help=f"Override a column binding; FIELD in {', '.join(FIELDS)}; COLUMN is an index, header text or 'none'",
    )
    p.add_argument("--data-uri", action="store_true", help="Print a data: URI of each generated document")
    p.add_argument("--inspect-data", action="store_true", help="Print headers, suggested mapping & first rows then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _parse_overrides(items: list[str]) -> dict[str, str]:
    """Parse repeated ``FIELD=COLUMN`` options.

    Raises:
        ValueError: malformed item or unknown field
    """
    overrides: dict[str, str] = {}
    for item in items:
        field, sep, column = item.partition("=")
        field = field.strip().lower()
        if not sep:
            raise ValueError(f"expected FIELD=COLUMN, got {item!r}")
        if field not in FIELDS:
            raise ValueError(f"unknown field {field!r} (choose from {', '.join(FIELDS)})")
        overrides[field] = column
    return overrides


def _resolve_config_path(arg: str | None) -> tuple[Path, bool]:
    # 明示指定 (--config / SHEETCARD_CONFIG) のみ必須扱い
    explicit = arg or os.getenv("SHEETCARD_CONFIG")
    if explicit:
        return Path(explicit), True
    return DEFAULT_CONFIG_PATH, False


def _inspect_data(sources: list[str], cfg: AppConfig, overrides: dict[str, str]) -> int:
    code = EXIT_SUCCESS_ALL
    patterns = cfg.compiled_patterns()
    for source in sources:
        print(f"SOURCE: {source}")
        try:
            parsed = load_source(source, cfg, patterns)
            mapping = apply_overrides(parsed.suggested_mapping, parsed.headers, overrides)
        except SheetcardError as e:
            print(f"  read_error: {e}")
            code = EXIT_PARTIAL_FAILURE
            continue
        print(f"  headers={parsed.headers}")
        print(f"  mapping={mapping.as_dict()} valid={mapping.is_valid}")
        print(f"  rows={len(parsed.rows)} sample_rows={parsed.rows[:INSPECT_SAMPLE_ROWS]}")
    return code


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで main([]) を呼べるように)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug()

    config_path, required = _resolve_config_path(args.config)
    try:
        cfg = load_config(config_path, required=required)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        overrides = _parse_overrides(args.map)
    except ValueError as e:
        logger.error(f"--map: {e}")
        return EXIT_FATAL

    if not args.sources:
        logger.error("no sources given")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(args.sources, cfg, overrides)

    output_dir = Path(args.output_dir or os.getenv("SHEETCARD_OUTPUT_DIR") or cfg.output_directory)
    logger.info(f"Converting {len(args.sources)} source(s) into: {output_dir}")

    def _report(outcome: ConversionOutcome) -> None:
        if not args.data_uri:
            return
        print(get_vcf_data_url(outcome.contacts))
        if outcome.contacts and not fits_qr_code(len(outcome.contacts), cfg.qr_max_contacts):
            logger.warning(
                f"{outcome.source}: {len(outcome.contacts)} contacts exceed "
                f"qr_max_contacts={cfg.qr_max_contacts}; data URI too large for a QR code"
            )

    result = process_all(
        args.sources,
        cfg,
        overrides=overrides,
        label_prefix=args.prefix,
        output_dir=output_dir,
        error_log=ErrorLogBuffer(),
        on_success=_report,
    )

    log_summary(render_summary_line(result).removeprefix("SUMMARY "))

    if result.failed_sources > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
