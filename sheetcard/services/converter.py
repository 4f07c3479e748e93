from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import AppConfig
from ..errors import MappingValidationError, ParseError, RemoteFetchError
from ..ingest.reader import PatternTable, parse_file
from ..logging.error_log import ErrorLogBuffer
from ..mapping.row_mapper import apply_label_prefix, iter_mapped_rows, validate_mapping
from ..models.contact import ContactRecord
from ..models.processing_result import FileStat, ProcessingResult
from ..models.skip_record import SOURCE_LEVEL_ROW, SkipRecord
from ..models.table import FIELDS, FieldMapping, ParsedSheet
from ..remote.google_sheets import extract_sheet_id, fetch_sheet, is_sheet_url
from ..vcard.serializer import clean_phone, generate_vcf_document, suggest_filename
from .progress import ProgressTracker

"""Conversion service.

Sequences the pipeline for each source (file path or Google Sheets URL):
load -> mapping (suggested + overrides) -> gate -> rows -> label prefix ->
vCard document -> .vcf file. A failing source is logged, recorded in the
skip log with row=-1 and counted as failed; the run moves on to the next one.
"""

__all__ = [
    "ConversionOutcome",
    "apply_overrides",
    "convert_source",
    "load_source",
    "process_all",
    "resolve_column",
    "source_stem",
]

logger = logging.getLogger(__name__)

UNMAPPED_TOKENS = {"", "none", "-"}


@dataclass(frozen=True)
class ConversionOutcome:
    """Everything produced for one source."""
    source: str
    mapping: FieldMapping
    contacts: list[ContactRecord]  # label prefix 適用済み
    document: str
    skipped_rows: int
    output_path: Path | None = None


def resolve_column(headers: Sequence[str], ref: str | int | None) -> int | None:
    """Resolve a column reference to an index.

    ``ref`` may be an index (int or digit string), a header text (trimmed,
    case-insensitive, first match) or an unmapped token ("none", "-", "").

    Raises:
        MappingValidationError: header text not present
    """
    if ref is None or isinstance(ref, int):
        return ref
    text = ref.strip()
    if text.lower() in UNMAPPED_TOKENS:
        return None
    if text.isdigit():
        return int(text)
    wanted = text.casefold()
    for i, header in enumerate(headers):
        if (header or "").strip().casefold() == wanted:
            return i
    raise MappingValidationError(f"column not found: {ref!r} (headers: {list(headers)})")


def apply_overrides(
    mapping: FieldMapping,
    headers: Sequence[str],
    overrides: Mapping[str, str | int | None] | None,
) -> FieldMapping:
    """Return ``mapping`` with caller-chosen bindings replacing the suggested ones."""
    if not overrides:
        return mapping
    for field, ref in overrides.items():
        if field not in FIELDS:
            raise MappingValidationError(f"unknown field: {field}")
        mapping = mapping.with_field(field, resolve_column(headers, ref))
    return mapping


def source_stem(source: str) -> str:
    """Output file stem: ``sheet-<id>`` for URLs, the file stem otherwise."""
    if is_sheet_url(source):
        return f"sheet-{extract_sheet_id(source)}"
    return Path(source).stem or "contacts"


def _is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load_source(source: str, cfg: AppConfig, patterns: PatternTable | None = None) -> ParsedSheet:
    """Parse a local file, or fetch any http(s) source as a Google Sheet."""
    if _is_remote(source):
        return fetch_sheet(source, timeout=cfg.remote.timeout_seconds, patterns=patterns)
    return parse_file(Path(source), patterns)


def _map_rows(
    source: str,
    rows: Sequence[Sequence[str]],
    mapping: FieldMapping,
    error_log: ErrorLogBuffer | None,
) -> tuple[list[ContactRecord], int]:
    """map_all_rows with skip-log diagnostics; returns (contacts, dropped_rows)."""
    contacts: list[ContactRecord] = []
    dropped = 0
    for row_no, contact in iter_mapped_rows(rows, mapping):
        if contact is None:
            dropped += 1
            if error_log is not None:
                error_log.append(
                    SkipRecord.create(source, row_no, "NO_NAME_OR_PHONE", "row has neither name nor phone")
                )
            continue
        if error_log is not None:
            if contact.phone and not clean_phone(contact.phone):
                error_log.append(
                    SkipRecord.create(source, row_no, "PHONE_OMITTED", f"no digits in phone {contact.phone!r}")
                )
            if contact.email and "@" not in contact.email:
                error_log.append(
                    SkipRecord.create(source, row_no, "EMAIL_OMITTED", f"email without '@': {contact.email!r}")
                )
        contacts.append(contact)
    return contacts, dropped


def _claim_output_path(output_dir: Path, count: int, stem: str, taken: set[Path] | None) -> Path:
    """``<stem>-<count>.vcf``, or ``<stem>-<count>-<n>.vcf`` when an earlier source of the run holds that name."""
    path = output_dir / suggest_filename(count, stem)
    if taken is None:
        return path
    n = 2
    while path in taken:
        path = output_dir / f"{stem}-{count}-{n}.vcf"
        n += 1
    taken.add(path)
    return path


def convert_source(
    source: str,
    cfg: AppConfig,
    *,
    overrides: Mapping[str, str | int | None] | None = None,
    label_prefix: str | None = None,
    output_dir: Path | None = None,
    error_log: ErrorLogBuffer | None = None,
    taken_paths: set[Path] | None = None,
) -> ConversionOutcome:
    """Convert one source; writes ``<output_dir>/<stem>-<count>.vcf`` when output_dir is given.

    ``taken_paths`` holds the files already written in this run; a clashing
    name gets a ``-<n>`` suffix and the new path is added to the set.

    Raises:
        ParseError: source unreadable / empty
        RemoteFetchError: remote sheet could not be fetched
        MappingValidationError: bad override, or neither name nor phone mapped
        OSError: output file could not be written
    """
    patterns = cfg.compiled_patterns()
    parsed = load_source(source, cfg, patterns)
    mapping = apply_overrides(parsed.suggested_mapping, parsed.headers, overrides)
    validate_mapping(mapping)
    logger.debug("source=%s mapping=%s", source, mapping.as_dict())

    contacts, dropped = _map_rows(source, parsed.rows, mapping, error_log)
    prefix = label_prefix if label_prefix is not None else cfg.label_prefix
    prefixed = apply_label_prefix(contacts, prefix)
    document = generate_vcf_document(prefixed)

    output_path: Path | None = None
    if output_dir is not None and prefixed:
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = _claim_output_path(output_dir, len(prefixed), source_stem(source), taken_paths)
        output_path.write_bytes(document.encode("utf-8"))
        logger.info(f"wrote {len(prefixed)} contacts to {output_path}")
    elif not prefixed:
        logger.warning(f"no contacts in {source} (rows={len(parsed.rows)})")

    return ConversionOutcome(
        source=source,
        mapping=mapping,
        contacts=prefixed,
        document=document,
        skipped_rows=dropped,
        output_path=output_path,
    )


def _failure_reason(exc: Exception) -> str:
    if isinstance(exc, ParseError):
        return "PARSE_ERROR"
    if isinstance(exc, RemoteFetchError):
        return "REMOTE_FETCH_ERROR"
    if isinstance(exc, MappingValidationError):
        return "MAPPING_INVALID"
    return "WRITE_ERROR"


def process_all(
    sources: Sequence[str],
    cfg: AppConfig,
    *,
    overrides: Mapping[str, str | int | None] | None = None,
    label_prefix: str | None = None,
    output_dir: Path | None = None,
    error_log: ErrorLogBuffer | None = None,
    on_success: Callable[[ConversionOutcome], None] | None = None,
) -> ProcessingResult:
    """Convert every source in order and aggregate the results.

    Args:
        sources: File paths and/or Google Sheets URLs
        cfg: Loaded application config
        overrides: field -> column reference applied on top of the suggestion
        label_prefix: Overrides cfg.label_prefix when not None
        output_dir: Where .vcf files go (None = do not write)
        error_log: Skip log buffer; flushed before returning
        on_success: Called with each successful outcome (e.g. print a data URI)

    Returns:
        ProcessingResult with per-source FileStat entries
    """
    start_time = datetime.now(UTC)
    file_stats: list[FileStat] = []
    written: set[Path] = set()

    with ProgressTracker(len(sources)) as progress:
        for source in sources:
            progress.start_source(source if _is_remote(source) else Path(source).name)
            t0 = datetime.now(UTC)
            try:
                outcome = convert_source(
                    source,
                    cfg,
                    overrides=overrides,
                    label_prefix=label_prefix,
                    output_dir=output_dir,
                    error_log=error_log,
                    taken_paths=written,
                )
            except (ParseError, RemoteFetchError, MappingValidationError, OSError) as e:
                logger.error(f"{source}: {e}")
                if error_log is not None:
                    error_log.append(SkipRecord.create(source, SOURCE_LEVEL_ROW, _failure_reason(e), str(e)))
                file_stats.append(
                    FileStat(
                        source=source,
                        status="failed",
                        contacts=0,
                        skipped_rows=0,
                        elapsed_seconds=(datetime.now(UTC) - t0).total_seconds(),
                        error=str(e),
                    )
                )
                progress.finish_source(0)
                continue

            if on_success is not None:
                on_success(outcome)
            file_stats.append(
                FileStat(
                    source=source,
                    status="success",
                    contacts=len(outcome.contacts),
                    skipped_rows=outcome.skipped_rows,
                    elapsed_seconds=(datetime.now(UTC) - t0).total_seconds(),
                    output_path=str(outcome.output_path) if outcome.output_path else None,
                )
            )
            progress.finish_source(len(outcome.contacts))

    if error_log is not None:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"skip log: {log_path}")

    end_time = datetime.now(UTC)
    succeeded = [s for s in file_stats if s.status == "success"]
    return ProcessingResult(
        success_sources=len(succeeded),
        failed_sources=len(file_stats) - len(succeeded),
        total_contacts=sum(s.contacts for s in succeeded),
        skipped_rows=sum(s.skipped_rows for s in succeeded),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=file_stats,
    )
