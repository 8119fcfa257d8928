"""Extract the references cited in Markdown manuscripts from a master .bib file."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from .bibtex import Database, parse_file, write_file
from .exceptions import (
    BadArgsError,
    BadMasterBibError,
    BibtexError,
    NoInputsError,
    WriteFailedError,
)
from .report import MISSING_KEY, Reporter
from .scan import find_markdown_files, scan_files

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ExtractionReport:
    """Summary of one extraction run."""

    files: list[Path]
    citations: Counter[str]
    written: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


def load_master_bib(src_bib: Path, reporter: Reporter) -> Database:
    """Parse the master .bib file, failing on any lexical or structural error.

    Raises:
        BadMasterBibError: If the file cannot be read or contains malformed blocks
    """
    try:
        database = parse_file(src_bib, reporter=reporter)
    except OSError as exc:
        raise BadMasterBibError(f"Cannot read {src_bib}: {exc}") from exc
    except BibtexError as exc:
        raise BadMasterBibError(f"{src_bib} not loaded due to error: {exc}") from exc

    if database.failed_blocks:
        details = "; ".join(str(error) for error in database.failed_blocks)
        raise BadMasterBibError(
            f"{src_bib} not loaded due to {len(database.failed_blocks)} error(s): {details}"
        )
    return database


def select_cited(
    database: Database, citations: Counter[str], reporter: Reporter
) -> tuple[Database, list[str]]:
    """Build a sorted database holding only the cited entries of ``database``.

    Preambles and string variables are carried over unchanged. Returns the
    new database and the cited keys that have no entry.
    """
    selected = Database()
    selected.preambles = database.preambles
    selected.strings = database.strings

    missing: list[str] = []
    for key in citations:
        entry = database.lookup(key)
        if entry is None:
            reporter.warn(MISSING_KEY, "Reference key: %s not found in master .bib file", key)
            missing.append(key)
            continue
        selected.append(entry)

    selected.sort()
    return selected, missing


def extract_cited_references(
    src_dir: str | Path,
    src_bib: str | Path | None,
    out_bib: str | Path,
    verbose: bool = False,
    reporter: Reporter | None = None,
) -> ExtractionReport:
    """Write the entries of ``src_bib`` cited as ``[@key]`` in ``src_dir/*.md`` to ``out_bib``.

    The output holds the master file's preambles and string variables and the
    cited entries sorted by type and key, so a document processor can resolve
    references without reading the whole master database. Cited keys missing
    from the master file are reported as warnings and skipped.

    Args:
        src_dir: Directory whose immediate ``.md`` files are scanned
        src_bib: Master BibTeX database
        out_bib: Output file, created or overwritten
        verbose: Report each scanned file and the final citation counts
        reporter: Sink for progress and warnings (a new one is created if omitted);
            ``verbose=True`` switches a given reporter to verbose mode

    Returns:
        :class:`ExtractionReport` describing the run

    Raises:
        BadArgsError: If ``src_bib`` or ``out_bib`` is empty
        BadMasterBibError: If the master file cannot be read or parsed
        NoInputsError: If ``src_dir`` holds no Markdown files
        WriteFailedError: If ``out_bib`` cannot be written
    """
    if src_bib is None or not str(src_bib).strip():
        raise BadArgsError("Source .bib file must be specified")
    if not str(out_bib).strip():
        raise BadArgsError("Output .bib file must be specified")

    if reporter is None:
        reporter = Reporter(verbose=verbose)
    elif verbose:
        reporter.verbose = True
    src_dir, src_bib, out_bib = Path(src_dir), Path(src_bib), Path(out_bib)

    master = load_master_bib(src_bib, reporter)
    logger.debug("Loaded %d entries from %s", len(master), src_bib)

    md_files = find_markdown_files(src_dir)
    if not md_files:
        raise NoInputsError(f"No .md files found in: {src_dir}")

    scan = scan_files(md_files, reporter=reporter)
    reporter.info(
        "cites: %s", ", ".join(f"{key}: {count}" for key, count in sorted(scan.citations.items()))
    )

    selected, missing = select_cited(master, scan.citations, reporter)

    try:
        write_file(selected, out_bib)
    except OSError as exc:
        raise WriteFailedError(f"Cannot write {out_bib}: {exc}") from exc

    logger.debug(
        "Wrote %d of %d cited references to %s", len(selected), len(scan.citations), out_bib
    )
    return ExtractionReport(
        files=scan.files,
        citations=scan.citations,
        written=[entry.key for entry in selected.entries],
        missing=missing,
    )
