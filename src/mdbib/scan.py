"""Collect ``[@key]`` citations from a directory of Markdown files."""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from .report import FILE_OPEN_FAILED, Reporter

logger = logging.getLogger(__name__)

CITEKEY = r"[A-Za-z0-9](?:-?[A-Za-z0-9])*"

# [@key] or [@key1; @key2; ...]; a group never spans lines
CITATION_PATTERN = re.compile(rf"\[(@{CITEKEY}(?:;\s+@{CITEKEY})*)\]")

MARKDOWN_SUFFIX = ".md"


@dataclass
class ScanResult:
    """Citation counts and the Markdown files they were collected from."""

    citations: Counter[str] = field(default_factory=Counter)
    files: list[Path] = field(default_factory=list)


def find_markdown_files(src_dir: Path) -> list[Path]:
    """Return the ``.md`` files directly inside ``src_dir``, sorted by name.

    A missing directory yields an empty list.
    """
    if not src_dir.is_dir():
        logger.debug("Markdown source directory does not exist: %s", src_dir)
        return []
    return sorted(
        (path for path in src_dir.iterdir() if path.suffix == MARKDOWN_SUFFIX and path.is_file()),
        key=lambda path: path.name,
    )


def scan_line(line: str) -> list[str]:
    """Return the citation keys on one line, in order of appearance."""
    keys: list[str] = []
    for match in CITATION_PATTERN.finditer(line):
        for fragment in match.group(1).split(";"):
            key = fragment.strip().lstrip("@")
            if key:
                keys.append(key)
    return keys


def scan_file(path: Path) -> Counter[str]:
    """Count the citations in one Markdown file.

    Raises:
        OSError: If the file cannot be read
    """
    counts: Counter[str] = Counter()
    with open(path, encoding="utf-8", errors="replace") as md_file:
        for line in md_file:
            counts.update(scan_line(line))
    return counts


def scan_files(paths: list[Path], reporter: Reporter | None = None) -> ScanResult:
    """Count the cited keys across ``paths``, in the given order.

    Files that cannot be read are reported and skipped.
    """
    reporter = reporter if reporter is not None else Reporter()
    result = ScanResult()

    for path in paths:
        reporter.info("processing: %s", path)
        try:
            counts = scan_file(path)
        except OSError as exc:
            reporter.warn(FILE_OPEN_FAILED, "Cannot read %s: %s", path, exc)
            continue
        result.citations.update(counts)
        result.files.append(path)

    logger.debug(
        "Found %d distinct citation keys in %d files", len(result.citations), len(result.files)
    )
    return result


def scan_markdown(src_dir: Path, reporter: Reporter | None = None) -> ScanResult:
    """Scan every Markdown file directly inside ``src_dir``."""
    return scan_files(find_markdown_files(src_dir), reporter=reporter)
