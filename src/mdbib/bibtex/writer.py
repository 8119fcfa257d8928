"""Render a :class:`Database` as canonical BibTeX text."""

from __future__ import annotations

import logging
from pathlib import Path

from .model import BracedText, Database, Entry, NumberText, Part, QuotedText, StringVar, Value

logger = logging.getLogger(__name__)

INDENT = "  "


def format_value(value: Value) -> str:
    """Render a value expression, joining concatenated parts with ``#``."""
    return " # ".join(_format_part(part) for part in value.parts)


def _format_part(part: Part) -> str:
    if isinstance(part, BracedText):
        return f"{{{part.text}}}"
    if isinstance(part, QuotedText):
        return f'"{part.text}"'
    if isinstance(part, NumberText):
        return part.text
    return part.name


def format_string_var(var: StringVar) -> str:
    # Variables are emitted sorted by name, so a definition that refers to
    # another variable is written out with its resolved text instead.
    value = var.value if var.value.is_literal else Value.braced(var.text)
    return f"@string{{ {var.name} = {format_value(value)} }}"


def format_entry(entry: Entry) -> str:
    lines = [f"@{entry.entry_type}{{{entry.key},"]
    fields = [f"{INDENT}{name} = {format_value(value)}" for name, value in entry.fields.items()]
    if fields:
        lines.append(",\n".join(fields))
    lines.append("}")
    return "\n".join(lines) + "\n\n"


def write_string(database: Database) -> str:
    """Return the canonical BibTeX rendering of ``database``.

    Preambles come first in their original order, then string variables
    sorted by name, then a blank line and the entries in database order.
    Equal databases always render to identical text.
    """
    header = [f"@preamble{{ {format_value(value)} }}" for value in database.preambles]
    header.extend(format_string_var(database.strings[name]) for name in sorted(database.strings))

    parts: list[str] = []
    if header:
        parts.append("\n".join(header) + "\n\n")
    parts.extend(format_entry(entry) for entry in database.entries)
    return "".join(parts)


def write_file(database: Database, path: str | Path) -> None:
    """Write ``database`` to ``path`` as UTF-8 with LF line endings."""
    path = Path(path)
    logger.debug("Writing %d entries to %s", len(database.entries), path)
    with open(path, "w", encoding="utf-8", newline="\n") as bib_file:
        bib_file.write(write_string(database))
