"""Progress and warning sink shared by the parser, scanner and extractor."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

MISSING_KEY = "MissingKey"
UNBOUND_STRING_VAR = "UnboundStringVar"
DUPLICATE_KEY = "DuplicateKey"
FILE_OPEN_FAILED = "FileOpenFailed"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single non-fatal warning raised during extraction."""

    kind: str
    message: str


@dataclass
class Reporter:
    """Two-level sink: ``info`` is emitted in verbose mode only, ``warn`` always.

    Messages are written through ``logger`` and warnings are also kept in
    ``diagnostics`` so callers can inspect them after a run. Warnings never
    change the outcome of an operation.
    """

    verbose: bool = False
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("mdbib"))
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def info(self, message: str, *args: object) -> None:
        if self.verbose:
            self.logger.info(message, *args)

    def warn(self, kind: str, message: str, *args: object) -> None:
        text = message % args if args else message
        self.diagnostics.append(Diagnostic(kind=kind, message=text))
        self.logger.warning("%s: %s", kind, text)

    def warnings_of(self, kind: str) -> list[str]:
        """Return the messages of all recorded warnings of ``kind``."""
        return [d.message for d in self.diagnostics if d.kind == kind]
