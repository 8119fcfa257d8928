"""Custom exception types for mdbib operations."""


class MdbibError(Exception):
    """Base exception for all mdbib operations."""


class BibtexError(MdbibError):
    """Base exception for problems found while reading BibTeX input."""

    def __init__(self, offset: int, message: str, line: int | None = None) -> None:
        self.offset = offset
        self.message = message
        self.line = line
        location = f"line {line}" if line is not None else f"offset {offset}"
        super().__init__(f"{location}: {message}")


class LexError(BibtexError):
    """Raised when the input cannot be split into BibTeX tokens."""


class ParseError(BibtexError):
    """Raised when BibTeX tokens do not form a valid block."""


class DuplicateKeyError(MdbibError):
    """Raised when an entry key is already present in a database."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Duplicate citation key: {key}")


class ExtractError(MdbibError):
    """Base exception for fatal citation extraction failures."""


class BadArgsError(ExtractError):
    """Raised when the extractor is called with unusable arguments."""


class NoInputsError(ExtractError):
    """Raised when the source directory holds no Markdown files."""


class BadMasterBibError(ExtractError):
    """Raised when the master .bib file cannot be read or parsed."""


class WriteFailedError(ExtractError):
    """Raised when the output .bib file cannot be written."""
