"""Build a :class:`Database` from BibTeX source text."""

from __future__ import annotations

import logging
from pathlib import Path

from ..exceptions import DuplicateKeyError, LexError, ParseError
from ..report import DUPLICATE_KEY, UNBOUND_STRING_VAR, Reporter
from .model import (
    BracedText,
    Database,
    Entry,
    NumberText,
    Part,
    QuotedText,
    StringRef,
    StringVar,
    Value,
)
from .tokenizer import Token, Tokenizer, TokenKind

logger = logging.getLogger(__name__)

# Macros every BibTeX style defines; referencing them is never a mistake.
MONTH_MACROS = frozenset(
    ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"]
)

_CLOSER = {TokenKind.LBRACE: TokenKind.RBRACE, TokenKind.LPAREN: TokenKind.RPAREN}


class Parser:
    """Recursive-descent parser over the token stream of one BibTeX source.

    Lexical errors are fatal and propagate as :class:`LexError`. A structural
    error inside a block is recorded on ``Database.failed_blocks`` and the
    parser resumes after that block's closing delimiter.
    """

    def __init__(self, text: str, reporter: Reporter | None = None) -> None:
        self._tokenizer = Tokenizer(text)
        self._tokens = self._tokenizer.tokens()
        self._current: Token = next(self._tokens)
        self.reporter = reporter if reporter is not None else Reporter()
        self.database = Database()

    def parse(self) -> Database:
        while self._current.kind is not TokenKind.EOF:
            self._expect(TokenKind.AT)
            head = self._expect(TokenKind.IDENT)
            opener = self._advance()
            closer = _CLOSER[opener.kind]
            try:
                self._block(head, closer)
            except ParseError as exc:
                logger.warning("Skipping malformed @%s block: %s", head.text, exc)
                self.database.failed_blocks.append(exc)
                self._skip_to(closer)

        logger.debug(
            "Parsed %d entries, %d string variables, %d preambles",
            len(self.database.entries),
            len(self.database.strings),
            len(self.database.preambles),
        )
        return self.database

    def _block(self, head: Token, closer: TokenKind) -> None:
        kind = head.text.lower()
        if kind == "comment":
            self._expect(TokenKind.BRACED_STRING)
            self._expect(closer)
        elif kind == "preamble":
            value = self._value()
            self._expect(closer)
            self.database.preambles.append(value)
        elif kind == "string":
            self._string(closer)
        else:
            self._entry(kind, closer)

    def _string(self, closer: TokenKind) -> None:
        name = self._expect(TokenKind.IDENT)
        self._expect(TokenKind.EQUALS)
        value = self._value()
        if self._current.kind is TokenKind.COMMA:
            self._advance()
        self._expect(closer)
        if name.text in self.database.strings:
            logger.debug("String variable %s is redefined", name.text)
            self.database.freeze_references(name.text)
        self.database.strings.bind(
            StringVar(name=name.text, value=value, text=self.database.resolve(value))
        )

    def _entry(self, entry_type: str, closer: TokenKind) -> None:
        key = self._current
        if key.kind not in (TokenKind.IDENT, TokenKind.NUMBER):
            raise self._error(key, f"Expected citation key for @{entry_type}")
        self._advance()

        fields: dict[str, Value] = {}
        if self._current.kind is not closer:
            self._expect(TokenKind.COMMA)
        while self._current.kind is not closer:
            name = self._expect(TokenKind.IDENT).text.lower()
            self._expect(TokenKind.EQUALS)
            fields[name] = self._value()
            if self._current.kind is TokenKind.COMMA:
                self._advance()
            elif self._current.kind is not closer:
                raise self._error(
                    self._current,
                    f"Expected ',' after field '{name}', found {self._current.kind.value}",
                )
        self._advance()

        try:
            self.database.append(Entry(entry_type=entry_type, key=key.text, fields=fields))
        except DuplicateKeyError:
            self.reporter.warn(
                DUPLICATE_KEY,
                "Citation key %s is defined more than once (line %d), keeping the first",
                key.text,
                self._tokenizer.line_of(key.offset),
            )

    def _value(self) -> Value:
        parts = [self._part()]
        while self._current.kind is TokenKind.HASH:
            self._advance()
            parts.append(self._part())
        return Value(tuple(parts))

    def _part(self) -> Part:
        token = self._current
        if token.kind is TokenKind.QUOTED_STRING:
            part: Part = QuotedText(token.text)
        elif token.kind is TokenKind.BRACED_STRING:
            part = BracedText(token.text)
        elif token.kind is TokenKind.NUMBER:
            part = NumberText(token.text)
        elif token.kind is TokenKind.IDENT:
            part = StringRef(token.text)
            if token.text not in self.database.strings and token.text.lower() not in MONTH_MACROS:
                self.reporter.warn(
                    UNBOUND_STRING_VAR,
                    "String variable %s is not defined (line %d), using its name as text",
                    token.text,
                    self._tokenizer.line_of(token.offset),
                )
        else:
            raise self._error(token, f"Expected a value, found {token.kind.value}")
        self._advance()
        return part

    def _advance(self) -> Token:
        token = self._current
        if token.kind is not TokenKind.EOF:
            self._current = next(self._tokens)
        return token

    def _expect(self, kind: TokenKind) -> Token:
        if self._current.kind is not kind:
            raise self._error(
                self._current, f"Expected {kind.value}, found {self._current.kind.value}"
            )
        return self._advance()

    def _skip_to(self, closer: TokenKind) -> None:
        while self._current.kind not in (closer, TokenKind.EOF):
            self._advance()
        self._advance()

    def _error(self, token: Token, message: str) -> ParseError:
        return ParseError(token.offset, message, line=self._tokenizer.line_of(token.offset))


def parse_string(text: str, reporter: Reporter | None = None) -> Database:
    """Parse BibTeX ``text`` into a :class:`Database`.

    Raises:
        LexError: If the text cannot be tokenized
    """
    return Parser(text, reporter=reporter).parse()


def parse_file(path: str | Path, reporter: Reporter | None = None) -> Database:
    """Parse the UTF-8 encoded BibTeX file at ``path``.

    Raises:
        OSError: If the file cannot be read
        LexError: If the file is not valid UTF-8 or cannot be tokenized
    """
    path = Path(path)
    logger.debug("Parsing .bib file: %s", path)
    data = path.read_bytes()
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise LexError(exc.start, f"Invalid UTF-8 in {path.name}") from exc
    return parse_string(text, reporter=reporter)
