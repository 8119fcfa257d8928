"""Split BibTeX source text into tokens.

Only the text of ``@`` blocks is tokenized. Anything between blocks is a
comment as far as BibTeX is concerned and is skipped, as is an ``@`` that is
not followed by an identifier and an opening delimiter (for example an
e-mail address in a free-text comment).

Inside a block every ``{`` after the opening delimiter starts a braced
string, so nested braces never reach the parser.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from ..exceptions import LexError


class TokenKind(Enum):
    AT = "@"
    LBRACE = "{"
    RBRACE = "}"
    LPAREN = "("
    RPAREN = ")"
    EQUALS = "="
    COMMA = ","
    HASH = "#"
    IDENT = "identifier"
    QUOTED_STRING = "quoted string"
    BRACED_STRING = "braced string"
    NUMBER = "number"
    EOF = "end of input"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str
    offset: int


IDENT_CHARS = r"A-Za-z0-9_:.\-+/"

_BLOCK_START = re.compile(rf"@\s*([A-Za-z_][{IDENT_CHARS}]*)\s*([{{(])")
_WORD = re.compile(rf"[{IDENT_CHARS}]+")
_WHITESPACE = re.compile(r"\s*")

_PUNCTUATION = {
    "=": TokenKind.EQUALS,
    ",": TokenKind.COMMA,
    "#": TokenKind.HASH,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
}

_CLOSERS = {"{": ("}", TokenKind.RBRACE), "(": (")", TokenKind.RPAREN)}


class Tokenizer:
    """Iterate over the tokens of ``text``."""

    def __init__(self, text: str) -> None:
        self.text = text
        self._line_starts = [0] + [match.end() for match in re.finditer("\n", text)]

    def __iter__(self) -> Iterator[Token]:
        return self.tokens()

    def line_of(self, offset: int) -> int:
        """Return the 1-based line number of ``offset``."""
        return bisect_right(self._line_starts, offset)

    def error(self, offset: int, message: str) -> LexError:
        return LexError(offset, message, line=self.line_of(offset))

    def tokens(self) -> Iterator[Token]:
        text = self.text
        pos = 0
        while True:
            at = text.find("@", pos)
            if at < 0:
                break
            match = _BLOCK_START.match(text, at)
            if match is None:
                pos = at + 1
                continue

            head, opener = match.group(1), match.group(2)
            yield Token(TokenKind.AT, "@", at)
            yield Token(TokenKind.IDENT, head, match.start(1))
            yield Token(
                TokenKind.LBRACE if opener == "{" else TokenKind.LPAREN, opener, match.start(2)
            )

            if head.lower() == "comment":
                pos = yield from self._comment_body(match.end(), opener)
            else:
                pos = yield from self._block_body(match.end(), opener)

        yield Token(TokenKind.EOF, "", len(text))

    def _comment_body(self, pos: int, opener: str) -> Iterator[Token]:
        closer, closer_kind = _CLOSERS[opener]
        depth = 1
        for index in range(pos, len(self.text)):
            char = self.text[index]
            if char == opener:
                depth += 1
            elif char == closer:
                depth -= 1
                if depth == 0:
                    yield Token(TokenKind.BRACED_STRING, self.text[pos:index], pos)
                    yield Token(closer_kind, closer, index)
                    return index + 1
        raise self.error(pos - 1, f"Unterminated @comment block, expected '{closer}'")

    def _block_body(self, pos: int, opener: str) -> Iterator[Token]:
        text = self.text
        closer, closer_kind = _CLOSERS[opener]
        while True:
            pos = _WHITESPACE.match(text, pos).end()
            if pos >= len(text):
                # the parser reports the missing closing delimiter
                return pos

            char = text[pos]
            if char == closer:
                yield Token(closer_kind, char, pos)
                return pos + 1
            if char == "{":
                end = self._braced_end(pos)
                yield Token(TokenKind.BRACED_STRING, text[pos + 1 : end], pos)
                pos = end + 1
            elif char == '"':
                end = self._quoted_end(pos)
                yield Token(TokenKind.QUOTED_STRING, text[pos + 1 : end], pos)
                pos = end + 1
            elif char in _PUNCTUATION:
                yield Token(_PUNCTUATION[char], char, pos)
                pos += 1
            elif char == "@":
                raise self.error(pos, f"Unexpected '@' inside block, missing '{closer}'?")
            else:
                word = _WORD.match(text, pos)
                if word is None:
                    raise self.error(pos, f"Unexpected character {char!r}")
                value = word.group(0)
                kind = TokenKind.NUMBER if value.isdigit() else TokenKind.IDENT
                if kind is TokenKind.IDENT and not (value[0].isalnum() or value[0] == "_"):
                    raise self.error(pos, f"Unexpected character {char!r}")
                yield Token(kind, value, pos)
                pos = word.end()

    def _braced_end(self, start: int) -> int:
        """Return the offset of the ``}`` balancing the ``{`` at ``start``."""
        depth = 0
        for index in range(start, len(self.text)):
            char = self.text[index]
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return index
        raise self.error(start, "Unbalanced braces in value")

    def _quoted_end(self, start: int) -> int:
        """Return the offset of the ``"`` closing the string opened at ``start``."""
        depth = 0
        for index in range(start + 1, len(self.text)):
            char = self.text[index]
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth < 0:
                    raise self.error(index, "Unbalanced braces in quoted string")
            elif char == '"' and depth == 0:
                return index
        raise self.error(start, "Unterminated quoted string")


def tokenize(text: str) -> list[Token]:
    """Return all tokens of ``text``, ending with an ``EOF`` token."""
    return list(Tokenizer(text))
