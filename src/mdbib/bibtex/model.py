"""In-memory representation of a BibTeX database."""

from __future__ import annotations

from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass, field

from ..exceptions import DuplicateKeyError


@dataclass(frozen=True, slots=True)
class BracedText:
    """Literal text written as ``{...}``."""

    text: str


@dataclass(frozen=True, slots=True)
class QuotedText:
    """Literal text written as ``"..."``."""

    text: str


@dataclass(frozen=True, slots=True)
class NumberText:
    """A bare run of digits."""

    text: str


@dataclass(frozen=True, slots=True)
class StringRef:
    """A reference to an ``@string`` variable, resolved when the value is read."""

    name: str


Part = BracedText | QuotedText | NumberText | StringRef


@dataclass(frozen=True, slots=True)
class Value:
    """A field value: one or more parts joined with ``#``."""

    parts: tuple[Part, ...]

    @classmethod
    def braced(cls, text: str) -> Value:
        return cls((BracedText(text),))

    @property
    def is_literal(self) -> bool:
        return len(self.parts) == 1 and not isinstance(self.parts[0], StringRef)


@dataclass(slots=True)
class StringVar:
    """An ``@string`` binding.

    ``text`` is the value resolved against the bindings that existed when the
    variable was defined; ``value`` keeps the expression as written. Two
    bindings are equal when their names and resolved texts are equal.
    """

    name: str
    value: Value = field(compare=False)
    text: str = ""


class StringTable(MutableMapping[str, StringVar]):
    """Mapping of ``@string`` variables with case-insensitive lookup.

    Names are stored as written; a later binding of the same name (in any
    case) replaces the earlier one.
    """

    def __init__(self) -> None:
        self._vars: dict[str, StringVar] = {}

    def __getitem__(self, name: str) -> StringVar:
        return self._vars[name.lower()]

    def __setitem__(self, name: str, var: StringVar) -> None:
        self._vars[name.lower()] = var

    def __delitem__(self, name: str) -> None:
        del self._vars[name.lower()]

    def __iter__(self) -> Iterator[str]:
        return (var.name for var in self._vars.values())

    def __len__(self) -> int:
        return len(self._vars)

    def bind(self, var: StringVar) -> None:
        self[var.name] = var

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StringTable):
            return NotImplemented
        return self._vars == other._vars

    def __repr__(self) -> str:
        return f"StringTable({list(self._vars.values())!r})"


@dataclass(eq=False)
class Entry:
    """A bibliographic record: ``@entry_type{key, field = value, ...}``."""

    entry_type: str
    key: str
    fields: dict[str, Value] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return (
            self.entry_type == other.entry_type
            and self.key == other.key
            and list(self.fields.items()) == list(other.fields.items())
        )


class Database:
    """String variables, preambles and entries read from one .bib source."""

    def __init__(self) -> None:
        self.strings = StringTable()
        self.preambles: list[Value] = []
        self.entries: list[Entry] = []
        self.failed_blocks: list[Exception] = []
        self._index: dict[str, Entry] = {}

    def lookup(self, key: str) -> Entry | None:
        """Return the entry whose key equals ``key`` exactly, or ``None``."""
        return self._index.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self.entries)

    def append(self, entry: Entry) -> None:
        """Add ``entry`` at the end of the database.

        Raises:
            DuplicateKeyError: If an entry with the same key is already present
        """
        if entry.key in self._index:
            raise DuplicateKeyError(entry.key)
        self.entries.append(entry)
        self._index[entry.key] = entry

    def sort(self) -> None:
        """Stable sort of the entries by ``(entry_type, key)``."""
        # str ordering is code-point ordering, which matches UTF-8 byte ordering
        self.entries.sort(key=lambda entry: (entry.entry_type, entry.key))

    def resolve(self, value: Value) -> str:
        """Return the text of ``value`` with string references substituted."""
        return "".join(self._resolve_part(part) for part in value.parts)

    def _resolve_part(self, part: Part) -> str:
        if isinstance(part, StringRef):
            var = self.strings.get(part.name)
            return var.text if var is not None else part.name
        return part.text

    def freeze_references(self, name: str) -> None:
        """Replace references to the variable ``name`` with its current text.

        Must be called before ``name`` is rebound so that preambles and entries
        read earlier keep the value they were read with.
        """
        var = self.strings.get(name)
        if var is None:
            return
        frozen = BracedText(var.text)
        target = name.lower()

        def is_target(part: Part) -> bool:
            return isinstance(part, StringRef) and part.name.lower() == target

        def freeze(value: Value) -> Value:
            if not any(is_target(part) for part in value.parts):
                return value
            return Value(tuple(frozen if is_target(part) else part for part in value.parts))

        self.preambles = [freeze(value) for value in self.preambles]
        for entry in self.entries:
            entry.fields = {label: freeze(value) for label, value in entry.fields.items()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Database):
            return NotImplemented
        return (
            self.strings == other.strings
            and self.preambles == other.preambles
            and self.entries == other.entries
        )

    def __repr__(self) -> str:
        return (
            f"Database(strings={len(self.strings)}, preambles={len(self.preambles)}, "
            f"entries={len(self.entries)})"
        )
