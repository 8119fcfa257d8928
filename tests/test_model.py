"""Tests for the in-memory database model."""

import pytest

from mdbib.bibtex import (
    BracedText,
    Database,
    Entry,
    StringRef,
    StringTable,
    StringVar,
    Value,
)
from mdbib.exceptions import DuplicateKeyError


def _entry(entry_type: str, key: str, **fields: str) -> Entry:
    return Entry(entry_type, key, {name: Value.braced(text) for name, text in fields.items()})


class TestDatabase:
    """Tests for Database lookup, append and sort."""

    def test_lookup_is_exact(self):
        db = Database()
        db.append(_entry("book", "Knuth1997", title="TAOCP"))

        assert db.lookup("Knuth1997") is db.entries[0]
        assert db.lookup("knuth1997") is None
        assert "Knuth1997" in db
        assert "Knuth" not in db

    def test_append_rejects_duplicate_key(self):
        db = Database()
        db.append(_entry("book", "dup"))

        with pytest.raises(DuplicateKeyError, match="dup") as exc_info:
            db.append(_entry("article", "dup"))

        assert exc_info.value.key == "dup"
        assert len(db) == 1

    def test_sort_by_type_then_key(self):
        db = Database()
        for entry_type, key in [
            ("misc", "a"),
            ("book", "b"),
            ("article", "z"),
            ("book", "B"),
            ("article", "c"),
        ]:
            db.append(_entry(entry_type, key))

        db.sort()

        assert [(e.entry_type, e.key) for e in db.entries] == [
            ("article", "c"),
            ("article", "z"),
            ("book", "B"),
            ("book", "b"),
            ("misc", "a"),
        ]
        assert db.lookup("b").entry_type == "book"

    def test_resolve_substitutes_bound_strings(self):
        db = Database()
        db.strings.bind(StringVar("acm", Value.braced("ACM Press"), "ACM Press"))
        value = Value((StringRef("ACM"), StringRef("unbound")))

        assert db.resolve(value) == "ACM Pressunbound"


    def test_freeze_references(self):
        db = Database()
        db.strings.bind(StringVar("acm", Value.braced("ACM"), "ACM"))
        db.preambles.append(Value((StringRef("ACM"),)))
        db.append(Entry("book", "k", {"publisher": Value((StringRef("acm"), StringRef("ieee")))}))

        db.freeze_references("acm")

        assert db.preambles == [Value.braced("ACM")]
        assert db.lookup("k").fields["publisher"] == Value(
            (BracedText("ACM"), StringRef("ieee"))
        )

    def test_freeze_unbound_name_is_noop(self):
        db = Database()
        db.append(Entry("misc", "k", {"note": Value((StringRef("x"),))}))

        db.freeze_references("x")

        assert db.lookup("k").fields["note"] == Value((StringRef("x"),))


class TestEquality:
    """Tests for semantic equality."""

    def test_entry_field_order_matters(self):
        first = _entry("book", "k", title="T", year="2000")
        second = _entry("book", "k", year="2000", title="T")

        assert first == _entry("book", "k", title="T", year="2000")
        assert first != second

    def test_string_vars_compare_by_resolved_text(self):
        left = StringTable()
        right = StringTable()
        left.bind(StringVar("full", Value((StringRef("first"),)), "Jane"))
        right.bind(StringVar("full", Value.braced("Jane"), "Jane"))

        assert left == right

    def test_database_equality(self):
        left = Database()
        right = Database()
        for db in (left, right):
            db.preambles.append(Value.braced("\\relax"))
            db.append(_entry("misc", "k", note="N"))

        assert left == right
        right.preambles.clear()
        assert left != right


def test_string_table_is_case_insensitive():
    table = StringTable()
    table.bind(StringVar("ACM", Value.braced("old"), "old"))
    table.bind(StringVar("acm", Value.braced("new"), "new"))

    assert len(table) == 1
    assert table["Acm"].text == "new"
    assert list(table) == ["acm"]
    del table["ACM"]
    assert len(table) == 0
