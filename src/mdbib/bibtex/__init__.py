"""BibTeX reading and writing: tokenizer, parser, database model and printer."""

from .model import (
    BracedText,
    Database,
    Entry,
    NumberText,
    QuotedText,
    StringRef,
    StringTable,
    StringVar,
    Value,
)
from .parser import parse_file, parse_string
from .writer import write_file, write_string

__all__ = [
    "BracedText",
    "Database",
    "Entry",
    "NumberText",
    "QuotedText",
    "StringRef",
    "StringTable",
    "StringVar",
    "Value",
    "parse_file",
    "parse_string",
    "write_file",
    "write_string",
]
