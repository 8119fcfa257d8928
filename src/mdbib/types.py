"""Type definitions for mdbib data structures."""

from typing import TypedDict


class RefsTable(TypedDict, total=False):
    """Structure of the ``[refs]`` table in ``author.toml``."""

    src_dir: str
    src_bib: str
    out_bib: str
    verbose: bool


# Type aliases for common data structures
CitationCounts = dict[str, int]
