"""Configuration for citation extraction runs."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

import msgspec

from .types import RefsTable

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "author.toml"


@dataclass
class AuthorConfig:
    """Inputs of the citation extractor."""

    src_dir: Path = Path(".")
    src_bib: Path | None = None
    out_bib: Path = Path("references.bib")
    verbose: bool = False

    @classmethod
    def from_file(cls, config_path: Path) -> AuthorConfig:
        """Load the ``[refs]`` table of a TOML configuration file.

        Relative paths are resolved against the directory holding the file.
        Other tables are ignored, so the file can be shared with other tools.

        Args:
            config_path: Path to the TOML file

        Returns:
            AuthorConfig with values from the file and defaults for the rest

        Raises:
            FileNotFoundError: If ``config_path`` does not exist
            ValueError: If the file is not valid TOML or the table has wrong types
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        logger.debug("Reading configuration file: %s", config_path)

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            table = msgspec.convert(data.get("refs", {}), type=RefsTable)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}") from e
        except msgspec.ValidationError as e:
            raise ValueError(f"Invalid [refs] table in {config_path}: {e}") from e

        base = config_path.parent
        config = cls()
        if "src_dir" in table:
            config.src_dir = base / table["src_dir"]
        if table.get("src_bib"):
            config.src_bib = base / table["src_bib"]
        if "out_bib" in table:
            config.out_bib = base / table["out_bib"]
        if "verbose" in table:
            config.verbose = table["verbose"]
        return config

    def with_overrides(
        self,
        src_dir: str | None = None,
        src_bib: str | None = None,
        out_bib: str | None = None,
        verbose: bool = False,
    ) -> AuthorConfig:
        """Return a copy with the given command-line values taking precedence."""
        updated = replace(self, verbose=self.verbose or verbose)
        if src_dir is not None:
            updated.src_dir = Path(src_dir)
        if src_bib is not None:
            updated.src_bib = Path(src_bib) if src_bib else None
        if out_bib is not None:
            updated.out_bib = Path(out_bib)
        return updated


def load_config(config_path: Path | None = None) -> AuthorConfig:
    """Load configuration from ``config_path``, or from ``author.toml`` if present.

    Without an explicit path and without an ``author.toml`` in the working
    directory the defaults are returned.
    """
    if config_path is not None:
        return AuthorConfig.from_file(config_path)

    default_path = Path(DEFAULT_CONFIG_FILE)
    if default_path.exists():
        return AuthorConfig.from_file(default_path)
    return AuthorConfig()
