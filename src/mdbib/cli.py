"""Command-line interface for Markdown citation extraction."""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import AuthorConfig, load_config
from .exceptions import MdbibError
from .extract import extract_cited_references
from .report import Reporter
from .scan import find_markdown_files, scan_files
from .types import CitationCounts


def setup_logging(verbosity: int = 0) -> None:
    """Configure logging for the CLI application.

    Args:
        verbosity: Logging verbosity level (0=WARNING, 1=INFO, 2+=DEBUG)
    """
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s:%(lineno)d – %(message)s",
    )


def _load_config(args: argparse.Namespace) -> AuthorConfig:
    config_path = Path(args.config) if args.config else None
    config = load_config(config_path)
    return config.with_overrides(
        src_dir=args.src_dir,
        src_bib=getattr(args, "src_bib", None),
        out_bib=getattr(args, "out_bib", None),
        verbose=args.verbose > 0,
    )


def _enable_progress(config: AuthorConfig) -> None:
    """Let progress messages through when verbose output is requested by the config file."""
    package_logger = logging.getLogger("mdbib")
    if config.verbose and not package_logger.isEnabledFor(logging.INFO):
        package_logger.setLevel(logging.INFO)


def cmd_extract(args: argparse.Namespace) -> None:
    """Write the references cited in the Markdown sources to the output .bib file."""
    logger = logging.getLogger(__name__)

    try:
        config = _load_config(args)
        _enable_progress(config)
        logger.info("Extracting citations from %s using %s", config.src_dir, config.src_bib)

        report = extract_cited_references(
            src_dir=config.src_dir,
            src_bib=config.src_bib,
            out_bib=config.out_bib,
            verbose=config.verbose,
            reporter=Reporter(verbose=config.verbose, logger=logger),
        )

        logger.info(
            "✓ Wrote %d references from %d files to %s",
            len(report.written),
            len(report.files),
            config.out_bib,
        )
        if report.missing:
            preview = ", ".join(report.missing[:10])
            suffix = "..." if len(report.missing) > 10 else ""
            logger.warning("%d cited keys not found: %s%s", len(report.missing), preview, suffix)
        sys.exit(0)

    except (FileNotFoundError, ValueError, MdbibError) as e:
        logger.error(f"Extract error: {e}")
        sys.exit(1)


def cmd_cites(args: argparse.Namespace) -> None:
    """List the citation keys used in the Markdown sources with their counts."""
    logger = logging.getLogger(__name__)

    try:
        config = _load_config(args)
        _enable_progress(config)
        md_files = find_markdown_files(config.src_dir)
        if not md_files:
            logger.error(f"No .md files found in: {config.src_dir}")
            sys.exit(1)

        scan = scan_files(md_files, reporter=Reporter(verbose=config.verbose, logger=logger))
        counts: CitationCounts = dict(sorted(scan.citations.items()))

        if args.output:
            output_path = Path(args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(counts, f, indent=2, ensure_ascii=False)
            logger.info(f"✓ Saved {len(counts)} citation keys to: {output_path}")
        else:
            for key, count in counts.items():
                print(f"{key}\t{count}")
        sys.exit(0)

    except (OSError, ValueError) as e:
        logger.error(f"Cites error: {e}")
        sys.exit(1)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="mdbib",
        description=(
            "Collect [@key] citations from Markdown files and extract the cited "
            "references from a master BibTeX database."
        ),
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (use -v for INFO, -vv for DEBUG)",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to a TOML configuration file with a [refs] table (default: ./author.toml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # extract subcommand
    extract_parser = subparsers.add_parser(
        "extract", help="Write the cited references to a minimal, sorted .bib file"
    )
    extract_parser.add_argument(
        "--src-dir", type=str, help="Directory with the Markdown sources (default: .)"
    )
    extract_parser.add_argument("--src-bib", type=str, help="Master BibTeX database")
    extract_parser.add_argument(
        "--out-bib", type=str, help="Output .bib file (default: references.bib)"
    )
    extract_parser.set_defaults(func=cmd_extract)

    # cites subcommand
    cites_parser = subparsers.add_parser(
        "cites", help="List the citation keys used in the Markdown sources"
    )
    cites_parser.add_argument(
        "--src-dir", type=str, help="Directory with the Markdown sources (default: .)"
    )
    cites_parser.add_argument(
        "-o", "--output", type=str, help="Save the counts as JSON instead of printing them"
    )
    cites_parser.set_defaults(func=cmd_cites)

    return parser


def main() -> None:
    """Main entry point for the mdbib CLI."""
    parser = create_parser()
    args = parser.parse_args()

    # Setup logging based on verbosity
    setup_logging(args.verbose)

    # Handle case where no subcommand is provided
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    # Execute the subcommand
    args.func(args)


if __name__ == "__main__":
    main()
