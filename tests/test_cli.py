"""Tests for the command-line interface."""

import json
import logging
import sys
from pathlib import Path

import pytest

from mdbib.cli import create_parser, main


@pytest.fixture
def manuscript(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a manuscript directory and master .bib, and run from tmp_path."""
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "paper.md").write_text("See [@A; @B] and [@A].\n", encoding="utf-8")
    (tmp_path / "master.bib").write_text("@misc{A, note = {a}}\n@misc{C}\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def package_logger():
    """Restore the package logger level changed by verbose runs."""
    logger = logging.getLogger("mdbib")
    level = logger.level
    yield logger
    logger.setLevel(level)


def _run(monkeypatch: pytest.MonkeyPatch, *argv: str) -> int:
    monkeypatch.setattr(sys, "argv", ["mdbib", *argv])
    with pytest.raises(SystemExit) as exc_info:
        main()
    return exc_info.value.code


def test_parser_defaults():
    args = create_parser().parse_args(["extract"])

    assert args.verbose == 0
    assert args.config is None
    assert args.src_dir is None
    assert args.src_bib is None


def test_extract_command(manuscript: Path, monkeypatch: pytest.MonkeyPatch):
    code = _run(
        monkeypatch, "extract", "--src-dir", "src", "--src-bib", "master.bib", "--out-bib", "o.bib"
    )

    assert code == 0
    assert (manuscript / "o.bib").read_text(encoding="utf-8") == "@misc{A,\n  note = {a}\n}\n\n"


def test_extract_command_reads_config(manuscript: Path, monkeypatch: pytest.MonkeyPatch):
    (manuscript / "author.toml").write_text(
        '[refs]\nsrc_dir = "src"\nsrc_bib = "master.bib"\nout_bib = "cited.bib"\n',
        encoding="utf-8",
    )

    code = _run(monkeypatch, "extract")

    assert code == 0
    assert (manuscript / "cited.bib").exists()


def test_verbose_from_config_reports_progress(
    manuscript: Path,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
    package_logger: logging.Logger,
):
    (manuscript / "author.toml").write_text(
        '[refs]\nsrc_dir = "src"\nsrc_bib = "master.bib"\nverbose = true\n',
        encoding="utf-8",
    )

    code = _run(monkeypatch, "extract")

    assert code == 0
    assert f"processing: {Path('src', 'paper.md')}" in caplog.messages
    assert "cites: A: 2, B: 1" in caplog.messages


def test_quiet_run_hides_progress(
    manuscript: Path,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
    package_logger: logging.Logger,
):
    code = _run(monkeypatch, "extract", "--src-dir", "src", "--src-bib", "master.bib")

    assert code == 0
    assert not any(message.startswith("processing:") for message in caplog.messages)


def test_extract_command_without_master(manuscript: Path, monkeypatch: pytest.MonkeyPatch):
    code = _run(monkeypatch, "extract", "--src-dir", "src")

    assert code == 1
    assert not (manuscript / "references.bib").exists()


def test_extract_command_bad_master(manuscript: Path, monkeypatch: pytest.MonkeyPatch):
    (manuscript / "master.bib").write_text("@misc{A, note = {open\n", encoding="utf-8")

    code = _run(monkeypatch, "extract", "--src-dir", "src", "--src-bib", "master.bib")

    assert code == 1


def test_cites_command_prints_counts(
    manuscript: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
):
    code = _run(monkeypatch, "cites", "--src-dir", "src")

    assert code == 0
    assert capsys.readouterr().out == "A\t2\nB\t1\n"


def test_cites_command_writes_json(manuscript: Path, monkeypatch: pytest.MonkeyPatch):
    code = _run(monkeypatch, "cites", "--src-dir", "src", "-o", "out/cites.json")

    assert code == 0
    data = json.loads((manuscript / "out" / "cites.json").read_text(encoding="utf-8"))
    assert data == {"A": 2, "B": 1}


def test_cites_command_without_markdown(manuscript: Path, monkeypatch: pytest.MonkeyPatch):
    code = _run(monkeypatch, "cites", "--src-dir", "nowhere")

    assert code == 1


def test_no_subcommand_prints_help(monkeypatch: pytest.MonkeyPatch):
    code = _run(monkeypatch)

    assert code == 1
