"""Tests for the progress and warning reporter."""

import logging

import pytest

from mdbib.report import MISSING_KEY, UNBOUND_STRING_VAR, Diagnostic, Reporter


def test_info_is_verbose_only(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.INFO, logger="mdbib")

    Reporter(verbose=False).info("hidden %s", "message")
    Reporter(verbose=True).info("shown %s", "message")

    assert caplog.messages == ["shown message"]


def test_warnings_are_recorded_and_logged(caplog: pytest.LogCaptureFixture):
    reporter = Reporter(logger=logging.getLogger("mdbib.test"))

    reporter.warn(MISSING_KEY, "Reference key: %s not found", "B")
    reporter.warn(UNBOUND_STRING_VAR, "String variable acm is not defined")

    assert reporter.diagnostics == [
        Diagnostic(MISSING_KEY, "Reference key: B not found"),
        Diagnostic(UNBOUND_STRING_VAR, "String variable acm is not defined"),
    ]
    assert reporter.warnings_of(MISSING_KEY) == ["Reference key: B not found"]
    assert [record.levelno for record in caplog.records] == [logging.WARNING, logging.WARNING]
    assert caplog.messages[0] == "MissingKey: Reference key: B not found"
