"""
Tests for the ``quoteflow`` command line.
"""

import json
from datetime import date
from unittest.mock import patch

import pytest

from quoteflow.cli import build_parser, main
from quoteflow.errors import FetchFailure, QuoteStoreError
from quoteflow.models import Quote
from quoteflow.stores.memory import InMemoryQuoteStore
from quoteflow.sweep import SweepOrchestrator


def _reports():
    store = InMemoryQuoteStore([
        Quote("A", state="inProgress", expected_completion_date="2020-01-01"),
        Quote("bad", state="inProgress", expected_completion_date="someday"),
    ])
    return [SweepOrchestrator(store, today=date(2024, 1, 1), reconcile_missing_notes=False).run()]


def test_sweep_arguments_are_forwarded():
    with patch("quoteflow.cli.daily_job", return_value=_reports()) as job:
        assert main(["sweep", "--today", "2024-01-01", "--backend", "memory", "--no-tender"]) == 0
    job.assert_called_once_with("memory", today=date(2024, 1, 1), include_tender=False)


def test_sweep_summary_lists_failures(capsys):
    with patch("quoteflow.cli.daily_job", return_value=_reports()):
        main(["sweep"])
    out = capsys.readouterr().out
    assert "expiration: 2 quotes, 1 selected" in out
    assert "bad: unevaluable" in out


def test_sweep_json_output(capsys):
    with patch("quoteflow.cli.daily_job", return_value=_reports()):
        main(["sweep", "--json"])
    [report] = json.loads(capsys.readouterr().out)
    assert report["counts"]["transitioned"] == 1


def test_fetch_failure_exit_code(capsys):
    with patch("quoteflow.cli.daily_job", side_effect=FetchFailure(QuoteStoreError("down"))):
        assert main(["sweep"]) == 1
    assert "down" in capsys.readouterr().err


def test_memory_backend_end_to_end(capsys):
    assert main(["sweep", "--backend", "memory", "--no-tender"]) == 0
    assert "expiration: 0 quotes" in capsys.readouterr().out


def test_bad_date_is_rejected():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["sweep", "--today", "01/01/2024"])


def test_command_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
