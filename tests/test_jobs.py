"""
Tests for quoteflow.jobs, the wiring of one daily firing.
"""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from quoteflow.errors import FetchFailure, QuoteStoreError
from quoteflow.jobs import daily_job, run_sweeps
from quoteflow.models import Quote
from quoteflow.stores.memory import InMemoryQuoteStore

TODAY = date(2024, 1, 1)


def _store():
    return InMemoryQuoteStore([
        Quote("A", state="inProgress", expected_completion_date="2020-01-01"),
        Quote("T", state="inProgress", category="tender", expected_fulfillment_start_date="2023-01-01"),
    ])


def test_expiration_then_tender():
    reports = run_sweeps(_store(), today=TODAY, include_tender=True)
    assert [r.kind for r in reports] == ["expiration", "tender"]


def test_tender_can_be_skipped():
    reports = run_sweeps(_store(), today=TODAY, include_tender=False)
    assert [r.kind for r in reports] == ["expiration"]


def test_fetch_failure_stops_before_tender():
    store = MagicMock()
    store.list_all_quotes.side_effect = QuoteStoreError("down")
    with pytest.raises(FetchFailure):
        run_sweeps(store, today=TODAY, include_tender=True)
    store.list_all_quotes.assert_called_once()


def test_disabled_notifier_is_not_used():
    notifier = MagicMock(enabled=False)
    run_sweeps(_store(), today=TODAY, include_tender=True, notifier=notifier)
    notifier.notify_expired.assert_not_called()
    notifier.notify_tender.assert_not_called()


def test_enabled_notifier_is_called():
    notifier = MagicMock(enabled=True)
    run_sweeps(_store(), today=TODAY, include_tender=True, notifier=notifier)
    notifier.notify_expired.assert_called_once()
    notifier.notify_tender.assert_called_once()


def test_daily_job_closes_the_store():
    store = _store()
    store.close = MagicMock()
    with patch("quoteflow.jobs.build_store", return_value=store) as build:
        reports = daily_job("memory", today=TODAY, include_tender=False)
    build.assert_called_once_with("memory")
    store.close.assert_called_once()
    assert reports[0].expired == 1
