"""
Tests for the operations API.

The trigger and the store are replaced through FastAPI dependency overrides,
so no scheduler is started and no remote store is contacted.
"""

from datetime import date
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api.deps import get_store, get_trigger
from api.main import app
from quoteflow.errors import FetchFailure, QuoteStoreError
from quoteflow.models import Quote
from quoteflow.scheduler import SweepInProgress, SweepTrigger
from quoteflow.stores.memory import InMemoryQuoteStore
from quoteflow.sweep import SweepOrchestrator

client = TestClient(app)


def _report():
    store = InMemoryQuoteStore([Quote("A", state="inProgress", expected_completion_date="2020-01-01")])
    return SweepOrchestrator(store, today=date(2024, 1, 1), reconcile_missing_notes=False).run()


@pytest.fixture
def trigger():
    mock = MagicMock(spec=SweepTrigger)
    mock.last_result = None
    mock.last_error = None
    app.dependency_overrides[get_trigger] = lambda: mock
    yield mock
    app.dependency_overrides.clear()


@pytest.fixture
def store():
    mem = InMemoryQuoteStore([
        Quote("A", state="inProgress"),
        Quote("B", state="Cancelled"),
        Quote("C", state="Open"),
    ])
    app.dependency_overrides[get_store] = lambda: mem
    yield mem
    app.dependency_overrides.clear()


def test_root():
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_status_counts(store):
    body = client.get("/quotes/status").json()
    assert body["inProgress"] == 1
    assert body["cancelled"] == 1
    assert body["other"] == 1
    assert body["approved"] == 0


def test_status_store_down():
    broken = MagicMock()
    broken.list_all_quotes.side_effect = QuoteStoreError("connect timeout")
    app.dependency_overrides[get_store] = lambda: broken
    try:
        assert client.get("/quotes/status").status_code == 502
    finally:
        app.dependency_overrides.clear()


class TestSweeps:
    def test_manual_sweep(self, trigger):
        trigger.fire.return_value = [_report()]

        r = client.post("/sweeps", params={"today": "2024-01-01", "tender": "false"})

        assert r.status_code == 200
        [report] = r.json()
        assert report["kind"] == "expiration"
        assert report["counts"]["transitioned"] == 1
        trigger.fire.assert_called_once_with(
            raise_if_busy=True, today=date(2024, 1, 1), include_tender=False
        )

    def test_busy_is_conflict(self, trigger):
        trigger.fire.side_effect = SweepInProgress("busy")
        assert client.post("/sweeps").status_code == 409

    def test_fetch_failure_is_bad_gateway(self, trigger):
        trigger.fire.side_effect = FetchFailure(QuoteStoreError("down"))
        r = client.post("/sweeps")
        assert r.status_code == 502
        assert "down" in r.json()["detail"]

    def test_last_before_any_run(self, trigger):
        assert client.get("/sweeps/last").status_code == 404

    def test_last_after_run(self, trigger):
        trigger.last_result = [_report()]
        body = client.get("/sweeps/last").json()
        assert body["status"] == "ok"
        assert body["reports"][0]["expired"] == 1

    def test_last_after_failure(self, trigger):
        trigger.last_error = FetchFailure(QuoteStoreError("down"))
        body = client.get("/sweeps/last").json()
        assert body["status"] == "failed"
        assert "down" in body["error"]


def test_lifespan_without_scheduler(monkeypatch):
    monkeypatch.setattr("api.main.ENABLE_SCHEDULER", False)
    with TestClient(app) as c:
        assert c.get("/").status_code == 200
    assert not get_trigger().scheduler.running
