"""
tests/test_store_sql.py
=======================

Integration-style tests for the SQLite-backed Quote Store.

Each test gets its own database file under pytest's tmp_path so runs never
share state.
"""

from datetime import date

import pytest
from sqlmodel import Session, create_engine

from quoteflow.db import create_all
from quoteflow.errors import QuoteNotFound, QuoteStoreError
from quoteflow.models import Note, Quote, QuoteItem, QuoteState, RelatedParty
from quoteflow.stores.sql import SQLQuoteStore
from quoteflow.sweep import Outcome, SweepOrchestrator
from quoteflow.transition import EXPIRATION_NOTE


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'quotes.db'}")
    create_all(eng)
    return eng


@pytest.fixture
def store(engine):
    with SQLQuoteStore(Session(engine)) as s:
        yield s


def _quote(qid="A", **kw):
    kw.setdefault("state", "inProgress")
    return Quote(
        qid,
        related_party=[RelatedParty("buyer", role="customer")],
        quote_items=[QuoteItem(id="1", state=kw["state"], action="add", quantity=1)],
        **kw,
    )


def test_create_and_get(store):
    store.create_quote(_quote(expected_completion_date="2024-01-01", notes=[Note("first", author="buyer")]))

    q = store.get_quote("A")
    assert q.expected_completion_date == "2024-01-01"
    assert q.party_id("customer") == "buyer"
    assert [n.text for n in q.notes] == ["first"]
    assert q.quote_items[0].action == "add"


def test_duplicate_create_is_conflict(store):
    store.create_quote(_quote())
    with pytest.raises(QuoteStoreError) as info:
        store.create_quote(_quote())
    assert info.value.status_code == 409


def test_missing_quote(store):
    with pytest.raises(QuoteNotFound):
        store.get_quote("nope")
    with pytest.raises(QuoteNotFound):
        store.append_note("nope", "SYSTEM", "x")


def test_update_status_reaches_items(store):
    store.create_quote(_quote())
    q = store.update_status("A", QuoteState.CANCELLED)
    assert q.state == "cancelled"
    assert q.quote_items[0].state == "cancelled"


def test_illegal_transition_is_rejected(store):
    store.create_quote(_quote(state="cancelled"))
    with pytest.raises(QuoteStoreError) as info:
        store.update_status("A", QuoteState.APPROVED)
    assert info.value.status_code == 400
    assert store.get_quote("A").state == "cancelled"


def test_notes_keep_append_order(store):
    store.create_quote(_quote())
    store.append_note("A", "SYSTEM", "one")
    store.append_note("A", "SYSTEM", "two")
    assert [n.text for n in store.get_quote("A").notes] == ["one", "two"]


def test_persistence_across_sessions(engine):
    with SQLQuoteStore(Session(engine)) as s:
        s.create_quote(_quote("P"))
        s.append_note("P", "SYSTEM", "kept")

    with SQLQuoteStore(Session(engine)) as s2:
        assert [n.text for n in s2.get_quote("P").notes] == ["kept"]


def test_sweep_against_sql_store(store):
    store.create_quote(_quote("old", expected_completion_date="2020-01-01"))
    store.create_quote(_quote("new", expected_completion_date="2999-01-01"))

    report = SweepOrchestrator(store, today=date(2024, 1, 1), reconcile_missing_notes=False).run()

    assert report.count(Outcome.TRANSITIONED) == 1
    old = store.get_quote("old")
    assert old.is_cancelled
    assert old.notes[-1].text == EXPIRATION_NOTE
    assert not store.get_quote("new").is_cancelled
