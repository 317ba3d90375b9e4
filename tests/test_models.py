"""
tests/test_models.py
====================

Unit tests for the dataclasses and enum defined in quoteflow.models.

Run:  pytest -q
"""

import pytest

from quoteflow.models import Note, Quote, QuoteState

TMF_QUOTE = {
    "id": "urn:quote:1",
    "@type": "Quote",
    "state": "inProgress",
    "category": "tender",
    "expectedQuoteCompletionDate": "2024-03-01T00:00:00Z",
    "requestedQuoteCompletionDate": "2024-02-01",
    "note": [
        {"id": "n1", "author": "urn:organization:buyer", "date": "2024-01-05T10:00:00Z", "text": "hello"},
    ],
    "relatedParty": [
        {"id": "urn:organization:buyer", "role": "Customer", "@referredType": "Organization"},
        {"id": "urn:organization:seller", "role": "seller"},
    ],
    "quoteItem": [
        {"id": "1", "state": "inProgress", "action": "add", "quantity": 1,
         "attachment": [{"name": "offer.pdf", "url": "http://files/offer.pdf"}]},
    ],
}


def test_state_parse_is_case_insensitive():
    assert QuoteState.parse("CANCELLED") is QuoteState.CANCELLED
    assert QuoteState.parse("inprogress") is QuoteState.IN_PROGRESS
    assert QuoteState.parse("Open") is None
    assert QuoteState.parse(None) is None


def test_str_on_state():
    """Enum __str__ returns the wire value."""
    assert str(QuoteState.IN_PROGRESS) == "inProgress"


def test_from_tmf_maps_fields():
    q = Quote.from_tmf(TMF_QUOTE)
    assert q.id == "urn:quote:1"
    assert q.expected_completion_date == "2024-03-01T00:00:00Z"
    assert q.requested_completion_date == "2024-02-01"
    assert q.notes[0].text == "hello"
    assert q.notes[0].date.year == 2024
    assert q.quote_items[0].attachment[0]["name"] == "offer.pdf"


def test_party_lookup_ignores_case():
    q = Quote.from_tmf(TMF_QUOTE)
    assert q.party_id("customer") == "urn:organization:buyer"
    assert q.party_id("seller") == "urn:organization:seller"
    assert q.party_id("coordinator") is None


def test_from_tmf_requires_id():
    with pytest.raises(ValueError):
        Quote.from_tmf({"state": "inProgress"})


def test_is_cancelled_and_has_note():
    q = Quote("q", state="Cancelled", notes=[Note(text="done")])
    assert q.is_cancelled
    assert q.has_note("done")
    assert not q.has_note("other")


def test_to_tmf_round_trips_deadlines():
    q = Quote.from_tmf(TMF_QUOTE)
    out = q.to_tmf()
    assert out["expectedQuoteCompletionDate"] == TMF_QUOTE["expectedQuoteCompletionDate"]
    assert out["relatedParty"][0]["@referredType"] == "Organization"
    assert out["note"][0]["id"] == "n1"


def test_note_keeps_unparsable_date_string():
    note = Note.from_tmf({"text": "old", "date": "Mon, 01 Mar 2025 12:00:00 GMT"})
    assert note.date is None
    assert note.to_tmf()["date"] == "Mon, 01 Mar 2025 12:00:00 GMT"


def test_note_parses_nanosecond_fractions():
    note = Note.from_tmf({"text": "x", "date": "2025-03-01T12:00:00.123456789"})
    assert note.date.microsecond == 123456
    assert note.to_tmf()["date"] == "2025-03-01T12:00:00.123456789"
