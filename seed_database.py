#!/usr/bin/env python
"""
Seed database with sample quotes for testing.

This script creates sample quotes in the local SQLite store so that a
`quoteflow sweep --backend sql` run has something to expire, progress or
skip.
"""

from datetime import date, timedelta

from quoteflow.errors import QuoteStoreError
from quoteflow.models import Note, Quote, QuoteItem, RelatedParty
from quoteflow.stores.sql import SQLQuoteStore

TODAY = date.today()
PAST = (TODAY - timedelta(days=10)).isoformat()
FUTURE = (TODAY + timedelta(days=30)).isoformat()

PARTIES = [
    RelatedParty(id="urn:organization:buyer-01", role="customer", name="Acme Buyer"),
    RelatedParty(id="urn:organization:seller-01", role="seller", name="Widget Provider"),
]

# Sample quotes covering every branch of the sweeps
SAMPLE_QUOTES = [
    Quote(
        id="urn:quote:expired-expected",
        state="inProgress",
        description="Expected completion date passed",
        expected_completion_date=PAST,
        related_party=PARTIES,
        quote_items=[QuoteItem(id="1", state="inProgress", action="add", quantity=1)],
    ),
    Quote(
        id="urn:quote:expired-requested",
        state="pending",
        description="Only the requested completion date is set, and it passed",
        requested_completion_date=PAST,
        related_party=PARTIES,
    ),
    Quote(
        id="urn:quote:future-wins",
        state="inProgress",
        description="Expected date in the future overrides a past requested date",
        expected_completion_date=FUTURE,
        requested_completion_date=PAST,
    ),
    Quote(
        id="urn:quote:already-cancelled",
        state="cancelled",
        description="Cancelled quotes are never re-evaluated",
        expected_completion_date=PAST,
        notes=[Note(text="Cancelled by the customer", author="urn:organization:buyer-01")],
    ),
    Quote(
        id="urn:quote:no-deadline",
        state="approved",
        description="No deadline, never expires",
    ),
    Quote(
        id="urn:quote:bad-date",
        state="inProgress",
        description="Malformed deadline is reported, not fatal",
        expected_completion_date="31/12/2023",
    ),
    Quote(
        id="urn:quote:tender-start",
        state="inProgress",
        category="tender",
        description="Tender whose fulfillment start date passed",
        expected_completion_date=FUTURE,
        expected_fulfillment_start_date=PAST,
        related_party=PARTIES,
    ),
]


def seed_database():
    """Add sample quotes to the database."""
    added = 0
    with SQLQuoteStore() as store:
        for quote in SAMPLE_QUOTES:
            try:
                store.create_quote(quote)
            except QuoteStoreError as e:
                print(f"Skipped: {quote.id} ({e})")
                continue
            added += 1
            print(f"Added: {quote.id} ({quote.state})")

    print(f"\nAdded {added} quotes to the database!")


if __name__ == "__main__":
    # Initialize DB if needed
    from quoteflow.db import create_all
    print("Ensuring database tables exist...")
    create_all()

    # Seed the database
    print("Seeding database with sample quotes...")
    seed_database()

    print("\nDone! Preview the sweep with:")
    print("quoteflow sweep --backend sql")
    print("or run the API server with:")
    print("uvicorn api.main:app --reload --port 8001")
