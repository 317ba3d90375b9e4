"""
quoteflow.stores.memory
=======================

An in-memory Quote Store keyed by quote id.

Only the standard library is used so that it can back unit tests and local
dry runs without a network or a database.  Every mutation is recorded in
:pyattr:`InMemoryQuoteStore.calls` in order, which lets tests assert on the
exact sequence of store operations.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Tuple

from quoteflow.errors import IllegalTransition, QuoteNotFound, QuoteStoreError
from quoteflow.lifecycle import advance_state
from quoteflow.models import Note, Quote, QuoteState

from .base import QuoteStore


class InMemoryQuoteStore(QuoteStore):
    """
    Dictionary-backed store.

    Example
    -------
    >>> store = InMemoryQuoteStore([Quote("A", state="inProgress")])
    >>> store.update_status("A", QuoteState.CANCELLED).state
    'cancelled'
    >>> store.calls
    [('update_status', 'A', 'cancelled')]
    """

    def __init__(self, quotes: Iterable[Quote] = ()) -> None:
        self._quotes: Dict[str, Quote] = {}
        self.calls: List[Tuple[str, ...]] = []
        for q in quotes:
            self._quotes[q.id] = copy.deepcopy(q)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _require(self, quote_id: str) -> Quote:
        try:
            return self._quotes[quote_id]
        except KeyError:
            raise QuoteNotFound(quote_id) from None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def list_all_quotes(self) -> List[Quote]:
        return [copy.deepcopy(q) for q in self._quotes.values()]

    def get_quote(self, quote_id: str) -> Quote:
        return copy.deepcopy(self._require(quote_id))

    def create_quote(self, quote: Quote) -> Quote:
        if quote.id in self._quotes:
            raise QuoteStoreError(f"quote already exists: {quote.id}", status_code=409)
        self._quotes[quote.id] = copy.deepcopy(quote)
        return copy.deepcopy(quote)

    def update_status(self, quote_id: str, state: QuoteState) -> Quote:
        self.calls.append(("update_status", quote_id, state.value))
        quote = self._require(quote_id)
        try:
            advance_state(quote, state)
        except IllegalTransition as e:
            raise QuoteStoreError(str(e), status_code=400) from e
        return copy.deepcopy(quote)

    def append_note(self, quote_id: str, author: str, text: str) -> Quote:
        self.calls.append(("append_note", quote_id, author, text))
        quote = self._require(quote_id)
        quote.notes.append(Note(text=text, author=author, date=datetime.now(timezone.utc)))
        return copy.deepcopy(quote)

    # ------------------------------------------------------------------
    # Dunder helpers for convenience
    # ------------------------------------------------------------------
    def __iter__(self):
        return iter(self.list_all_quotes())

    def __len__(self) -> int:
        return len(self._quotes)
