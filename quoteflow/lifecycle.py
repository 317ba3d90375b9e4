"""
quoteflow.lifecycle
===================

State-transition guard for a :class:`quoteflow.models.Quote`.

A tiny finite-state-machine describes which quote states are legal
successors of each state.  The helper :pyfunc:`advance_state` mutates a
quote **in-place** after validating the transition.  Stores that own their
data (in-memory, SQL) run every status update through it; the TMForum store
leaves validation to the remote API.
"""

from __future__ import annotations

from .errors import IllegalTransition
from .models import Quote, QuoteState

# ---------------------------------------------------------------------
# Allowed transitions: source state → set[valid target states]
# ---------------------------------------------------------------------
RULES = {
    QuoteState.PENDING:     {QuoteState.IN_PROGRESS, QuoteState.CANCELLED},
    QuoteState.IN_PROGRESS: {QuoteState.APPROVED, QuoteState.REJECTED, QuoteState.CANCELLED},
    QuoteState.APPROVED:    {QuoteState.ACCEPTED, QuoteState.REJECTED, QuoteState.CANCELLED},
    QuoteState.ACCEPTED:    {QuoteState.CANCELLED},
    QuoteState.REJECTED:    {QuoteState.CANCELLED},
    QuoteState.CANCELLED:   {QuoteState.CANCELLED},
}

# States written by producers outside the TMForum vocabulary ("Open", ...)
# can only be cancelled.
UNKNOWN_STATE_TARGETS = {QuoteState.CANCELLED}


def can_transition(current: str | None, new_state: QuoteState) -> bool:
    source = QuoteState.parse(current)
    if source is None:
        return new_state in UNKNOWN_STATE_TARGETS
    return new_state in RULES.get(source, set())


def advance_state(quote: Quote, new_state: QuoteState) -> None:
    """
    Change ``quote.state`` if the transition is legal, otherwise raise
    :class:`~quoteflow.errors.IllegalTransition`.

    Re-cancelling a cancelled quote is allowed and leaves it unchanged.

    Examples
    --------
    >>> q = Quote("q-1", state="inProgress")
    >>> advance_state(q, QuoteState.APPROVED)
    >>> advance_state(q, QuoteState.PENDING)
    Traceback (most recent call last):
        ...
    quoteflow.errors.IllegalTransition: illegal transition approved → pending
    """
    if not can_transition(quote.state, new_state):
        raise IllegalTransition(f"illegal transition {quote.state} → {new_state.value}")
    quote.state = new_state.value
    for item in quote.quote_items:
        item.state = new_state.value
