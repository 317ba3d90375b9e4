"""
quoteflow.policy
================

Pure deadline rules deciding what the daily sweeps do with a quote.

:pyfunc:`is_expired` is the expiration rule: the expected completion date
governs when present, the requested completion date is only a fallback, and
cancelled quotes are never candidates.  :pyfunc:`next_tender_state` is the
tender progression rule used by :class:`quoteflow.sweep.TenderSweep`.

Nothing here performs I/O.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Tuple

from .errors import DeadlineParseError
from .models import Quote, QuoteState

EXPECTED_FIELD = "expectedQuoteCompletionDate"
REQUESTED_FIELD = "requestedQuoteCompletionDate"


def parse_deadline(raw: str, field: str = "deadline") -> date:
    """
    Parse a deadline value into a calendar date.

    Accepts ``YYYY-MM-DD`` and ISO-8601 date-times (``2024-01-01T10:00:00Z``),
    in which case only the date part is kept.  Raises
    :class:`~quoteflow.errors.DeadlineParseError` for anything else.
    """
    if not isinstance(raw, str):
        raise DeadlineParseError(field, raw)
    value = raw.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        raise DeadlineParseError(field, raw) from None


def deadline_field(quote: Quote) -> Optional[Tuple[str, str]]:
    """
    Return ``(field_name, raw_value)`` of the deadline that governs *quote*,
    or ``None`` when neither field is set.

    The two fields are never merged: a non-empty expected date wins even if
    the requested date would give a different answer.
    """
    if quote.expected_completion_date and quote.expected_completion_date.strip():
        return EXPECTED_FIELD, quote.expected_completion_date
    if quote.requested_completion_date and quote.requested_completion_date.strip():
        return REQUESTED_FIELD, quote.requested_completion_date
    return None


def is_expired(quote: Quote, today: date) -> bool:
    """True when *quote* is not cancelled and its governing deadline is before *today*."""
    if quote.is_cancelled:
        return False
    governing = deadline_field(quote)
    if governing is None:
        return False
    field, raw = governing
    return parse_deadline(raw, field) < today


def next_tender_state(quote: Quote, today: date) -> Optional[QuoteState]:
    """
    Automatic progression for tender quotes.

    * ``inProgress`` → ``approved`` once the expected fulfillment start date
      has passed;
    * ``approved`` → ``accepted`` once the effective completion date has passed.

    Returns ``None`` when nothing is due.
    """
    if (quote.category or "").lower() != "tender":
        return None

    state = QuoteState.parse(quote.state)
    if state is QuoteState.IN_PROGRESS and quote.expected_fulfillment_start_date:
        start = parse_deadline(quote.expected_fulfillment_start_date, "expectedFulfillmentStartDate")
        if start < today:
            return QuoteState.APPROVED
    elif state is QuoteState.APPROVED and quote.effective_completion_date:
        effective = parse_deadline(quote.effective_completion_date, "effectiveQuoteCompletionDate")
        if effective < today:
            return QuoteState.ACCEPTED
    return None
