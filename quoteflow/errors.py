"""
quoteflow.errors
================

Exception hierarchy shared by the store clients, the policy and the sweep.

Only :class:`FetchFailure` ever escapes :pymeth:`SweepOrchestrator.run`;
every other error is caught per quote and downgraded to a report entry.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class QuoteflowError(Exception):
    """Base class for all quoteflow errors."""


class QuoteStoreError(QuoteflowError):
    """A Quote Store call failed (network, timeout, 4xx/5xx, bad payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class QuoteNotFound(QuoteStoreError):
    def __init__(self, quote_id: str):
        super().__init__(f"quote not found: {quote_id}", status_code=404)
        self.quote_id = quote_id


class IllegalTransition(QuoteflowError, ValueError):
    """Requested state change is not allowed by :pymod:`quoteflow.lifecycle`."""


class DeadlineParseError(QuoteflowError, ValueError):
    """A deadline field could not be parsed; the quote cannot be evaluated."""

    def __init__(self, field: str, raw_value: object):
        super().__init__(f"cannot parse {field}={raw_value!r}")
        self.field = field
        self.raw_value = raw_value


class TransitionStep(str, Enum):
    STATUS_UPDATE = "status_update"
    NOTE_APPEND = "note_append"

    def __str__(self) -> str:
        return self.value


class TransitionError(QuoteflowError):
    """
    One of the two transition steps failed.

    ``partial`` is true when the status update went through but the note did
    not, i.e. the quote is cancelled without its annotation.
    """

    def __init__(self, quote_id: str, step: TransitionStep, cause: BaseException):
        super().__init__(f"{step} failed for quote {quote_id}: {cause}")
        self.quote_id = quote_id
        self.step = step
        self.cause = cause

    @property
    def partial(self) -> bool:
        return self.step is TransitionStep.NOTE_APPEND


class FetchFailure(QuoteflowError):
    """The quote snapshot could not be retrieved; the sweep was aborted."""

    def __init__(self, cause: BaseException):
        super().__init__(f"quote snapshot fetch failed: {cause}")
        self.cause = cause
