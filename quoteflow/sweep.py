"""
quoteflow.sweep
===============

The daily sweeps over the quote snapshot.

:class:`SweepOrchestrator` is the expiration sweep: it fetches every quote
once, applies :pyfunc:`quoteflow.policy.is_expired` to each and hands the
expired ones to a :class:`~quoteflow.transition.TransitionExecutor`.  Each
quote is handled in isolation; whatever goes wrong with one quote ends up as
an entry of the :class:`SweepReport` and the sweep moves on.  Only a failed
snapshot fetch aborts the run, as :class:`~quoteflow.errors.FetchFailure`.

:class:`TenderSweep` runs the same loop with the tender progression rule.

Both are stateless between runs: every decision comes from the snapshot
taken at the start of :pymeth:`run`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Union
from zoneinfo import ZoneInfo

from .errors import DeadlineParseError, FetchFailure, TransitionError
from .models import Quote, QuoteState
from .notify import Notifier
from .policy import deadline_field, is_expired, next_tender_state, parse_deadline
from .settings import settings
from .stores.base import QuoteStore
from .transition import TransitionExecutor

logger = logging.getLogger(__name__)

Clock = Union[date, Callable[[], date], None]

TENDER_NOTES = {
    QuoteState.APPROVED: "Quote automatically approved - expected fulfillment start date has been reached.",
    QuoteState.ACCEPTED: "Quote automatically accepted - effective quote completion date has been reached.",
}


class Outcome(str, Enum):
    """Per-quote result categories of a sweep."""
    TRANSITIONED = "transitioned"
    TRANSITION_FAILED = "transition_failed"
    NOT_EXPIRED = "not_expired"
    NOT_DUE = "not_due"
    UNEVALUABLE = "unevaluable"
    RECONCILED = "reconciled"
    RECONCILE_FAILED = "reconcile_failed"

    def __str__(self) -> str:
        return self.value


FAILURE_OUTCOMES = {Outcome.TRANSITION_FAILED, Outcome.UNEVALUABLE, Outcome.RECONCILE_FAILED}


@dataclass
class ItemResult:
    quote_id: str
    outcome: Outcome
    step: Optional[str] = None
    error: Optional[str] = None
    target_state: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quote_id": self.quote_id,
            "outcome": self.outcome.value,
            "step": self.step,
            "error": self.error,
            "target_state": self.target_state,
        }


@dataclass
class SweepReport:
    """
    Summary of one sweep.

    ``expired`` counts every quote the policy selected, whether or not its
    transition then succeeded.
    """
    kind: str
    today: date
    started_at: datetime
    finished_at: Optional[datetime] = None
    results: List[ItemResult] = field(default_factory=list)

    def record(self, result: ItemResult) -> None:
        self.results.append(result)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def counts(self) -> Dict[str, int]:
        return {o.value: self.count(o) for o in Outcome}

    @property
    def expired(self) -> int:
        return self.count(Outcome.TRANSITIONED) + self.count(Outcome.TRANSITION_FAILED)

    @property
    def failures(self) -> List[ItemResult]:
        return [r for r in self.results if r.outcome in FAILURE_OUTCOMES]

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "today": self.today.isoformat(),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "total": self.total,
            "expired": self.expired,
            "counts": self.counts,
            "failures": [r.to_dict() for r in self.failures],
        }


def _resolve_today(clock: Clock, tz: Optional[str] = None) -> date:
    """Today in the sweep's timezone unless a date or clock was injected."""
    if clock is None:
        return datetime.now(ZoneInfo(tz or settings.sweep_timezone)).date()
    if callable(clock):
        return clock()
    return clock


class _Sweep:
    """Fetch-once, per-item-isolated loop shared by the sweeps."""

    kind = "sweep"

    def __init__(self, store: QuoteStore, today: Clock = None):
        self.store = store
        self._clock = today

    def run(self) -> SweepReport:
        today = _resolve_today(self._clock)
        report = SweepReport(kind=self.kind, today=today, started_at=datetime.now(timezone.utc))
        logger.info(f"Starting {self.kind} sweep for {today.isoformat()}")

        try:
            quotes = self.store.list_all_quotes()
        except Exception as e:
            logger.error(f"{self.kind} sweep aborted, snapshot fetch failed: {e}")
            raise FetchFailure(e) from e

        if not quotes:
            logger.info(f"{self.kind} sweep: no quotes in snapshot")

        seen: Set[str] = set()
        for quote in quotes:
            if quote.id in seen:
                logger.warning(f"Quote {quote.id} listed twice in the snapshot; ignoring the repeat")
                continue
            seen.add(quote.id)
            try:
                result = self._process(quote, today)
            except Exception as e:
                logger.exception(f"Unexpected error processing quote {quote.id}")
                result = ItemResult(quote.id, Outcome.UNEVALUABLE, error=str(e))
            report.record(result)
            self._log_result(result)

        report.finished_at = datetime.now(timezone.utc)
        logger.info(
            f"Finished {self.kind} sweep: {report.total} quotes, {report.expired} selected, "
            f"{report.count(Outcome.TRANSITIONED)} transitioned, {len(report.failures)} failures"
        )
        return report

    def _process(self, quote: Quote, today: date) -> ItemResult:
        raise NotImplementedError

    def _log_result(self, result: ItemResult) -> None:
        extra = {"quote_id": result.quote_id, "outcome": result.outcome.value, "step": result.step}
        if result.outcome in FAILURE_OUTCOMES:
            logger.warning(f"Quote {result.quote_id}: {result.outcome.value} ({result.error})", extra=extra)
        elif result.outcome in (Outcome.TRANSITIONED, Outcome.RECONCILED):
            logger.info(f"Quote {result.quote_id}: {result.outcome.value}", extra=extra)
        else:
            logger.debug(f"Quote {result.quote_id}: {result.outcome.value}", extra=extra)

    @staticmethod
    def _transition(executor: TransitionExecutor, quote_id: str) -> ItemResult:
        target = executor.target_state.value
        try:
            executor.transition(quote_id)
        except TransitionError as e:
            return ItemResult(quote_id, Outcome.TRANSITION_FAILED, step=e.step.value,
                              error=str(e.cause), target_state=target)
        except Exception as e:
            logger.exception(f"Unexpected error transitioning quote {quote_id}")
            return ItemResult(quote_id, Outcome.TRANSITION_FAILED, error=str(e), target_state=target)
        return ItemResult(quote_id, Outcome.TRANSITIONED, target_state=target)


class SweepOrchestrator(_Sweep):
    """
    Expiration sweep.

    Args:
        store: Quote Store to read the snapshot from
        executor: Transition applied to expired quotes (defaults to cancel + note)
        today: Fixed date, zero-arg callable returning one, or ``None`` for today
        notifier: Optional best-effort notifier called after a transition
        reconcile_missing_notes: Re-append the expiration note to past-deadline
            cancelled quotes that lack it
    """

    kind = "expiration"

    def __init__(
        self,
        store: QuoteStore,
        executor: Optional[TransitionExecutor] = None,
        today: Clock = None,
        notifier: Optional[Notifier] = None,
        reconcile_missing_notes: Optional[bool] = None,
    ):
        super().__init__(store, today)
        self.executor = executor or TransitionExecutor(store)
        self.notifier = notifier
        if reconcile_missing_notes is None:
            reconcile_missing_notes = settings.reconcile_missing_notes
        self.reconcile_missing_notes = reconcile_missing_notes

    def _process(self, quote: Quote, today: date) -> ItemResult:
        try:
            expired = is_expired(quote, today)
        except DeadlineParseError as e:
            logger.warning(
                f"Cannot evaluate quote {quote.id}: {e.field}={e.raw_value!r}",
                extra={"quote_id": quote.id, "raw_value": e.raw_value},
            )
            return ItemResult(quote.id, Outcome.UNEVALUABLE, error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error evaluating quote {quote.id}")
            return ItemResult(quote.id, Outcome.UNEVALUABLE, error=str(e))

        if not expired:
            if self.reconcile_missing_notes and self._missing_note(quote, today):
                return self._reconcile(quote)
            return ItemResult(quote.id, Outcome.NOT_EXPIRED)

        result = self._transition(self.executor, quote.id)
        if result.outcome is Outcome.TRANSITIONED and self.notifier is not None:
            self._notify(quote)
        return result

    # -------------------------------------------------------- reconciliation
    def _missing_note(self, quote: Quote, today: date) -> bool:
        """Cancelled, past its deadline, and without the expiration note."""
        if not quote.is_cancelled or quote.has_note(self.executor.note_text):
            return False
        governing = deadline_field(quote)
        if governing is None:
            return False
        try:
            return parse_deadline(governing[1], governing[0]) < today
        except DeadlineParseError:
            return False

    def _reconcile(self, quote: Quote) -> ItemResult:
        try:
            self.executor.annotate(quote.id)
        except TransitionError as e:
            return ItemResult(quote.id, Outcome.RECONCILE_FAILED, step=e.step.value, error=str(e.cause))
        return ItemResult(quote.id, Outcome.RECONCILED)

    def _notify(self, quote: Quote) -> None:
        try:
            self.notifier.notify_expired(quote)
        except Exception:
            logger.exception(f"Notification for quote {quote.id} failed")


class TenderSweep(_Sweep):
    """Automatic approval/acceptance of tender quotes whose dates have passed."""

    kind = "tender"

    def __init__(
        self,
        store: QuoteStore,
        today: Clock = None,
        actor: Optional[str] = None,
        notifier: Optional[Notifier] = None,
    ):
        super().__init__(store, today)
        self.actor = actor or settings.system_actor
        self.notifier = notifier
        self._executors = {
            state: TransitionExecutor(store, self.actor, target_state=state, note_text=text)
            for state, text in TENDER_NOTES.items()
        }

    def _process(self, quote: Quote, today: date) -> ItemResult:
        try:
            target = next_tender_state(quote, today)
        except DeadlineParseError as e:
            return ItemResult(quote.id, Outcome.UNEVALUABLE, error=str(e))
        if target is None:
            return ItemResult(quote.id, Outcome.NOT_DUE)

        result = self._transition(self._executors[target], quote.id)
        if result.outcome is Outcome.TRANSITIONED and self.notifier is not None:
            try:
                self.notifier.notify_tender(quote, target)
            except Exception:
                logger.exception(f"Notification for tender quote {quote.id} failed")
        return result
