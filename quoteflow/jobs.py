"""
quoteflow.jobs
==============

Wiring for one scheduled firing: build the store, run the expiration sweep
and then, when enabled, the tender sweep.  Used by the CLI, the scheduler
daemon and the API.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from .notify import Notifier
from .settings import settings
from .stores import build_store
from .stores.base import QuoteStore
from .sweep import SweepOrchestrator, SweepReport, TenderSweep

logger = logging.getLogger(__name__)


def run_sweeps(
    store: QuoteStore,
    today: Optional[date] = None,
    include_tender: Optional[bool] = None,
    notifier: Optional[Notifier] = None,
) -> List[SweepReport]:
    """
    Run the sweeps against *store*.

    A :class:`~quoteflow.errors.FetchFailure` from the expiration sweep
    propagates and the tender sweep is not attempted.
    """
    if include_tender is None:
        include_tender = settings.tender_sweep_enabled
    notifier = notifier or Notifier()
    if not notifier.enabled:
        notifier = None

    reports = [SweepOrchestrator(store, today=today, notifier=notifier).run()]
    if include_tender:
        reports.append(TenderSweep(store, today=today, notifier=notifier).run())
    return reports


def daily_job(backend: Optional[str] = None, today: Optional[date] = None,
              include_tender: Optional[bool] = None) -> List[SweepReport]:
    """One firing of the daily trigger, with a store opened for the run."""
    with build_store(backend) as store:
        return run_sweeps(store, today=today, include_tender=include_tender)
