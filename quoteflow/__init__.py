"""
Quoteflow
=========

Lifecycle automation for TMForum quotes exchanged between trading partners:
a daily, idempotent sweep that cancels quotes past their completion deadline
and annotates each cancellation exactly once.

Import structure
----------------
`import quoteflow` is intentionally cheap: sub-modules are imported on
demand.  SQLModel is only loaded with :pymod:`quoteflow.db` and APScheduler
only with :pymod:`quoteflow.scheduler`.

Sub-modules
~~~~~~~~~~~
- :pymod:`quoteflow.models`      – ``Quote`` / ``Note`` dataclasses + :class:`~quoteflow.models.QuoteState`
- :pymod:`quoteflow.policy`      – deadline rules (`is_expired`, `next_tender_state`)
- :pymod:`quoteflow.transition`  – two-step status + note executor
- :pymod:`quoteflow.sweep`       – ``SweepOrchestrator`` / ``TenderSweep`` and ``SweepReport``
- :pymod:`quoteflow.stores`      – TMForum, in-memory and SQLite quote stores
- :pymod:`quoteflow.scheduler`   – daily, non-overlapping trigger
- :pymod:`quoteflow.lifecycle`   – state-machine guard (`advance_state`)

Quick start
-----------
>>> from datetime import date
>>> from quoteflow.models import Quote
>>> from quoteflow.stores.memory import InMemoryQuoteStore
>>> from quoteflow.sweep import SweepOrchestrator
>>> store = InMemoryQuoteStore([Quote("A", state="inProgress", expected_completion_date="2020-01-01")])
>>> SweepOrchestrator(store, today=date(2024, 1, 1)).run().expired
1
"""

__all__ = [
    "models",
    "policy",
    "transition",
    "sweep",
    "stores",
    "scheduler",
    "lifecycle",
]

__version__ = "0.1.0"
