"""
api.deps
========

FastAPI dependency providers.

`get_store` opens a fresh Quote Store per request and closes it afterwards;
`get_trigger` returns the process-wide :class:`SweepTrigger` so that manual
sweeps share the scheduler's non-overlap lock.
"""

from functools import lru_cache
from typing import Generator

from quoteflow.jobs import daily_job
from quoteflow.scheduler import SweepTrigger
from quoteflow.settings import settings
from quoteflow.stores import QuoteStore, build_store


@lru_cache
def get_settings():
    """Return application settings."""
    return settings


@lru_cache
def get_trigger() -> SweepTrigger:
    """Singleton trigger (persists across requests)."""
    return SweepTrigger(daily_job)


def get_store() -> Generator[QuoteStore, None, None]:
    """Yield a store for the configured backend and close it after the request."""
    store = build_store()
    try:
        yield store
    finally:
        store.close()
