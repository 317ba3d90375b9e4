"""
quoteflow.stores
================

Quote Store clients.  :pyfunc:`build_store` picks one by backend name
(``tmforum``, ``sql`` or ``memory``); the SQL backend is imported lazily so
that the TMForum path does not pull in SQLModel.
"""

from __future__ import annotations

from quoteflow.settings import QUOTE_STORE_BACKEND

from .base import QuoteStore
from .memory import InMemoryQuoteStore
from .tmforum import TMForumQuoteStore

__all__ = ["QuoteStore", "InMemoryQuoteStore", "TMForumQuoteStore", "build_store"]

BACKENDS = ("tmforum", "sql", "memory")


def build_store(backend: str | None = None) -> QuoteStore:
    """Return a fresh store for *backend* (defaults to ``QUOTEFLOW_STORE``)."""
    backend = (backend or QUOTE_STORE_BACKEND).lower()
    if backend == "tmforum":
        return TMForumQuoteStore()
    if backend == "sql":
        from .sql import SQLQuoteStore
        return SQLQuoteStore()
    if backend == "memory":
        return InMemoryQuoteStore()
    raise ValueError(f"unknown quote store backend {backend!r}; expected one of {BACKENDS}")
