"""
quoteflow.db
============

SQLite persistence layer for the local quote store.

This module exposes:

* ``engine`` – a global SQLModel engine pointing at ``settings.DB_URL``
* ``SessionLocal`` – a session factory used via ``with SessionLocal() as s:``
* ``create_all()`` – helper to create tables at first run

The TMForum API is the production store; the SQL tables back development,
demos (``seed_database.py``) and integration tests.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, JSON
from sqlalchemy.engine import Engine
from sqlmodel import Field, Session, SQLModel, create_engine

from quoteflow.models import Note, Quote, QuoteItem, RelatedParty
from quoteflow.settings import DB_ECHO, DB_URL

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
engine = create_engine(DB_URL, echo=DB_ECHO)


# ---------------------------------------------------------------------------
# Session factory
# ---------------------------------------------------------------------------
def SessionLocal(bind: Optional[Engine] = None) -> Session:  # noqa: N802 (factory camel-case for consistency with FastAPI docs)
    """Return a new Session bound to *bind* or the global engine."""
    return Session(bind or engine)


# ---------------------------------------------------------------------------
# ORM models mirroring quoteflow.models.Quote / Note
# ---------------------------------------------------------------------------
class QuoteRow(SQLModel, table=True):
    """SQLite-backed representation of a :class:`quoteflow.models.Quote`."""

    __tablename__ = "quote"

    id: str = Field(primary_key=True, index=True)
    state: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    expected_completion_date: Optional[str] = None
    requested_completion_date: Optional[str] = None
    expected_fulfillment_start_date: Optional[str] = None
    effective_completion_date: Optional[str] = None
    related_party: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    quote_items: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))

    # ---------------------------------------------------------------------
    # Converters
    # ---------------------------------------------------------------------
    @classmethod
    def from_quote(cls, q: Quote) -> "QuoteRow":
        """Create a DB row from an in-memory quote (notes are stored separately)."""
        return cls(
            id=q.id,
            state=q.state,
            category=q.category,
            description=q.description,
            expected_completion_date=q.expected_completion_date,
            requested_completion_date=q.requested_completion_date,
            expected_fulfillment_start_date=q.expected_fulfillment_start_date,
            effective_completion_date=q.effective_completion_date,
            related_party=[p.to_tmf() for p in q.related_party],
            quote_items=[_item_to_json(i) for i in q.quote_items],
        )

    def to_quote(self, notes: List["NoteRow"]) -> Quote:
        """Convert the DB row (plus its notes) back into a plain Quote."""
        return Quote(
            id=self.id,
            state=self.state,
            category=self.category,
            description=self.description,
            expected_completion_date=self.expected_completion_date,
            requested_completion_date=self.requested_completion_date,
            expected_fulfillment_start_date=self.expected_fulfillment_start_date,
            effective_completion_date=self.effective_completion_date,
            notes=[n.to_note() for n in notes],
            related_party=[RelatedParty.from_tmf(p) for p in self.related_party or []],
            quote_items=[QuoteItem.from_tmf(i) for i in self.quote_items or []],
        )


class NoteRow(SQLModel, table=True):
    """One appended note; ``seq`` keeps insertion order."""

    __tablename__ = "quote_note"

    seq: Optional[int] = Field(default=None, primary_key=True)
    quote_id: str = Field(foreign_key="quote.id", index=True)
    text: str
    author: Optional[str] = None
    date: Optional[datetime] = None

    def to_note(self) -> Note:
        return Note(text=self.text, author=self.author, date=self.date, id=str(self.seq))


def _item_to_json(item: QuoteItem) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": item.id,
        "state": item.state,
        "action": item.action,
        "quantity": item.quantity,
    }
    if item.related_party:
        out["relatedParty"] = [p.to_tmf() for p in item.related_party]
    if item.attachment:
        out["attachment"] = list(item.attachment)
    return out


# ---------------------------------------------------------------------------
# Utility: create tables
# ---------------------------------------------------------------------------
def create_all(bind: Optional[Engine] = None) -> None:
    """Create the quote and note tables if they do not exist."""
    SQLModel.metadata.create_all(bind or engine)
