"""
quoteflow.stores.sql
====================

SQLite-backed implementation of the QuoteStore surface.

This adapter wraps the tables in :pymod:`quoteflow.db` so that any code
expecting a Quote Store (the sweeps, the CLI) can run against a local
database without changing its calls.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from quoteflow.db import NoteRow, QuoteRow, SessionLocal
from quoteflow.errors import IllegalTransition, QuoteNotFound, QuoteStoreError
from quoteflow.lifecycle import advance_state
from quoteflow.models import Quote, QuoteState

from .base import QuoteStore


class SQLQuoteStore(QuoteStore):
    """
    Quote Store on top of a SQLModel session.

    Methods mirror the remote store:
    * list_all_quotes() / get_quote(id)
    * update_status(id, state)
    * append_note(id, author, text)
    * create_quote(quote)
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session: Session = session or SessionLocal()

    # ------------------------------------------------------------ helpers
    def _notes_for(self, quote_id: str) -> List[NoteRow]:
        stmt = select(NoteRow).where(NoteRow.quote_id == quote_id).order_by(NoteRow.seq)
        return list(self._session.exec(stmt).all())

    def _row(self, quote_id: str) -> QuoteRow:
        row = self._session.get(QuoteRow, quote_id)
        if row is None:
            raise QuoteNotFound(quote_id)
        return row

    def _commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            raise QuoteStoreError(f"database commit failed: {e}") from e

    # --------------------------------------------------------------- read
    def list_all_quotes(self) -> List[Quote]:
        try:
            rows = self._session.exec(select(QuoteRow)).all()
            return [row.to_quote(self._notes_for(row.id)) for row in rows]
        except SQLAlchemyError as e:
            raise QuoteStoreError(f"database read failed: {e}") from e

    def get_quote(self, quote_id: str) -> Quote:
        row = self._row(quote_id)
        return row.to_quote(self._notes_for(quote_id))

    # -------------------------------------------------------------- write
    def create_quote(self, quote: Quote) -> Quote:
        if self._session.get(QuoteRow, quote.id) is not None:
            raise QuoteStoreError(f"quote already exists: {quote.id}", status_code=409)
        self._session.add(QuoteRow.from_quote(quote))
        # the quote row must exist before its notes reference it
        self._commit()
        for note in quote.notes:
            self._session.add(NoteRow(quote_id=quote.id, text=note.text,
                                      author=note.author, date=note.date))
        self._commit()
        return self.get_quote(quote.id)

    def update_status(self, quote_id: str, state: QuoteState) -> Quote:
        quote = self.get_quote(quote_id)
        try:
            advance_state(quote, state)
        except IllegalTransition as e:
            raise QuoteStoreError(str(e), status_code=400) from e

        fresh = QuoteRow.from_quote(quote)
        row = self._row(quote_id)
        row.state = fresh.state
        row.quote_items = fresh.quote_items
        self._session.add(row)
        self._commit()
        return self.get_quote(quote_id)

    def append_note(self, quote_id: str, author: str, text: str) -> Quote:
        self._row(quote_id)
        self._session.add(NoteRow(quote_id=quote_id, text=text, author=author,
                                  date=datetime.now(timezone.utc)))
        self._commit()
        return self.get_quote(quote_id)

    # ----------------------------------------------------- context manager
    def close(self) -> None:
        self._session.close()
