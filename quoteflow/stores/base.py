"""
quoteflow.stores.base
=====================

Shared abstract base class for all Quote Store clients.

The sweep only needs ``list_all_quotes``, ``update_status`` and
``append_note``; ``get_quote`` and ``create_quote`` serve the TMForum note
patch and the local backends.
"""

__all__ = ["QuoteStore"]

from abc import ABC, abstractmethod
from typing import List

from quoteflow.models import Quote, QuoteState


class QuoteStore(ABC):
    """
    Abstract Quote Store.

    Contract
    --------
    * ``update_status`` is idempotent: cancelling a cancelled quote succeeds.
    * ``append_note`` always appends; calling it twice creates two notes.
    * Every failure is raised as :class:`~quoteflow.errors.QuoteStoreError`.
    """

    @abstractmethod
    def list_all_quotes(self) -> List[Quote]:
        """Return a snapshot of every quote."""

    @abstractmethod
    def get_quote(self, quote_id: str) -> Quote:
        """Return one quote or raise QuoteNotFound."""

    @abstractmethod
    def update_status(self, quote_id: str, state: QuoteState) -> Quote:
        """Set the state of a quote and return the updated snapshot."""

    @abstractmethod
    def append_note(self, quote_id: str, author: str, text: str) -> Quote:
        """Append one note and return the updated snapshot."""

    def create_quote(self, quote: Quote) -> Quote:
        raise NotImplementedError(f"{type(self).__name__} does not create quotes")

    def close(self) -> None:
        """Release any held resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
