"""
quoteflow.transition
====================

Applies the two side effects of an automatic state change to one quote:

1. a status update to the target state, then
2. one annotation note with a fixed text,

both attributed to the system actor.  The note is only attempted after the
status update succeeded and is sent at most once per call.  Either failure
is raised as :class:`~quoteflow.errors.TransitionError`; nothing is retried
here.
"""

from __future__ import annotations

import logging
from typing import Optional

from .errors import TransitionError, TransitionStep
from .models import QuoteState
from .settings import settings
from .stores.base import QuoteStore

logger = logging.getLogger(__name__)

# Matches the notes already written on existing quotes, whichever deadline
# governed; reconciliation looks for this exact text.
EXPIRATION_NOTE = "Quote automatically cancelled due to expiration of requested completion date."


class TransitionExecutor:
    """
    Two-step transition for a single quote.

    Args:
        store: Quote Store receiving the mutations
        actor: Author id for the note (defaults to ``settings.system_actor``)
        target_state: State written in step 1
        note_text: Text appended in step 2
    """

    def __init__(
        self,
        store: QuoteStore,
        actor: Optional[str] = None,
        target_state: QuoteState = QuoteState.CANCELLED,
        note_text: str = EXPIRATION_NOTE,
    ):
        self.store = store
        self.actor = actor or settings.system_actor
        self.target_state = target_state
        self.note_text = note_text

    def transition(self, quote_id: str) -> None:
        """Run both steps for *quote_id* or raise TransitionError."""
        try:
            self.store.update_status(quote_id, self.target_state)
        except Exception as e:
            raise TransitionError(quote_id, TransitionStep.STATUS_UPDATE, e) from e

        logger.debug(f"Quote {quote_id} set to {self.target_state.value}")
        self.annotate(quote_id)

    def annotate(self, quote_id: str) -> None:
        """Step 2 only: append the note once."""
        try:
            self.store.append_note(quote_id, self.actor, self.note_text)
        except Exception as e:
            raise TransitionError(quote_id, TransitionStep.NOTE_APPEND, e) from e
