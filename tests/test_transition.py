"""
tests/test_transition.py
========================

Unit tests for quoteflow.transition.TransitionExecutor, using a mocked
Quote Store so that the order and number of calls can be asserted.
"""

from unittest.mock import MagicMock, call

import pytest

from quoteflow.errors import QuoteStoreError, TransitionError, TransitionStep
from quoteflow.models import QuoteState
from quoteflow.stores.base import QuoteStore
from quoteflow.transition import EXPIRATION_NOTE, TransitionExecutor


@pytest.fixture
def store():
    return MagicMock(spec=QuoteStore)


def test_both_steps_in_order(store):
    TransitionExecutor(store, actor="system").transition("A")
    assert store.mock_calls == [
        call.update_status("A", QuoteState.CANCELLED),
        call.append_note("A", "system", EXPIRATION_NOTE),
    ]


def test_status_failure_skips_note(store):
    """A failed status update must never be followed by the note."""
    store.update_status.side_effect = QuoteStoreError("503 from gateway", status_code=503)

    with pytest.raises(TransitionError) as info:
        TransitionExecutor(store).transition("A")

    assert info.value.step is TransitionStep.STATUS_UPDATE
    assert not info.value.partial
    assert isinstance(info.value.cause, QuoteStoreError)
    store.append_note.assert_not_called()


def test_note_failure_is_partial(store):
    store.append_note.side_effect = TimeoutError("read timed out")

    with pytest.raises(TransitionError) as info:
        TransitionExecutor(store).transition("A")

    assert info.value.step is TransitionStep.NOTE_APPEND
    assert info.value.partial
    store.update_status.assert_called_once()
    # no automatic retry of the note
    assert store.append_note.call_count == 1


def test_default_actor_comes_from_settings(store):
    from quoteflow.settings import settings

    TransitionExecutor(store).transition("A")
    store.append_note.assert_called_once_with("A", settings.system_actor, EXPIRATION_NOTE)


def test_custom_target_and_text(store):
    ex = TransitionExecutor(store, actor="bot", target_state=QuoteState.APPROVED, note_text="ok")
    ex.transition("T")
    store.update_status.assert_called_once_with("T", QuoteState.APPROVED)
    store.append_note.assert_called_once_with("T", "bot", "ok")


def test_annotate_only_appends(store):
    TransitionExecutor(store).annotate("A")
    store.update_status.assert_not_called()
    store.append_note.assert_called_once()
