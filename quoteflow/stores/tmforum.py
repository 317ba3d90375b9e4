"""
quoteflow.stores.tmforum
========================

TMForum Quote Management API (TMF648 v4) client.

This module provides a :class:`~quoteflow.stores.base.QuoteStore` over the
remote ``/quote/v4/quote`` resource using ``requests``.  Every call uses a
bounded ``(connect, read)`` timeout; any transport error, timeout or
non-2xx response is raised as :class:`~quoteflow.errors.QuoteStoreError`.

Usage:
------
store = TMForumQuoteStore()                 # base URL from settings
quotes = store.list_all_quotes()            # follows limit/offset pages
store.update_status("urn:quote:1", QuoteState.CANCELLED)
store.append_note("urn:quote:1", "SYSTEM", "...")

Note updates are PATCHes of the whole ``note`` array, so ``append_note``
reads the current quote first and sends the existing notes plus the new one.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import requests

from quoteflow.errors import QuoteNotFound, QuoteStoreError
from quoteflow.models import Quote, QuoteItem, QuoteState
from quoteflow.settings import settings as default_settings

from .base import QuoteStore

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}


def build_status_patch(state: QuoteState, quote: Quote) -> Dict[str, Any]:
    """
    Payload setting *state* on the quote and on every quote item.

    Item ids, action, quantity, related parties and attachments are sent
    back so the remote API does not drop them.  A quote without items gets a
    single minimal item carrying the state.
    """
    items: List[Dict[str, Any]] = []
    for item in quote.quote_items:
        items.append(_item_patch(item, state))
    if not items:
        items.append({"@type": "QuoteItem", "state": state.value, "action": "add", "quantity": 1})
    return {"state": state.value, "quoteItem": items}


def _item_patch(item: QuoteItem, state: QuoteState) -> Dict[str, Any]:
    out: Dict[str, Any] = {"state": state.value}
    if item.id is not None:
        out["id"] = item.id
    if item.action is not None:
        out["action"] = item.action
    if item.quantity is not None:
        out["quantity"] = item.quantity
    if item.related_party:
        out["relatedParty"] = [p.to_tmf() for p in item.related_party]
    if item.attachment:
        out["attachment"] = list(item.attachment)
    return out


def build_note_patch(author: str, text: str, quote: Quote,
                     now: Optional[datetime] = None) -> Dict[str, Any]:
    """Payload carrying every existing note followed by the new one."""
    now = now or datetime.now(timezone.utc)
    notes = [n.to_tmf() for n in quote.notes]
    notes.append({
        "@type": "Note",
        "text": text,
        "date": now.isoformat().replace("+00:00", "Z"),
        "author": author,
    })
    return {"note": notes}


class TMForumQuoteStore(QuoteStore):
    """
    Quote Store backed by the TMForum Quote Management API.

    Args:
        base_url: Full URL of the quote collection (defaults to settings)
        page_size: ``limit`` used when paging through ``list_all_quotes``
        timeout: ``(connect, read)`` timeout tuple in seconds
        session: Optional pre-configured ``requests.Session``
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        page_size: Optional[int] = None,
        timeout: Optional[Tuple[float, float]] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or default_settings.quote_url).rstrip("/")
        self.page_size = page_size or default_settings.tmforum_page_size
        self.timeout = timeout or default_settings.timeouts
        self.session = session or requests.Session()
        self.session.headers.update(JSON_HEADERS)

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------
    def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"TMForum {method} {url} failed: {e}")
            raise QuoteStoreError(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"TMForum {method} {url} returned {response.status_code}")
            raise QuoteStoreError(
                f"{method} {url} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise QuoteStoreError(f"{method} {url} returned invalid JSON") from e

    def _quote_url(self, quote_id: str) -> str:
        return f"{self.base_url}/{quote_id}"

    def _to_quote(self, payload: Any, quote_id: str) -> Quote:
        if not isinstance(payload, dict):
            raise QuoteStoreError(f"unexpected payload for quote {quote_id}")
        try:
            return Quote.from_tmf(payload)
        except ValueError as e:
            raise QuoteStoreError(str(e)) from e

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def list_all_quotes(self) -> List[Quote]:
        """Walk ``limit``/``offset`` pages until a short or empty page."""
        quotes: List[Quote] = []
        seen = set()
        offset = 0
        while True:
            page = self._request(
                "GET", self.base_url, params={"limit": self.page_size, "offset": offset}
            )
            if page is None:
                break
            if not isinstance(page, list):
                raise QuoteStoreError("quote listing did not return a JSON array")

            for raw in page:
                if not isinstance(raw, dict) or not raw.get("id"):
                    logger.warning(f"Skipping quote without id at offset {offset}")
                    continue
                # offset paging shifts when quotes are created mid-listing
                if raw["id"] in seen:
                    logger.warning(f"Quote {raw['id']} returned on two pages; keeping the first copy")
                    continue
                try:
                    quote = Quote.from_tmf(raw)
                except (ValueError, TypeError, AttributeError) as e:
                    logger.warning(f"Skipping malformed quote {raw['id']}: {e}")
                    continue
                seen.add(raw["id"])
                quotes.append(quote)

            logger.debug(f"Fetched {len(page)} quotes at offset {offset} (total {len(quotes)})")
            if len(page) < self.page_size:
                break
            offset += self.page_size
        return quotes

    def get_quote(self, quote_id: str) -> Quote:
        try:
            payload = self._request("GET", self._quote_url(quote_id))
        except QuoteStoreError as e:
            if e.status_code == 404:
                raise QuoteNotFound(quote_id) from e
            raise
        return self._to_quote(payload, quote_id)

    def update_status(self, quote_id: str, state: QuoteState) -> Quote:
        current = self.get_quote(quote_id)
        payload = build_status_patch(state, current)
        logger.info(f"Setting quote {quote_id} state to {state.value}")
        updated = self._request("PATCH", self._quote_url(quote_id), json=payload)
        return self._to_quote(updated, quote_id) if updated else current

    def append_note(self, quote_id: str, author: str, text: str) -> Quote:
        current = self.get_quote(quote_id)
        payload = build_note_patch(author, text, current)
        logger.info(f"Appending note by {author} to quote {quote_id}")
        updated = self._request("PATCH", self._quote_url(quote_id), json=payload)
        return self._to_quote(updated, quote_id) if updated else current

    def create_quote(self, quote: Quote) -> Quote:
        created = self._request("POST", self.base_url, json=quote.to_tmf())
        return self._to_quote(created, quote.id)

    def close(self) -> None:
        self.session.close()
