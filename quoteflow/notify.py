"""
quoteflow.notify
================

Best-effort notifications to the trading partners of a quote.

After the sweep changes a quote, the seller is reported as sender and the
customer as recipient to the notification service.  Delivery failures are
logged and swallowed; a failed notification never changes the outcome of
the transition that triggered it and is not retried.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional, Tuple

import requests

from .models import Quote, QuoteState
from .policy import deadline_field
from .settings import settings

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    sender: str
    recipient: str
    subject: str
    message: str


def expiration_notice(quote: Quote) -> Optional[Notification]:
    """Build the expiry notification, or ``None`` without customer and seller."""
    customer = quote.party_id("customer")
    seller = quote.party_id("seller")
    if not customer or not seller:
        return None
    governing = deadline_field(quote)
    deadline = governing[1] if governing else "unknown"
    return Notification(
        sender=seller,
        recipient=customer,
        subject="Quote Expired",
        message=(
            f"Quote (ID: {quote.id}) has been automatically cancelled because its "
            f"completion date ({deadline}) has passed."
        ),
    )


def tender_notice(quote: Quote, new_state: QuoteState) -> Optional[Notification]:
    customer = quote.party_id("customer")
    seller = quote.party_id("seller")
    if not customer or not seller:
        return None
    if new_state is QuoteState.APPROVED:
        message = (
            f"Tender Quote (ID: {quote.id}) has been automatically approved. The expected "
            f"fulfillment start date ({quote.expected_fulfillment_start_date}) has been reached."
        )
    elif new_state is QuoteState.ACCEPTED:
        message = (
            f"Tender Quote (ID: {quote.id}) has been automatically accepted. The effective "
            f"quote completion date ({quote.effective_completion_date}) has been reached."
        )
    else:
        message = f"Tender Quote (ID: {quote.id}) status has been updated to: {new_state.value}"
    return Notification(seller, customer, "Tender Quote Status Update", message)


class Notifier:
    """
    HTTP client for the notification service.

    Args:
        base_url: Service base URL; ``None`` disables sending
        endpoint: Path appended to the base URL
        timeout: ``(connect, read)`` timeout tuple
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: Optional[Tuple[float, float]] = None,
        session: Optional[requests.Session] = None,
    ):
        if base_url is None and settings.notification_base_url is not None:
            base_url = str(settings.notification_base_url)
        self.url = (base_url.rstrip("/") + (endpoint or settings.notification_endpoint)) if base_url else None
        self.timeout = timeout or settings.timeouts
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return self.url is not None

    def send(self, notification: Notification) -> bool:
        """POST *notification*; returns False instead of raising on failure."""
        if not self.enabled:
            logger.debug("Notifications disabled; nothing sent")
            return False
        try:
            response = self.session.post(self.url, json=asdict(notification), timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to send notification to {notification.recipient}: {e}")
            return False
        logger.info(
            f"Sent notification from '{notification.sender}' to '{notification.recipient}'"
        )
        return True

    def notify_expired(self, quote: Quote) -> bool:
        notice = expiration_notice(quote)
        if notice is None:
            logger.info(f"Quote {quote.id} has no customer/seller pair; no notification")
            return False
        return self.send(notice)

    def notify_tender(self, quote: Quote, new_state: QuoteState) -> bool:
        notice = tender_notice(quote, new_state)
        if notice is None:
            return False
        return self.send(notice)
