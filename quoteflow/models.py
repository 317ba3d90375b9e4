"""
quoteflow.models
================

Dataclasses and enums representing a single quote as exchanged with the
TMForum Quote Management API.  These objects carry **no** external-library
dependencies so that the policy and sweep modules can be unit-tested
without a network or a database.

Deadline fields are kept as the raw strings the store returned; parsing is
the job of :pymod:`quoteflow.policy` so a malformed value never prevents a
snapshot from loading.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class QuoteState(str, Enum):
    """TMForum ``QuoteStateType`` values."""
    PENDING = "pending"
    IN_PROGRESS = "inProgress"
    APPROVED = "approved"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    def __str__(self) -> str:        # nicer REPL display
        return self.value

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["QuoteState"]:
        """Case-insensitive lookup; ``None`` for unknown or empty values."""
        if not raw:
            return None
        lowered = raw.strip().lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        return None


_NANOS = re.compile(r"(\.\d{6})\d+")


def _parse_instant(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    # Java writes nanosecond fractions; datetime keeps microseconds
    value = _NANOS.sub(r"\1", raw.replace("Z", "+00:00"))
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


@dataclass
class Note:
    """
    One annotation on a quote (append-only).

    ``raw_date`` keeps the date string exactly as the store sent it; note
    patches resend the whole array, so it is written back unchanged even
    when it does not parse.
    """
    text: str
    author: Optional[str] = None
    date: Optional[datetime] = None
    id: Optional[str] = None
    raw_date: Optional[str] = None

    @classmethod
    def from_tmf(cls, payload: Dict[str, Any]) -> "Note":
        return cls(
            text=payload.get("text") or "",
            author=payload.get("author"),
            date=_parse_instant(payload.get("date")),
            id=payload.get("id"),
            raw_date=payload.get("date"),
        )

    def to_tmf(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"@type": "Note", "text": self.text}
        if self.raw_date is not None:
            out["date"] = self.raw_date
        elif self.date is not None:
            out["date"] = self.date.isoformat()
        if self.author is not None:
            out["author"] = self.author
        if self.id is not None:
            out["id"] = self.id
        return out


@dataclass
class RelatedParty:
    """A party (customer, seller, ...) referenced by a quote."""
    id: str
    role: Optional[str] = None
    name: Optional[str] = None
    href: Optional[str] = None
    referred_type: Optional[str] = None

    @classmethod
    def from_tmf(cls, payload: Dict[str, Any]) -> "RelatedParty":
        return cls(
            id=payload.get("id", ""),
            role=payload.get("role"),
            name=payload.get("name"),
            href=payload.get("href"),
            referred_type=payload.get("@referredType"),
        )

    def to_tmf(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id}
        if self.href is not None:
            out["href"] = self.href
        if self.role is not None:
            out["role"] = self.role
        if self.name is not None:
            out["name"] = self.name
        if self.referred_type is not None:
            out["@referredType"] = self.referred_type
        return out


@dataclass
class QuoteItem:
    """
    A line of a quote.

    ``attachment`` is kept as the raw TMForum list so that status patches can
    send it back untouched.
    """
    id: Optional[str] = None
    state: Optional[str] = None
    action: Optional[str] = None
    quantity: Optional[Any] = None
    related_party: List[RelatedParty] = field(default_factory=list)
    attachment: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_tmf(cls, payload: Dict[str, Any]) -> "QuoteItem":
        return cls(
            id=payload.get("id"),
            state=payload.get("state"),
            action=payload.get("action"),
            quantity=payload.get("quantity"),
            related_party=[RelatedParty.from_tmf(p) for p in payload.get("relatedParty") or []],
            attachment=list(payload.get("attachment") or []),
        )


@dataclass
class Quote:
    """
    Quote snapshot as read from the Quote Store.

    Parameters
    ----------
    id : str
        Opaque, immutable identifier.
    state : str | None
        Raw state string as stored (not necessarily a :class:`QuoteState`).
    expected_completion_date : str | None
        Primary deadline signal.
    requested_completion_date : str | None
        Fallback deadline, consulted only when the primary is absent.
    notes : list[Note]
        Append-only annotation history.
    """
    id: str
    state: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    expected_completion_date: Optional[str] = None
    requested_completion_date: Optional[str] = None
    expected_fulfillment_start_date: Optional[str] = None
    effective_completion_date: Optional[str] = None
    notes: List[Note] = field(default_factory=list)
    related_party: List[RelatedParty] = field(default_factory=list)
    quote_items: List[QuoteItem] = field(default_factory=list)

    # Convenience helpers -------------------------------------------------
    @property
    def is_cancelled(self) -> bool:
        return QuoteState.parse(self.state) is QuoteState.CANCELLED

    def party_id(self, role: str) -> Optional[str]:
        """Return the id of the first related party with *role*, if any."""
        for party in self.related_party:
            if (party.role or "").lower() == role.lower():
                return party.id
        return None

    def has_note(self, text: str) -> bool:
        return any(n.text == text for n in self.notes)

    # TMForum conversion --------------------------------------------------
    @classmethod
    def from_tmf(cls, payload: Dict[str, Any]) -> "Quote":
        """Build a Quote from a TMForum ``Quote`` JSON object."""
        if not payload.get("id"):
            raise ValueError("quote payload has no id")
        return cls(
            id=payload["id"],
            state=payload.get("state"),
            category=payload.get("category"),
            description=payload.get("description"),
            expected_completion_date=payload.get("expectedQuoteCompletionDate"),
            requested_completion_date=payload.get("requestedQuoteCompletionDate"),
            expected_fulfillment_start_date=payload.get("expectedFulfillmentStartDate"),
            effective_completion_date=payload.get("effectiveQuoteCompletionDate"),
            notes=[Note.from_tmf(n) for n in payload.get("note") or []],
            related_party=[RelatedParty.from_tmf(p) for p in payload.get("relatedParty") or []],
            quote_items=[QuoteItem.from_tmf(i) for i in payload.get("quoteItem") or []],
        )

    def to_tmf(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"@type": "Quote", "id": self.id}
        optional = {
            "state": self.state,
            "category": self.category,
            "description": self.description,
            "expectedQuoteCompletionDate": self.expected_completion_date,
            "requestedQuoteCompletionDate": self.requested_completion_date,
            "expectedFulfillmentStartDate": self.expected_fulfillment_start_date,
            "effectiveQuoteCompletionDate": self.effective_completion_date,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        out["note"] = [n.to_tmf() for n in self.notes]
        out["relatedParty"] = [p.to_tmf() for p in self.related_party]
        return out
