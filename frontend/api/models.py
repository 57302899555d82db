"""
Canonical shapes for data returned by the Event Poster service.

Every response is normalized here, once, before any page sees it, so pages
never deal with missing keys or alternate field names.
"""

import re
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from frontend.session.store import User

EVENT_TYPES = ["Conference", "Workshop", "Meetup", "Webinar", "Other"]

# Creator fields seen in older payloads; only creator_id is honored
_LEGACY_CREATOR_KEYS = ("created_by", "userId")

_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_dt(val: Optional[str]) -> Optional[datetime]:
    """
    Safely parse an ISO-8601 string to a timezone-aware datetime.

    Args:
        val (str): The date string to parse.

    Returns:
        datetime: The parsed datetime (naive values are taken as UTC), or None if invalid.
    """
    if not val or not isinstance(val, str):
        return None
    try:
        # Handles '...Z', '...+00:00' and nanosecond fractions
        if val.endswith("Z"):
            val = val[:-1] + "+00:00"
        val = _FRACTION.sub(r"\1", val)
        parsed = datetime.fromisoformat(val)
    except (ValueError, TypeError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _int_or_none(val: Any) -> Optional[int]:
    try:
        return int(val)
    except (TypeError, ValueError):
        return None


@dataclass
class Event:
    id: int
    title: str
    description: str = ""
    location: str = ""
    event_type: str = ""
    event_date: Optional[datetime] = None
    seats: int = 0
    creator_id: Optional[int] = None
    registrations_count: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Event":
        if data.get("creator_id") is None and any(k in data for k in _LEGACY_CREATOR_KEYS):
            logging.warning(f"[API] Event {data.get('id')} has no creator_id; ownership unknown")

        # The list endpoint reports the count as "registrations"
        count = data.get("registrations_count", data.get("registrations"))

        return cls(
            id=_int_or_none(data.get("id")),
            title=data.get("title") or "",
            description=data.get("description") or "",
            location=data.get("location") or "",
            event_type=data.get("event_type") or "",
            event_date=parse_dt(data.get("event_date")),
            seats=_int_or_none(data.get("seats")) or 0,
            creator_id=_int_or_none(data.get("creator_id")),
            registrations_count=_int_or_none(count) or 0,
            created_at=parse_dt(data.get("created_at")),
        )

    @property
    def available_seats(self) -> int:
        return max(self.seats - self.registrations_count, 0)

    @property
    def is_full(self) -> bool:
        return self.seats > 0 and self.registrations_count >= self.seats

    def is_past(self, now: Optional[datetime] = None) -> bool:
        if self.event_date is None:
            return False
        return self.event_date < (now or datetime.now(timezone.utc))

    def is_owned_by(self, user: Optional[User]) -> bool:
        if user is None or self.creator_id is None:
            return False
        return _int_or_none(user.id) == self.creator_id


@dataclass
class Registration:
    id: int
    event_id: Optional[int]
    user_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    # Event summary joined in by the server, when present
    event_title: str = ""
    event_description: str = ""
    event_location: str = ""
    event_type: str = ""
    event_date: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Registration":
        return cls(
            id=_int_or_none(data.get("id")),
            event_id=_int_or_none(data.get("event_id")),
            user_id=_int_or_none(data.get("user_id")),
            notes=data.get("notes") or None,
            created_at=parse_dt(data.get("created_at")),
            event_title=data.get("event_title") or "",
            event_description=data.get("event_description") or "",
            event_location=data.get("event_location") or "",
            event_type=data.get("event_type") or "",
            event_date=parse_dt(data.get("event_date")),
        )
