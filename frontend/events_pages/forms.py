"""
Client-side validation for the event and account forms.

Validation errors are field -> message dicts. A form with errors is shown
again and never reaches the API.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from frontend.api.models import EVENT_TYPES, parse_dt

TITLE_MAX_LENGTH = 200

Errors = Dict[str, str]


def _clean(form: Mapping[str, Any], key: str) -> str:
    return (form.get(key) or "").strip()


def parse_form_date(val: str) -> Optional[datetime]:
    """
    Parse a datetime-local input ('YYYY-MM-DDTHH:MM') or ISO string.
    Naive values are taken as UTC.
    """
    return parse_dt(val)


def validate_event_form(
    form: Mapping[str, Any], now: Optional[datetime] = None
) -> Tuple[Dict[str, Any], Errors]:
    """
    Validate the create/edit event form.

    Args:
        form: Submitted form fields.
        now (datetime, optional): Reference time for the "must be in the future" rule.

    Returns:
        tuple: (fields ready for the API, errors). Fields are only complete when errors is empty.
    """
    now = now or datetime.now(timezone.utc)
    errors: Errors = {}

    title = _clean(form, "title")
    description = _clean(form, "description")
    location = _clean(form, "location")
    event_type = _clean(form, "event_type")
    raw_date = _clean(form, "event_date")
    raw_seats = _clean(form, "seats")

    if not title:
        errors["title"] = "Title is required"
    elif len(title) > TITLE_MAX_LENGTH:
        errors["title"] = f"Title must be at most {TITLE_MAX_LENGTH} characters"

    if not description:
        errors["description"] = "Description is required"

    if not location:
        errors["location"] = "Location is required"

    if not event_type:
        errors["event_type"] = "Event type is required"
    elif event_type not in EVENT_TYPES:
        errors["event_type"] = f"Event type must be one of: {', '.join(EVENT_TYPES)}"

    event_date = None
    if not raw_date:
        errors["event_date"] = "Event date is required"
    else:
        event_date = parse_form_date(raw_date)
        if event_date is None:
            errors["event_date"] = "Event date is not a valid date"
        elif event_date <= now:
            errors["event_date"] = "Event date must be in the future"

    seats = None
    if not raw_seats:
        errors["seats"] = "Number of seats is required"
    else:
        try:
            seats = int(raw_seats)
        except ValueError:
            seats = None
        if seats is None or seats <= 0:
            errors["seats"] = "Available seats must be greater than 0"

    fields: Dict[str, Any] = {
        "title": title,
        "description": description,
        "location": location,
        "event_type": event_type,
        "event_date": event_date.isoformat().replace("+00:00", "Z") if event_date else None,
        "seats": seats,
    }
    return fields, errors


def validate_login_form(form: Mapping[str, Any]) -> Tuple[Dict[str, str], Errors]:
    errors: Errors = {}
    username = _clean(form, "username")
    password = form.get("password") or ""

    if not username:
        errors["username"] = "Username is required"
    if not password:
        errors["password"] = "Password is required"
    return {"username": username, "password": password}, errors


def validate_account_form(form: Mapping[str, Any]) -> Tuple[Dict[str, str], Errors]:
    """Validate the account registration form (username, email, password + confirmation)."""
    errors: Errors = {}
    username = _clean(form, "username")
    email = _clean(form, "email").lower()
    password = form.get("password") or ""
    confirm = form.get("confirm_password") or ""

    if not username:
        errors["username"] = "Username is required"
    if not email:
        errors["email"] = "Email is required"
    elif "@" not in email:
        errors["email"] = "Email is not valid"
    if not password:
        errors["password"] = "Password is required"
    if password != confirm:
        errors["confirm_password"] = "Passwords do not match"

    return {"username": username, "email": email, "password": password}, errors
