"""
Event page handlers: list, detail, create, edit, delete, and register for an event.

Pages read the session through the session store and fetch everything
through the API gateway. API failures are shown as a banner on the page.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from flask import Blueprint, abort, redirect, render_template, request, Response, url_for

from frontend.api.errors import ApiError
from frontend.api.models import EVENT_TYPES, Event, Registration
from frontend.confirmation_pages.content import (
    EVENT_CREATED,
    EVENT_DELETED,
    EVENT_UPDATED,
    REGISTRATION_SUCCESSFUL,
)
from frontend.events_pages.forms import validate_event_form
from frontend.web.context import current_user, get_api, get_store, login_redirect

events_bp = Blueprint("events", __name__)

PageResult = Union[Response, str, Tuple[str, int]]


# --- REQUEST LOGGING ---
@events_bp.before_request
def before_request() -> None:
    logging.info(f"[Events] Incoming {request.method} {request.path}")


@events_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Events] Response {response.status}")
    return response


# --- HELPERS ---
def _confirmation(action: str, event: Optional[Event] = None) -> Response:
    params: Dict[str, Any] = {"action": action}
    if event is not None:
        params["event"] = event.title
        if event.id is not None:
            params["eventId"] = event.id
    return redirect(url_for("confirmation.confirmation", **params))


def _form_values(event: Event) -> Dict[str, Any]:
    """Prefill values for the edit form; dates as UTC datetime-local strings."""
    event_date = ""
    if event.event_date:
        # The form posts back naive values that are read as UTC
        event_date = event.event_date.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M")
    return {
        "title": event.title,
        "description": event.description,
        "location": event.location,
        "event_type": event.event_type,
        "event_date": event_date,
        "seats": event.seats or "",
    }


def _session_expired(e: ApiError, next_path: str) -> Optional[Response]:
    # The gateway already cleared the rejected session
    if e.is_unauthorized and not get_store().is_authenticated():
        return login_redirect(next_path)
    return None


def _render_form(mode: str, form: Dict[str, Any], errors: Dict[str, str],
                 event_id: Optional[int] = None, error: Optional[str] = None,
                 status: int = 200) -> Tuple[str, int]:
    return render_template(
        "event_form.html",
        mode=mode,
        form=form,
        errors=errors,
        error=error,
        event_id=event_id,
        event_types=EVENT_TYPES,
    ), status


# --- LIST ---
@events_bp.route("/", methods=["GET"], strict_slashes=False)
def list_events() -> PageResult:
    """All upcoming and past events, soonest first."""
    try:
        events = get_api().list_events()
    except ApiError as e:
        return render_template("events.html", events=[], error=e.message), e.http_status

    far_future = datetime.max.replace(tzinfo=timezone.utc)
    events.sort(key=lambda ev: ev.event_date or far_future)
    return render_template("events.html", events=events, error=None)


# --- DETAIL ---
@events_bp.route("/<int:event_id>", methods=["GET"])
def event_detail(event_id: int) -> PageResult:
    """
    Show one event.

    Owners see edit/delete controls and the registration list; logged-in
    non-owners see a register button while the event is open.
    """
    api = get_api()
    try:
        event = api.get_event(event_id)
    except ApiError as e:
        if e.is_not_found:
            abort(404)
        return render_template("event_detail.html", event=None, error=e.message), e.http_status

    user = current_user()
    is_owner = event.is_owned_by(user)

    registrations: List[Registration] = []
    if is_owner:
        try:
            registrations = api.list_registrations(event_id=event_id)
        except ApiError as e:
            logging.warning(f"[Events] Could not load registrations for event {event_id}: {e}")

    return render_template(
        "event_detail.html",
        event=event,
        error=None,
        is_owner=is_owner,
        can_register=bool(user) and not is_owner and not event.is_full and not event.is_past(),
        registrations=registrations,
    )


# --- CREATE ---
@events_bp.route("/new", methods=["GET", "POST"])
@events_bp.route("/create", methods=["GET", "POST"])
def create_event() -> PageResult:
    """
    Create an event. Requires a session (enforced by the route guard).

    Redirects to the confirmation page with action=event-created on success.
    """
    if request.method == "GET":
        # Confirm the stored token still works before the user fills in the form
        try:
            get_api().get_current_user()
        except ApiError as e:
            expired = _session_expired(e, request.path)
            if expired is not None:
                return expired
            return _render_form("create", {}, {}, error="You must be logged in to create or edit events.",
                                status=e.http_status)
        return _render_form("create", {}, {})

    fields, errors = validate_event_form(request.form)
    if errors:
        return _render_form("create", request.form.to_dict(), errors, status=400)

    try:
        event = get_api().create_event(fields)
    except ApiError as e:
        expired = _session_expired(e, request.path)
        if expired is not None:
            return expired
        return _render_form("create", request.form.to_dict(), {},
                            error=f"Failed to create event: {e.message}", status=e.http_status)

    logging.info(f"[Events] Created event {event.id}")
    return _confirmation(EVENT_CREATED, event)


# --- EDIT ---
@events_bp.route("/<int:event_id>/edit", methods=["GET", "POST"])
def edit_event(event_id: int) -> PageResult:
    """
    Edit an event the current user created.

    Returns:
        The form, a 403 page for non-owners, or a redirect to the confirmation
        page with action=event-updated.
    """
    api = get_api()
    try:
        event = api.get_event(event_id)
    except ApiError as e:
        if e.is_not_found:
            abort(404)
        return _render_form("edit", {}, {}, event_id=event_id,
                            error="Failed to load event data. Please try again.", status=e.http_status)

    if not event.is_owned_by(current_user()):
        return render_template("error.html", title="Permission denied",
                               message="You can only edit events you created."), 403

    if request.method == "GET":
        return _render_form("edit", _form_values(event), {}, event_id=event_id)

    fields, errors = validate_event_form(request.form)
    if errors:
        return _render_form("edit", request.form.to_dict(), errors, event_id=event_id, status=400)

    try:
        updated = api.update_event(event_id, fields)
    except ApiError as e:
        expired = _session_expired(e, request.path)
        if expired is not None:
            return expired
        return _render_form("edit", request.form.to_dict(), {}, event_id=event_id,
                            error=f"Failed to save event: {e.message}", status=e.http_status)

    return _confirmation(EVENT_UPDATED, updated)


# --- DELETE ---
@events_bp.route("/<int:event_id>/delete", methods=["POST"])
def delete_event(event_id: int) -> PageResult:
    """Delete an event (owner only, checked by the service). Registrations go with it."""
    if not get_store().is_authenticated():
        return login_redirect(f"/events/{event_id}")

    try:
        get_api().delete_event(event_id)
    except ApiError as e:
        expired = _session_expired(e, f"/events/{event_id}")
        if expired is not None:
            return expired
        return render_template("error.html", title="Failed to delete event", message=e.message), e.http_status

    logging.info(f"[Events] Deleted event {event_id}")
    return _confirmation(EVENT_DELETED)


# --- REGISTER FOR EVENT ---
@events_bp.route("/<int:event_id>/register", methods=["GET", "POST"])
def register_for_event(event_id: int) -> PageResult:
    """
    Register the current user for an event.

    Logged-out users are sent to login and brought back here. Registration is
    refused for past events, full events and the user's own events.
    """
    if not get_store().is_authenticated():
        return login_redirect(request.path)

    api = get_api()
    try:
        event = api.get_event(event_id)
    except ApiError as e:
        if e.is_not_found:
            abort(404)
        return render_template("register_event.html", event=None,
                               error="Failed to load event details. Please try again later."), e.http_status

    refusal = None
    if event.is_past():
        refusal = "Registration for this event has closed as the event date has passed."
    elif event.is_full:
        refusal = "This event has reached its capacity. No more registrations are being accepted."
    elif event.is_owned_by(current_user()):
        refusal = "You cannot register for your own event."

    if refusal:
        return render_template("register_event.html", event=event, error=refusal), 409

    if request.method == "GET":
        return render_template("register_event.html", event=event, error=None, notes="")

    notes = (request.form.get("notes") or "").strip()
    try:
        api.create_registration(event_id, notes=notes or None)
    except ApiError as e:
        expired = _session_expired(e, request.path)
        if expired is not None:
            return expired
        return render_template("register_event.html", event=event, notes=notes,
                               error=e.message), e.http_status

    logging.info(f"[Events] Registered for event {event_id}")
    return _confirmation(REGISTRATION_SUCCESSFUL, event)
