"""
Dashboard page handlers.

Provides:
- /dashboard?tab=events|registrations: the user's events and registrations
- Cancel a registration
- Edit the notes on a registration
"""

import logging
from typing import List, Tuple, Union

from flask import Blueprint, abort, redirect, render_template, request, Response, url_for

from frontend.api.errors import ApiError
from frontend.confirmation_pages.content import REGISTRATION_DELETED
from frontend.web.context import current_user, get_api, get_store, login_redirect

dashboard_bp = Blueprint("dashboard", __name__)

PageResult = Union[Response, str, Tuple[str, int]]

EVENTS_TAB = "events"
REGISTRATIONS_TAB = "registrations"

# Older links use ?tab=myEvents
_TAB_ALIASES = {"myEvents": EVENTS_TAB, "my-events": EVENTS_TAB}


# --- REQUEST LOGGING ---
@dashboard_bp.before_request
def before_request() -> None:
    logging.info(f"[Dashboard] Incoming {request.method} {request.path}")


@dashboard_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Dashboard] Response {response.status}")
    return response


def _login_required() -> Union[Response, None]:
    # /dashboard itself is covered by the route guard; the sub-pages check here
    if not get_store().is_authenticated():
        return login_redirect(request.path)
    return None


# --- OVERVIEW ---
@dashboard_bp.route("/", methods=["GET"], strict_slashes=False)
def dashboard() -> PageResult:
    """
    Show either the events the user created or the registrations they made.

    Returns:
        200: The dashboard with the selected tab.
        4xx/5xx: The dashboard with an error banner when loading fails.
    """
    tab = request.args.get("tab", EVENTS_TAB)
    tab = _TAB_ALIASES.get(tab, tab)
    if tab not in (EVENTS_TAB, REGISTRATIONS_TAB):
        tab = EVENTS_TAB

    api = get_api()
    items: List = []
    try:
        if tab == EVENTS_TAB:
            items = api.list_my_events()
        else:
            items = api.list_my_registrations()
    except ApiError as e:
        if e.is_unauthorized and not get_store().is_authenticated():
            return login_redirect("/dashboard")
        what = "your events" if tab == EVENTS_TAB else "your registrations"
        logging.error(f"[Dashboard] Failed to load {what}: {e}")
        return render_template(
            "dashboard.html",
            tab=tab,
            items=[],
            error=f"Failed to load {what}. Please try again.",
        ), e.http_status

    return render_template("dashboard.html", tab=tab, items=items, error=None, user=current_user())


# --- CANCEL REGISTRATION ---
@dashboard_bp.route("/registrations/<int:registration_id>/cancel", methods=["POST"])
def cancel_registration(registration_id: int) -> PageResult:
    denied = _login_required()
    if denied is not None:
        return denied

    try:
        get_api().delete_registration(registration_id)
    except ApiError as e:
        if e.is_unauthorized and not get_store().is_authenticated():
            return login_redirect("/dashboard?tab=registrations")
        logging.error(f"[Dashboard] Failed to cancel registration {registration_id}: {e}")
        return render_template(
            "dashboard.html",
            tab=REGISTRATIONS_TAB,
            items=[],
            error="Failed to cancel registration. Please try again.",
        ), e.http_status

    return redirect(url_for("confirmation.confirmation", action=REGISTRATION_DELETED))


# --- EDIT REGISTRATION NOTES ---
@dashboard_bp.route("/registrations/<int:registration_id>/edit", methods=["GET", "POST"])
def edit_registration(registration_id: int) -> PageResult:
    """Update the free-text notes attached to one of the user's registrations."""
    denied = _login_required()
    if denied is not None:
        return denied

    api = get_api()
    try:
        registration = api.get_registration(registration_id)
    except ApiError as e:
        if e.is_not_found:
            abort(404)
        return render_template("error.html", title="Failed to load registration", message=e.message), e.http_status

    if request.method == "GET":
        return render_template("registration_form.html", registration=registration, error=None)

    notes = (request.form.get("notes") or "").strip()
    try:
        api.update_registration(registration_id, {"event_id": registration.event_id, "notes": notes})
    except ApiError as e:
        registration.notes = notes
        return render_template("registration_form.html", registration=registration,
                               error=e.message), e.http_status

    return redirect(url_for("dashboard.dashboard", tab=REGISTRATIONS_TAB))
