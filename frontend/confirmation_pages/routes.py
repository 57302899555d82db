"""
Confirmation page: /confirmation?action=&event=&eventId=

Shows what just happened and redirects after the countdown. The browser does
the waiting through a Refresh header, so the redirect happens exactly once
per page load.
"""

import logging

from flask import Blueprint, current_app, make_response, render_template, request, Response

from frontend.confirmation_pages.content import Countdown, confirmation_content, redirect_destination

confirmation_bp = Blueprint("confirmation", __name__)


@confirmation_bp.route("/", methods=["GET"], strict_slashes=False)
def confirmation() -> Response:
    action = request.args.get("action")
    event = request.args.get("event")
    event_id = request.args.get("eventId")

    destination = redirect_destination(action, event_id)
    countdown = Countdown(
        on_redirect=lambda: None,
        seconds=current_app.config["CONFIRMATION_COUNTDOWN_SECONDS"],
    )
    logging.info(f"[Confirmation] action={action} -> {destination} in {countdown.seconds}s")

    response = make_response(render_template(
        "confirmation.html",
        content=confirmation_content(action, event, event_id),
        countdown=countdown,
        destination=destination,
    ))
    response.headers["Refresh"] = f"{countdown.seconds}; url={destination}"
    return response
