"""
Confirmation view logic.

Provides:
- Content (title, message, buttons) for each confirmation action
- The auto-redirect destination for an action
- Countdown: fires the redirect exactly once
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from frontend import config

# --- ACTIONS ---
REGISTRATION_SUCCESSFUL = "registration-successful"
EVENT_CREATED = "event-created"
EVENT_UPDATED = "event-updated"
EVENT_DELETED = "event-deleted"
REGISTRATION_DELETED = "registration-deleted"

ACTIONS = (
    REGISTRATION_SUCCESSFUL,
    EVENT_CREATED,
    EVENT_UPDATED,
    EVENT_DELETED,
    REGISTRATION_DELETED,
)


@dataclass(frozen=True)
class ConfirmationContent:
    title: str
    message: str
    primary: Tuple[str, str]
    secondary: Tuple[str, str]


def _name(event: Optional[str]) -> str:
    return f" {event}" if event else ""


def _event_link(event_id: Optional[str]) -> str:
    # Ids are numeric; anything else would produce a dead link
    if event_id and re.fullmatch(r"[0-9]+", str(event_id)):
        return f"/events/{event_id}"
    return "/dashboard"


def redirect_destination(action: Optional[str], event_id: Optional[str] = None) -> str:
    """
    Where the confirmation view sends the user when the countdown ends.

    Args:
        action (str): One of ACTIONS; anything else goes home.
        event_id (str, optional): Id of the event the action was about.

    Returns:
        str: A local path.
    """
    if action in (REGISTRATION_SUCCESSFUL, EVENT_DELETED, REGISTRATION_DELETED):
        return "/dashboard"
    if action in (EVENT_CREATED, EVENT_UPDATED):
        return _event_link(event_id)
    return "/"


def confirmation_content(
    action: Optional[str], event: Optional[str] = None, event_id: Optional[str] = None
) -> ConfirmationContent:
    """Build the text and buttons shown for an action."""
    if action == REGISTRATION_SUCCESSFUL:
        return ConfirmationContent(
            title="Registration Successful!",
            message=f"You've successfully registered for {event or 'the event'}.",
            primary=("View My Registrations", "/dashboard?tab=registrations"),
            secondary=("Browse More Events", "/events"),
        )
    if action == EVENT_CREATED:
        return ConfirmationContent(
            title="Event Created Successfully!",
            message=f"Your event{_name(event)} has been created and is now live.",
            primary=("View Event", _event_link(event_id)),
            secondary=("My Events Dashboard", "/dashboard"),
        )
    if action == EVENT_UPDATED:
        return ConfirmationContent(
            title="Event Updated Successfully!",
            message=f"Your event{_name(event)} has been updated.",
            primary=("View Event", _event_link(event_id)),
            secondary=("My Events Dashboard", "/dashboard"),
        )
    if action == EVENT_DELETED:
        return ConfirmationContent(
            title="Event Deleted",
            message="Your event has been successfully deleted.",
            primary=("My Events Dashboard", "/dashboard"),
            secondary=("Create New Event", "/events/new"),
        )
    if action == REGISTRATION_DELETED:
        return ConfirmationContent(
            title="Registration Cancelled",
            message="Your registration has been successfully cancelled.",
            primary=("My Registrations", "/dashboard?tab=registrations"),
            secondary=("Browse Events", "/events"),
        )
    return ConfirmationContent(
        title="Success!",
        message="Your action was completed successfully.",
        primary=("Go Home", "/"),
        secondary=("Browse Events", "/events"),
    )


# --- COUNTDOWN ---
class Countdown:
    """
    Seconds-to-redirect counter for the confirmation view.

    tick() is called once per second. After the last decrement the redirect
    callback fires, exactly once; later ticks, renders and stop() never fire it again.

    The confirmation page only uses it for the starting text and duration. There
    the browser does the ticking through the Refresh header, so no callback runs
    on the server.
    """

    def __init__(self, on_redirect: Callable[[], None], seconds: Optional[int] = None) -> None:
        self.seconds = seconds if seconds is not None else config.CONFIRMATION_COUNTDOWN_SECONDS
        if self.seconds < 0:
            raise ValueError("seconds must not be negative")
        self.remaining = self.seconds
        self._on_redirect = on_redirect
        self._redirected = False
        self._stopped = False

    @property
    def redirected(self) -> bool:
        return self._redirected

    @property
    def stopped(self) -> bool:
        return self._stopped

    def render(self) -> str:
        return f"Auto-redirecting in {self.remaining} seconds..."

    def tick(self) -> int:
        """
        Advance the countdown by one second.

        Returns:
            int: Seconds remaining.
        """
        if self._stopped or self._redirected:
            return self.remaining

        if self.remaining > 0:
            self.remaining -= 1

        if self.remaining == 0:
            self._redirected = True
            logging.info("[Confirmation] Countdown finished, redirecting")
            self._on_redirect()
        return self.remaining

    def stop(self) -> None:
        """The view went away; a pending redirect must not run."""
        self._stopped = True
