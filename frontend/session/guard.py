"""
Route guard: decides whether a requested view may render for the current session.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlencode

from frontend.session.store import Session

LOGIN_PATH = "/login"

# Views that need a logged-in user
GATED_PATTERNS = (
    re.compile(r"^/dashboard$"),
    re.compile(r"^/events/(new|create)$"),
    re.compile(r"^/events/[^/]+/edit$"),
)


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class RedirectTo:
    path: str
    return_to: Optional[str] = None

    @property
    def location(self) -> str:
        """Login URL including the page to come back to after logging in."""
        if not self.return_to:
            return self.path
        return f"{self.path}?{urlencode({'redirect': self.return_to})}"


Decision = Union[Allow, RedirectTo]


def _normalize(path: str) -> str:
    path = (path or "/").split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"


def is_gated(path: str) -> bool:
    normalized = _normalize(path)
    return any(p.match(normalized) for p in GATED_PATTERNS)


def guard(session: Optional[Session], requested_path: str, login_path: str = LOGIN_PATH) -> Decision:
    """
    Decide whether a view may render.

    A present session allows every view, even one whose token the server would
    now reject; the page handles that 401 itself.

    Args:
        session: Snapshot of the current session, or None.
        requested_path: Path of the requested view.
        login_path: Where unauthenticated users are sent.

    Returns:
        Allow() or RedirectTo(login_path, requested_path).
    """
    if session is not None and session.token:
        return Allow()
    if not is_gated(requested_path):
        return Allow()
    return RedirectTo(login_path, _normalize(requested_path))
