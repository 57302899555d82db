"""
Per-request wiring of the session store and API gateway.

Pages never build these themselves; they call get_store() / get_api() so
tests can swap the storage backend or the HTTP session through app config.
"""

from typing import Optional
from urllib.parse import urlencode

from flask import Response, current_app, g, redirect

from frontend.api.gateway import ApiGateway
from frontend.session.storage import FlaskSessionStorage
from frontend.session.store import SessionStore, User


def get_store() -> SessionStore:
    """Session store for the current request, backed by the signed session cookie."""
    if "session_store" not in g:
        storage = current_app.config.get("SESSION_STORAGE") or FlaskSessionStorage()
        g.session_store = SessionStore(storage)
    return g.session_store


def get_api() -> ApiGateway:
    """API gateway for the current request, bound to the request's session store."""
    if "api" not in g:
        g.api = ApiGateway(
            get_store(),
            base_url=current_app.config["API_BASE_URL"],
            timeout=current_app.config["API_TIMEOUT_SECONDS"],
            http=current_app.config.get("HTTP_SESSION"),
        )
    return g.api


def current_user() -> Optional[User]:
    return get_store().current_user


def safe_next(target: Optional[str], default: str = "/dashboard") -> str:
    """Only follow local paths after login; anything else goes to the default."""
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return default


def login_redirect(next_path: str) -> Response:
    return redirect(f"/login?{urlencode({'redirect': next_path})}")


def close_store(exc: Optional[BaseException] = None) -> None:
    """Detach the request's store from its storage at teardown."""
    store = g.pop("session_store", None)
    g.pop("api", None)
    if store is not None:
        store.close()
