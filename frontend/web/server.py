"""
Web client: combines the auth, events, dashboard and confirmation page blueprints.
This is the local entrypoint for development.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from flask import Flask, redirect, render_template, request, Response

from frontend import config
from frontend.api.errors import ApiError
from frontend.session.guard import RedirectTo, guard
from frontend.session.storage import FileStorage
from frontend.web.context import close_store, get_store

# Basic console logging during page requests
logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")


def create_app(test_config: Optional[Dict[str, Any]] = None) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        test_config (dict, optional): Overrides applied after the defaults.

    Returns:
        Flask: The configured Flask application.
    """
    app = Flask(__name__, template_folder="../templates")
    app.config.update(
        SECRET_KEY=config.SECRET_KEY,
        API_BASE_URL=config.API_BASE_URL,
        API_TIMEOUT_SECONDS=config.API_TIMEOUT_SECONDS,
        CONFIRMATION_COUNTDOWN_SECONDS=config.CONFIRMATION_COUNTDOWN_SECONDS,
        # Optional overrides: a SessionStorage backend and a requests.Session
        SESSION_STORAGE=None,
        HTTP_SESSION=None,
    )
    if test_config:
        app.config.update(test_config)

    # Single-user local setups can share one session between client processes
    if app.config["SESSION_STORAGE"] is None and config.SESSION_FILE and not app.testing:
        app.config["SESSION_STORAGE"] = FileStorage(config.SESSION_FILE)
        logging.info(f"Session stored in {config.SESSION_FILE}")

    # --- REGISTER BLUEPRINTS ---
    from frontend.auth_pages.routes import auth_bp
    from frontend.events_pages.routes import events_bp
    from frontend.dashboard_pages.routes import dashboard_bp
    from frontend.confirmation_pages.routes import confirmation_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(events_bp, url_prefix="/events")
    app.register_blueprint(dashboard_bp, url_prefix="/dashboard")
    app.register_blueprint(confirmation_bp, url_prefix="/confirmation")
    logging.info("All blueprints registered successfully.")

    app.teardown_appcontext(close_store)

    # --- ROUTE GUARD ---
    @app.before_request
    def apply_guard() -> Optional[Response]:
        """Send unauthenticated users on gated views to the login page."""
        if request.endpoint == "static":
            return None
        decision = guard(get_store().get_session(), request.path)
        if isinstance(decision, RedirectTo):
            logging.info(f"[Guard] {request.path} requires login, redirecting")
            return redirect(decision.location)
        return None

    @app.context_processor
    def inject_session() -> Dict[str, Any]:
        store = get_store()
        return {
            "current_user": store.current_user,
            "is_authenticated": store.is_authenticated(),
        }

    # --- ERROR HANDLERS ---
    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError) -> Tuple[str, int]:
        return render_template("error.html", title="Something went wrong", message=error.message), error.http_status

    @app.errorhandler(404)
    def not_found(error) -> Tuple[str, int]:
        return render_template("error.html", title="Page not found",
                               message="The page you are looking for does not exist."), 404

    @app.errorhandler(500)
    def server_error(error) -> Tuple[str, int]:
        logging.error(f"Unhandled error: {error}")
        return render_template("error.html", title="Something went wrong",
                               message="An unexpected error occurred. Please try again."), 500

    # --- BASIC PAGES ---
    @app.route("/")
    def home() -> str:
        """Landing page."""
        return render_template("home.html")

    @app.route("/health")
    def health() -> Tuple[Dict[str, str], int]:
        """
        Health check endpoint.
        """
        return {"status": "ok"}, 200

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=config.CLIENT_PORT, debug=True)
