"""
Account page handlers.

Provides pages for:
- Login (/login), with an optional ?redirect= return path
- Account registration (/register)
- Logout (/logout, POST)

Session writes go through the API gateway, which updates the session store.
"""

import logging
from typing import Tuple, Union

from flask import Blueprint, flash, redirect, render_template, request, Response

from frontend.api.errors import ApiError
from frontend.events_pages.forms import validate_account_form, validate_login_form
from frontend.web.context import get_api, get_store, safe_next

auth_bp = Blueprint("auth", __name__)

PageResult = Union[Response, str, Tuple[str, int]]


# --- REQUEST LOGGING ---
@auth_bp.before_request
def before_request() -> None:
    logging.info(f"[Auth] Incoming {request.method} {request.path}")


@auth_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Auth] Response {response.status}")
    return response


# --- LOGIN ---
@auth_bp.route("/login", methods=["GET", "POST"])
def login() -> PageResult:
    """
    Log in with username and password.

    On success the session is stored and the user is sent to the ?redirect=
    path (local paths only) or the dashboard.
    """
    next_path = request.values.get("redirect")

    if request.method == "GET":
        if get_store().is_authenticated():
            return redirect(safe_next(next_path))
        return render_template("login.html", form={}, errors={}, next_path=next_path)

    credentials, errors = validate_login_form(request.form)
    if errors:
        return render_template("login.html", form=credentials, errors=errors, next_path=next_path), 400

    try:
        result = get_api().login(credentials)
    except ApiError as e:
        logging.warning(f"[Auth] Login failed for {credentials['username']}: {e}")
        return render_template(
            "login.html",
            form={"username": credentials["username"]},
            errors={},
            error=e.message,
            next_path=next_path,
        ), e.http_status

    flash(f"Welcome back, {result['user'].username}!")
    return redirect(safe_next(next_path))


# --- REGISTER ---
@auth_bp.route("/register", methods=["GET", "POST"])
def register() -> PageResult:
    """
    Create an account.

    Returns:
        Redirect to the dashboard when the service logs the new account in,
        otherwise to the login page.
    """
    if request.method == "GET":
        return render_template("register.html", form={}, errors={})

    user_data, errors = validate_account_form(request.form)
    if errors:
        return render_template("register.html", form=user_data, errors=errors), 400

    try:
        get_api().register(user_data)
    except ApiError as e:
        logging.warning(f"[Auth] Registration failed for {user_data['username']}: {e}")
        form = {"username": user_data["username"], "email": user_data["email"]}
        return render_template("register.html", form=form, errors={}, error=e.message), e.http_status

    if get_store().is_authenticated():
        return redirect("/dashboard")

    flash("Account created. Please log in.")
    return redirect("/login")


# --- LOGOUT ---
@auth_bp.route("/logout", methods=["POST"])
def logout() -> Response:
    get_api().logout()
    flash("You have been logged out.")
    return redirect("/")
