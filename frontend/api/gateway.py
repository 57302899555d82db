"""
API gateway: the only module that talks to the Event Poster REST service.

Provides one method per backend operation:
- Auth: register, login, logout, get_current_user
- Events: list, get, list mine, create, update, delete
- Registrations: list (optionally by event), list mine, get, create, update, delete

Every call attaches `Authorization: Bearer <token>` when the session store holds
a token at call time. Any non-2xx response or transport failure raises ApiError.
There is no retry and no caching; each call is a fresh round trip.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from frontend import config
from frontend.api.errors import ApiError
from frontend.api.models import Event, Registration
from frontend.session.store import SessionStore, User


class ApiGateway:
    def __init__(
        self,
        store: SessionStore,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.store = store
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.API_TIMEOUT_SECONDS
        self.http = http or requests.Session()

    # --- TRANSPORT ---
    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self.store.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Perform one HTTP call and decode the JSON body.

        Args:
            method (str): HTTP method.
            path (str): Path below the API base URL, starting with '/'.
            json: Optional request body.
            params (dict, optional): Query string parameters.

        Returns:
            The decoded JSON body, or None for an empty body.

        Raises:
            ApiError: On transport failure or a non-2xx status.
        """
        headers = self._headers()
        sent_token = "Authorization" in headers
        url = f"{self.base_url}{path}"

        try:
            response = self.http.request(
                method,
                url,
                json=json,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logging.error(f"[API] {method} {path} failed: {e}")
            raise ApiError(None, "Could not reach the event service. Please try again later.") from e

        payload = self._decode(response)

        if not 200 <= response.status_code < 300:
            message = _error_message(payload, response)
            logging.error(f"[API] {method} {path} -> {response.status_code}: {message}")
            if response.status_code == 401 and sent_token:
                # Server no longer accepts this token
                self.store.clear_session()
            raise ApiError(response.status_code, message, payload)

        logging.info(f"[API] {method} {path} -> {response.status_code}")
        return payload

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    # --- AUTH ---
    def register(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create an account.

        If the service answers with a token and user, the new account is logged in.
        """
        data = self._request("POST", "/register", json=user_data) or {}
        if data.get("token") and data.get("user"):
            self.store.set_session(data["token"], data["user"])
        return data

    def login(self, credentials: Dict[str, Any]) -> Dict[str, Any]:
        """
        Log in and start a session.

        Args:
            credentials (dict): {"username": ..., "password": ...}

        Returns:
            dict: {"token": str, "user": User}

        Raises:
            ApiError: On rejected credentials, or a response without token/user.
        """
        data = self._request("POST", "/login", json=credentials) or {}
        token = data.get("token")
        user_data = data.get("user")
        if not token or not isinstance(user_data, dict):
            raise ApiError(None, "Login response did not include a session.", data)

        try:
            user = User.from_dict(user_data)
        except ValueError as e:
            logging.error(f"[API] Login response had an unusable user record: {e}")
            raise ApiError(None, "Login response did not include a valid user.", data) from e
        self.store.set_session(token, user)
        return {"token": token, "user": user}

    def logout(self) -> None:
        self.store.clear_session()

    def get_current_user(self) -> User:
        """Ask the service who the token belongs to and refresh the stored user."""
        data = self._request("GET", "/me") or {}
        try:
            user = User.from_dict(data)
        except ValueError as e:
            logging.error(f"[API] /me returned an unusable user record: {e}")
            raise ApiError(None, "Could not load your account details.", data) from e
        token = self.store.token
        if token:
            self.store.set_session(token, user)
        return user

    # --- EVENTS ---
    def list_events(self) -> List[Event]:
        return [Event.from_api(e) for e in self._request("GET", "/events") or []]

    def get_event(self, event_id: int) -> Event:
        return Event.from_api(self._request("GET", f"/events/{event_id}") or {})

    def list_my_events(self) -> List[Event]:
        return [Event.from_api(e) for e in self._request("GET", "/my-events") or []]

    def create_event(self, fields: Dict[str, Any]) -> Event:
        """Create an event. The service answers with the new id only."""
        data = self._request("POST", "/events", json=fields) or {}
        return Event.from_api(_merged(fields, data))

    def update_event(self, event_id: int, fields: Dict[str, Any]) -> Event:
        data = self._request("PUT", f"/events/{event_id}", json=fields) or {}
        return Event.from_api(_merged(fields, data, id=event_id))

    def delete_event(self, event_id: int) -> None:
        self._request("DELETE", f"/events/{event_id}")

    # --- REGISTRATIONS ---
    def list_registrations(self, event_id: Optional[int] = None) -> List[Registration]:
        params = {"event_id": event_id} if event_id is not None else None
        data = self._request("GET", "/registrations", params=params) or []
        return [Registration.from_api(r) for r in data]

    def list_my_registrations(self) -> List[Registration]:
        return [Registration.from_api(r) for r in self._request("GET", "/my-registrations") or []]

    def get_registration(self, registration_id: int) -> Registration:
        return Registration.from_api(self._request("GET", f"/registrations/{registration_id}") or {})

    def create_registration(self, event_id: int, notes: Optional[str] = None) -> Registration:
        body = {"event_id": int(event_id), "notes": notes or None}
        data = self._request("POST", "/registrations", json=body) or {}
        return Registration.from_api(_merged(body, data))

    def update_registration(self, registration_id: int, fields: Dict[str, Any]) -> Registration:
        data = self._request("PUT", f"/registrations/{registration_id}", json=fields) or {}
        return Registration.from_api(_merged(fields, data, id=registration_id))

    def delete_registration(self, registration_id: int) -> None:
        self._request("DELETE", f"/registrations/{registration_id}")


def _error_message(payload: Any, response: requests.Response) -> str:
    if isinstance(payload, dict):
        for key in ("error", "message"):
            if payload.get(key):
                return str(payload[key])
    return response.reason or f"Request failed with status {response.status_code}"


def _merged(sent: Dict[str, Any], received: Any, **extra: Any) -> Dict[str, Any]:
    """Write responses carry only an id or a message; fill in what was sent."""
    data = dict(sent)
    data.update(extra)
    if isinstance(received, dict):
        data.update({k: v for k, v in received.items() if k != "message"})
    return data
