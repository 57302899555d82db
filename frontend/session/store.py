"""
Session store: the single source of truth for "is someone logged in, and as whom".

The session is two storage entries written and cleared together:
- token: opaque bearer token
- user:  JSON object {id, username, ...}
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from frontend.session.storage import SessionStorage

TOKEN_KEY = "token"
USER_KEY = "user"
SESSION_KEYS = (TOKEN_KEY, USER_KEY)


@dataclass(frozen=True)
class User:
    id: Any
    username: str
    email: Optional[str] = None
    role: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """
        Build a User from a server or storage payload.

        Raises:
            ValueError: If the payload is not an object or has no id.
        """
        if not isinstance(data, dict) or data.get("id") is None:
            raise ValueError("user record must be an object with an id")
        known = {"id", "username", "email", "role"}
        return cls(
            id=data["id"],
            username=data.get("username") or "",
            email=data.get("email"),
            role=data.get("role"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({"id": self.id, "username": self.username})
        if self.email is not None:
            data["email"] = self.email
        if self.role is not None:
            data["role"] = self.role
        return data


@dataclass(frozen=True)
class Session:
    token: str
    # None only when the stored user record is missing or corrupt
    user: Optional[User]


SessionCallback = Callable[[Optional[Session]], None]


class SessionStore:
    """
    Reads and writes the session in a storage backend and publishes changes.

    Subscribers registered with on_session_changed() are notified when this
    store writes, and when the shared storage reports a write made elsewhere
    (another tab sharing the storage, or another process via FileStorage.poll).
    """

    def __init__(self, storage: SessionStorage) -> None:
        self.storage = storage
        self._subscribers: List[SessionCallback] = []
        self._remove_listener = storage.add_listener(self._on_storage_changed)

    # --- WRITES ---
    def set_session(self, token: str, user: Any) -> None:
        """
        Persist token and user as one pair, then notify subscribers.

        Args:
            token (str): Bearer token returned by the server.
            user (User | dict): The logged-in user.

        Raises:
            ValueError: If token is empty or user is missing.
        """
        if not token:
            raise ValueError("token is required")
        if user is None:
            raise ValueError("user is required")
        if not isinstance(user, User):
            user = User.from_dict(user)

        self.storage.set_items(
            {TOKEN_KEY: token, USER_KEY: json.dumps(user.to_dict())},
            origin=self,
        )
        logging.info(f"[Session] Session started for user {user.id}")
        self._publish(Session(token=token, user=user))

    def clear_session(self) -> None:
        """Remove both session entries and notify subscribers. Safe with no session."""
        self.storage.remove_items(SESSION_KEYS, origin=self)
        logging.info("[Session] Session cleared")
        self._publish(None)

    # --- READS ---
    def get_session(self) -> Optional[Session]:
        """
        Read the current session from storage.

        Returns:
            Session if a token is stored, otherwise None. A corrupt user record
            is logged and read as a missing user; it never raises.
        """
        token = self.storage.get(TOKEN_KEY)
        if not token:
            return None
        return Session(token=token, user=self._read_user())

    def _read_user(self) -> Optional[User]:
        raw = self.storage.get(USER_KEY)
        if raw is None:
            return None
        try:
            return User.from_dict(json.loads(raw))
        except (TypeError, ValueError) as e:
            logging.warning(f"[Session] Ignoring unreadable user record: {e}")
            return None

    @property
    def token(self) -> Optional[str]:
        return self.storage.get(TOKEN_KEY) or None

    @property
    def current_user(self) -> Optional[User]:
        session = self.get_session()
        return session.user if session else None

    def is_authenticated(self) -> bool:
        return self.get_session() is not None

    # --- CHANGE NOTIFICATION ---
    def on_session_changed(self, callback: SessionCallback) -> Callable[[], None]:
        """
        Subscribe to session changes from this store or from shared storage.

        Args:
            callback: Called with the new Session, or None after a logout.

        Returns:
            A function that unsubscribes the callback.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def close(self) -> None:
        """Detach from the storage backend and drop all subscribers."""
        self._remove_listener()
        self._subscribers.clear()

    def _on_storage_changed(self, keys, origin) -> None:
        # Own writes were already published by set_session/clear_session
        if origin is self:
            return
        if not any(k in SESSION_KEYS for k in keys):
            return
        self._publish(self.get_session())

    def _publish(self, session: Optional[Session]) -> None:
        for callback in list(self._subscribers):
            try:
                callback(session)
            except Exception as e:
                logging.error(f"[Session] Subscriber failed: {e}")
