"""
Durable key/value storage backends for the client session.

Every backend exposes the same small interface:
- get(key)                       -> stored string or None
- set_items(mapping, origin)     -> write several keys as one step
- remove_items(keys, origin)     -> delete several keys as one step
- add_listener(callback)         -> register a change listener, returns a remover

Listeners are called with (keys, origin) after every mutation. `origin` is the
object that performed the write (None when the change came from outside this
process), which lets a session store skip notifications about its own writes.
"""

import os
import json
import logging
import tempfile
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from flask import session as flask_session

Listener = Callable[[Tuple[str, ...], Any], None]


class SessionStorage:
    """Base class holding the change-listener bookkeeping."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_items(self, items: Dict[str, str], origin: Any = None) -> None:
        raise NotImplementedError

    def remove_items(self, keys: Iterable[str], origin: Any = None) -> None:
        raise NotImplementedError

    def add_listener(self, callback: Listener) -> Callable[[], None]:
        """
        Register a callback for storage mutations.

        Args:
            callback: Called as callback(keys, origin).

        Returns:
            A function that removes the listener. Calling it twice is harmless.
        """
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def _notify(self, keys: Iterable[str], origin: Any) -> None:
        changed = tuple(keys)
        for listener in list(self._listeners):
            try:
                listener(changed, origin)
            except Exception as e:
                logging.error(f"[Storage] Change listener failed: {e}")


class MemoryStorage(SessionStorage):
    """
    Dict-backed storage.
    Several session stores sharing one instance behave like tabs of one browser profile.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        super().__init__()
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_items(self, items: Dict[str, str], origin: Any = None) -> None:
        self._data.update(items)
        self._notify(items.keys(), origin)

    def remove_items(self, keys: Iterable[str], origin: Any = None) -> None:
        keys = tuple(keys)
        for key in keys:
            self._data.pop(key, None)
        self._notify(keys, origin)


class FileStorage(SessionStorage):
    """
    JSON file storage shared between client processes.

    Writes replace the file atomically. Other processes pick up changes by
    calling poll(), which notifies listeners with origin None.
    """

    def __init__(self, path: str) -> None:
        super().__init__()
        self.path = path
        self._snapshot = self._read()
        self._stamp = self._stat()

    def _stat(self) -> Optional[Tuple[int, int, int]]:
        # Every write replaces the file, so the inode changes even when mtime does not
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            return None
        return st.st_mtime_ns, st.st_ino, st.st_size

    def _read(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logging.warning(f"[Storage] Could not read session file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logging.warning(f"[Storage] Session file {self.path} does not hold an object")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".session-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        self._snapshot = data
        self._stamp = self._stat()

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_items(self, items: Dict[str, str], origin: Any = None) -> None:
        data = self._read()
        data.update(items)
        self._write(data)
        self._notify(items.keys(), origin)

    def remove_items(self, keys: Iterable[str], origin: Any = None) -> None:
        keys = tuple(keys)
        data = self._read()
        for key in keys:
            data.pop(key, None)
        self._write(data)
        self._notify(keys, origin)

    def poll(self) -> bool:
        """
        Check the file for writes made by another process.

        Returns:
            bool: True if a change was detected and listeners were notified.
        """
        stamp = self._stat()
        if stamp == self._stamp:
            return False

        current = self._read()
        previous = self._snapshot
        self._stamp = stamp
        self._snapshot = current

        changed = sorted(k for k in set(previous) | set(current) if previous.get(k) != current.get(k))
        if not changed:
            return False

        logging.info(f"[Storage] External change detected for keys {changed}")
        self._notify(changed, None)
        return True


class FlaskSessionStorage(SessionStorage):
    """
    Keys stored inside the signed Flask session cookie.
    Only usable inside a request context; the browser keeps the cookie between requests.
    """

    def get(self, key: str) -> Optional[str]:
        return flask_session.get(key)

    def set_items(self, items: Dict[str, str], origin: Any = None) -> None:
        for key, value in items.items():
            flask_session[key] = value
        self._notify(items.keys(), origin)

    def remove_items(self, keys: Iterable[str], origin: Any = None) -> None:
        keys = tuple(keys)
        for key in keys:
            flask_session.pop(key, None)
        self._notify(keys, origin)
