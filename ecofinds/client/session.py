# ecofinds/client/session.py
import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
USER_KEY = "user"


class SessionStore:
    """
    Key/value store for the client session (token, user, recent searches).
    Backed by a JSON file when a path is given, otherwise kept in memory.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._data = {}
        if self.path and self.path.exists():
            try:
                self._data = json.loads(self.path.read_text(encoding="utf-8")) or {}
            except (OSError, ValueError) as e:
                # Corrupt session file behaves like an empty session
                logger.warning(f"Could not read session file {self.path}: {e}")
                self._data = {}

    def _flush(self):
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any):
        self._data[key] = value
        self._flush()

    def remove(self, *keys: str):
        for key in keys:
            self._data.pop(key, None)
        self._flush()

    @property
    def token(self) -> Optional[str]:
        return self._data.get(TOKEN_KEY)

    @property
    def user(self) -> Optional[dict]:
        return self._data.get(USER_KEY)

    def save_auth(self, token: str, user: dict):
        self._data[TOKEN_KEY] = token
        self._data[USER_KEY] = user
        self._flush()

    def save_user(self, user: dict):
        self.set(USER_KEY, user)

    def clear_auth(self):
        self.remove(TOKEN_KEY, USER_KEY)
