# ecofinds/client/auth.py
import logging
from typing import Any, Callable, Dict, List, Optional

from ecofinds.client.api import ApiClient
from ecofinds.client.exceptions import ApiError

logger = logging.getLogger(__name__)


class AuthSession:
    """Login state of the client, persisted through the ApiClient's SessionStore."""

    def __init__(self, api: ApiClient):
        self.api = api
        self._logout_hooks: List[Callable[[], None]] = []

    @property
    def user(self) -> Optional[dict]:
        return self.api.store.user

    @property
    def is_authenticated(self) -> bool:
        return bool(self.api.store.token and self.api.store.user)

    def on_logout(self, hook: Callable[[], None]):
        self._logout_hooks.append(hook)

    def _store(self, body: dict) -> dict:
        self.api.store.save_auth(body["access_token"], body["user"])
        return body["user"]

    def restore(self) -> Optional[dict]:
        # Stored token is only trusted after the server accepts it
        if not self.api.store.token:
            return None
        try:
            user = self.api.auth.me()
        except ApiError as e:
            logger.info(f"Stored session rejected: {e}")
            self.api.store.clear_auth()
            return None
        self.api.store.save_user(user)
        return user

    def login(self, email: str, password: str) -> dict:
        return self._store(self.api.auth.login(email, password))

    def signup(self, **data: Any) -> dict:
        return self._store(self.api.auth.register(data))

    def logout(self):
        try:
            if self.api.store.token:
                self.api.auth.logout()
        except ApiError as e:
            logger.warning(f"Logout request failed: {e}")
        finally:
            self.api.store.clear_auth()
            for hook in self._logout_hooks:
                hook()

    def update_profile(self, data: Dict[str, Any]) -> dict:
        user = self.api.users.update_profile(data)
        self.api.store.save_user(user)
        return user

    def forgot_password(self, email: str) -> str:
        return self.api.auth.forgot_password(email)["detail"]

    def reset_password(self, token: str, password: str) -> str:
        return self.api.auth.reset_password(token, password)["detail"]
