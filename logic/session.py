"""Session persistence and lifecycle.

``SessionStore`` is the client-local storage for the bearer token and the
cached user. ``Session`` drives the lifecycle: restore on load, login,
logout, and the forced clear that follows a 401.
"""
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from logic.errors import ApiError
from logic.notify import Notifier
from model.models import User

if TYPE_CHECKING:
    from logic.backend import AuthService

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, path: Path):
        self.path = Path(path)
        self.token: Optional[str] = None
        self.user: Optional[User] = None
        self._load()

    # -------------------------------------------------------------------------
    # persistence
    # -------------------------------------------------------------------------

    def _load(self) -> None:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return
        except json.JSONDecodeError:
            logger.warning("Session file %s is corrupted, ignoring it", self.path)
            return

        self.token = data.get("token") or None
        user = data.get("user")
        if isinstance(user, dict):
            try:
                self.user = User.from_dict(user)
            except (TypeError, ValueError):
                logger.warning("Failed to parse stored user")

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"token": self.token, "user": self.user.to_dict() if self.user else None}
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, ensure_ascii=False, indent=2)

    # -------------------------------------------------------------------------
    # mutation
    # -------------------------------------------------------------------------

    def set(self, token: str, user: User) -> None:
        self.token = token
        self.user = user
        self._save()

    def set_user(self, user: User) -> None:
        self.user = user
        self._save()

    def clear(self) -> None:
        self.token = None
        self.user = None
        # concurrent 401s may both clear
        self.path.unlink(missing_ok=True)


class Session:
    """The single owner of "who is logged in"."""

    def __init__(self, store: SessionStore, notifier: Optional[Notifier] = None):
        self.store = store
        self.notifier = notifier or Notifier()
        self.auth: Optional["AuthService"] = None
        self.user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.store.token is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.user and self.user.is_admin)

    def restore(self) -> Optional[User]:
        """Restore the stored user, then confirm it with the backend.

        A failed confirmation keeps the optimistic user: network errors are
        tolerated and a 401 has already cleared the store via the client.
        """
        if not self.store.token:
            return None
        self.user = self.store.user
        try:
            user = self.auth.me()
        except ApiError as e:
            logger.warning("Session check failed: %s", e.message)
            if self.store.token is None:
                self.user = None
            return self.user
        self.user = user
        self.store.set_user(user)
        logger.info("Session restored for %s", user.name)
        return user

    def login(self, phone: str, password: str) -> User:
        data = self.auth.login(phone, password)
        self.store.set(data.token, data.user_info)
        self.user = data.user_info
        logger.info("Logged in as %s", self.user.name)
        self.notifier.success(f"欢迎回来, {self.user.name}")
        return self.user

    def logout(self) -> None:
        self.store.clear()
        self.user = None
        logger.info("Logged out")
        self.notifier.info("已安全退出")

    def expire(self) -> None:
        """Forced clear after a 401."""
        self.store.clear()
        self.user = None
