"""Local persistence of the last authenticated session.

The cache is a single JSON file holding the last-known user and bearer token
under fixed keys. It is read at startup and written only on login, token
change and logout.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from ems_api.client.api_client import ApiClient

USER_KEY = "user"
TOKEN_KEY = "token"


@dataclass(frozen=True)
class CachedSession:
    user: dict[str, Any] | None = None
    token: str | None = None


class SessionCache:
    """JSON-file slot for the current session."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> CachedSession:
        """Read the cached session; an unreadable file counts as empty."""
        if not self.path.exists():
            return CachedSession()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable session cache {self.path}: {e}")
            return CachedSession()
        if not isinstance(raw, dict):
            return CachedSession()
        user = raw.get(USER_KEY)
        token = raw.get(TOKEN_KEY)
        return CachedSession(
            user=user if isinstance(user, dict) else None,
            token=token if isinstance(token, str) and token else None,
        )

    def _write(self, session: CachedSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({USER_KEY: session.user, TOKEN_KEY: session.token}), encoding="utf-8")

    def save(self, user: dict[str, Any] | None, token: str) -> None:
        self._write(CachedSession(user=user, token=token))

    def save_token(self, token: str) -> None:
        self._write(CachedSession(user=self.load().user, token=token))

    def save_user(self, user: dict[str, Any] | None) -> None:
        self._write(CachedSession(user=user, token=self.load().token))

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    async def restore(self, client: "ApiClient") -> dict[str, Any] | None:
        """Re-validate the cached session against the server.

        Returns the fresh user profile when the cached token is still good.
        A rejected token or an inactive user clears the cache and the client's
        token. Network failures propagate and leave the cache untouched.
        """
        from ems_api.client.api_client import ApiRequestError

        cached = self.load()
        if cached.token is None:
            return None
        if client.token != cached.token:
            client.set_token(cached.token)

        try:
            envelope = await client.get_profile()
        except ApiRequestError as e:
            if not e.is_auth_failure:
                raise
            logger.info(f"Discarding cached session: {e.message}")
            client.clear_token()
            return None

        user = envelope.get("data")
        if not isinstance(user, dict) or not user.get("is_active", False):
            client.clear_token()
            return None
        self.save_user(user)
        return user
