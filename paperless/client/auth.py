"""Client-side authentication state.

:class:`AuthContext` is the only place the client keeps the bearer token
and the signed-in user. Every change goes through one of its transitions
(``init``, ``login``, ``logout``, ``refresh``), which also keep the
persisted copy in :class:`SessionStore` in step.
"""

import json
import logging
import os
import time
from pathlib import Path

from jose import JWTError, jwt

log = logging.getLogger(__name__)


class SessionStore:
    """JSON file holding ``{"token": ..., "user": {...}}`` between runs."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def load(self) -> dict | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Ignoring unreadable session file %s", self.path)
            return None
        return data if isinstance(data, dict) else None

    def save(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")
        try:
            self.path.chmod(0o600)
        except OSError:
            log.debug("Could not restrict permissions on %s", self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def token_expiry(token: str) -> float | None:
    """``exp`` claim read without verifying the signature (the server does that)."""
    try:
        exp = jwt.get_unverified_claims(token).get("exp")
    except JWTError:
        return None
    return float(exp) if exp is not None else None


class AuthContext:
    def __init__(self, store: SessionStore | None = None, clock=time.time):
        self.store = store
        self._clock = clock
        self._token: str | None = None
        self._user: dict | None = None

    @property
    def token(self) -> str | None:
        if self._token and self._expired(self._token):
            self.logout()
        return self._token

    @property
    def user(self) -> dict | None:
        return self._user if self.token else None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def role(self) -> str | None:
        return (self.user or {}).get("role")

    @property
    def is_boss(self) -> bool:
        return self.role == "boss"

    def _expired(self, token: str) -> bool:
        exp = token_expiry(token)
        return exp is None or exp <= self._clock()

    def init(self) -> "AuthContext":
        """Load the persisted session, purging it if incomplete or expired."""
        self._token, self._user = None, None
        data = self.store.load() if self.store else None
        if not data:
            return self

        token, user = data.get("token"), data.get("user")
        if not isinstance(token, str) or not isinstance(user, dict) or self._expired(token):
            log.info("Discarding stale session")
            self._purge()
            return self

        self._token, self._user = token, user
        return self

    def login(self, user: dict, token: str) -> None:
        if not token or not user:
            raise ValueError("Invalid login response - missing token or user")
        self._token, self._user = token, dict(user)
        self._persist()

    def refresh(self, user: dict) -> None:
        if self._token is None:
            raise RuntimeError("Cannot refresh a signed-out session")
        self._user = dict(user)
        self._persist()

    def logout(self) -> None:
        self._purge()

    def _persist(self) -> None:
        if self.store:
            self.store.save({"token": self._token, "user": self._user})

    def _purge(self) -> None:
        self._token, self._user = None, None
        if self.store:
            self.store.clear()
