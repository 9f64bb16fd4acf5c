# users/sessions.py
import secrets
import threading
import time
from dataclasses import dataclass

DEFAULT_TTL_SECONDS = 8 * 60 * 60


@dataclass(frozen=True)
class Session:
    token: str
    identity: str
    expires_at: float


class SessionStore:
    """
    In-memory table of admin bearer tokens.

    Sessions expire a fixed TTL after issue. There is no background sweeper:
    every validate() purges all expired rows before the lookup, and revoke()
    drops a single row. Nothing here survives a restart.
    """

    def __init__(self, ttl_seconds=DEFAULT_TTL_SECONDS, clock=time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions = {}
        self._lock = threading.Lock()

    def issue(self, identity):
        token = secrets.token_hex(24)
        session = Session(token=token, identity=identity, expires_at=self._clock() + self.ttl_seconds)
        with self._lock:
            self._sessions[token] = session
        return session

    def validate(self, token):
        """Return the identity bound to token, or None when missing/expired."""
        with self._lock:
            self._purge_expired(self._clock())
            session = self._sessions.get(token) if token else None
        if session is None:
            return None
        return session.identity

    def revoke(self, token):
        with self._lock:
            self._sessions.pop(token, None)

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def _purge_expired(self, now):
        expired = [token for token, session in self._sessions.items() if session.expires_at <= now]
        for token in expired:
            del self._sessions[token]
