"""
auth/sessions.py -- In-memory bearer session store.

Maps an opaque token to a Session. The store is constructed once in the app
lifespan and reached through app.state.sessions; nothing imports a module-level
instance, so tests build their own.

Tokens are uuid4 strings. uuid4 draws from os.urandom, giving 122 random bits,
so collisions and guessing are both computationally negligible.

Sessions never expire on their own. They end on logout (delete) or when the
process exits -- nothing is persisted.

Thread safety: one threading.Lock guards the whole map. Every operation is a
single dict access, so the lock is held for a constant, tiny amount of time
and readers never wait behind anything slower than another dict access.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from auth.models import Session
from auth.tokens import generate_session_token


class SessionStore:
    """Usage:
    sessions = SessionStore()
    token = sessions.create(user.id, user.login)
    session = sessions.get(token)      # Session or None
    sessions.delete(token)             # True once, then False
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[str, Session] = {}

    def create(self, user_id: str, login: str) -> str:
        """Start a session for the user and return its token."""
        token = generate_session_token()
        session = Session(token=token, user_id=user_id, login=login, created_at=datetime.now(timezone.utc))
        with self._lock:
            self._sessions[token] = session
        return token

    def get(self, token: str) -> Session | None:
        """Return the Session for token, or None if unknown."""
        with self._lock:
            return self._sessions.get(token)

    # Alias read by auth.dependencies when checking a request token.
    validate = get

    def delete(self, token: str) -> bool:
        """End a session. Returns True if it existed, False otherwise."""
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
