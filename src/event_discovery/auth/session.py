"""Server-side sessions with signed cookie transport.

Session state lives on the server in a `SessionStore`, keyed by an opaque random
identifier. The browser only holds that identifier, wrapped in a signed JWT so a
forged or altered cookie is rejected before the store is consulted.

## Lifetime

- Sessions expire after a fixed idle period (default: 5 minutes)
- Every authenticated request refreshes the idle timer (rolling expiry)
- Logging in with "remember me" uses a longer idle period
- Logging out removes the session from the store, so an old cookie is useless

## Cookie Token Structure

```json
{
  "sid": "opaque-session-id",
  "iat": 1234567890,
  "type": "session"
}
```

## Security

- Cookies are HTTP-only to prevent XSS access
- Cookies are Secure in production (HTTPS only)
- SameSite=Lax to prevent CSRF
"""

from __future__ import annotations

import logging
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from fastapi import Response
from jose import JWTError, jwt

from event_discovery.config import get_settings

logger = logging.getLogger(__name__)

# JWT configuration
ALGORITHM = "HS256"
TOKEN_TYPE = "session"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionData:
    """State held for one logged-in browser."""

    session_id: str
    user_id: str
    username: str
    role: str
    idle_timeout: timedelta
    created_at: datetime = field(default_factory=_now)
    last_seen: datetime = field(default_factory=_now)

    @property
    def expires_at(self) -> datetime:
        return self.last_seen + self.idle_timeout

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the session has been idle for too long."""
        return (now or _now()) >= self.expires_at

    def to_identity(self) -> dict[str, str]:
        return {
            "userId": self.user_id,
            "username": self.username,
            "role": self.role,
        }


class SessionStore:
    """In-process session store.

    Sessions are lost on restart and are not shared between worker processes.
    """

    def __init__(self, idle_timeout: timedelta):
        self.idle_timeout = idle_timeout
        self._sessions: dict[str, SessionData] = {}
        self._lock = threading.Lock()

    def create(
        self,
        user_id: str,
        username: str,
        role: str,
        idle_timeout: timedelta | None = None,
    ) -> SessionData:
        session = SessionData(
            session_id=secrets.token_urlsafe(32),
            user_id=user_id,
            username=username,
            role=role,
            idle_timeout=idle_timeout or self.idle_timeout,
        )
        with self._lock:
            # Expired sessions are dropped here as well as on lookup
            self._drop_expired(session.created_at)
            self._sessions[session.session_id] = session
        logger.debug(f"Session created for {username}")
        return session

    def get(self, session_id: str, touch: bool = True) -> SessionData | None:
        """Look up a live session.

        Expired sessions are removed and reported as missing. With `touch`,
        a live session's idle timer restarts.
        """
        now = _now()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if session.is_expired(now):
                del self._sessions[session_id]
                logger.debug(f"Session for {session.username} expired")
                return None
            if touch:
                session.last_seen = now
            return session

    def destroy(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def _drop_expired(self, now: datetime) -> int:
        # Caller holds the lock
        expired = [sid for sid, s in self._sessions.items() if s.is_expired(now)]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.debug(f"Dropped {len(expired)} expired sessions")
        return len(expired)

    def purge_expired(self) -> int:
        """Drop every expired session. Returns how many were removed."""
        with self._lock:
            return self._drop_expired(_now())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


@lru_cache
def get_session_store() -> SessionStore:
    """Get the process-wide session store."""
    settings = get_settings()
    return SessionStore(timedelta(seconds=settings.session_idle_timeout_seconds))


def encode_session_cookie(session_id: str) -> str:
    """Wrap a session id in a signed token for the cookie."""
    settings = get_settings()

    payload = {
        "sid": session_id,
        "iat": int(_now().timestamp()),
        "type": TOKEN_TYPE,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_session_cookie(token: str) -> str | None:
    """Verify a cookie token and return the session id it carries.

    Returns:
        The session id, or None if the token is invalid
    """
    settings = get_settings()

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug(f"Session cookie verification failed: {e}")
        return None

    if payload.get("type") != TOKEN_TYPE:
        logger.debug("Invalid token type")
        return None

    session_id = payload.get("sid")
    if not isinstance(session_id, str) or not session_id:
        return None
    return session_id


def set_session_cookie(response: Response, session: SessionData) -> None:
    """Issue or refresh the session cookie."""
    settings = get_settings()

    response.set_cookie(
        key=settings.session_cookie_name,
        value=encode_session_cookie(session.session_id),
        max_age=int(session.idle_timeout.total_seconds()),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    settings = get_settings()

    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
