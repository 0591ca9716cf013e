"""Authentication module for event discovery.

Provides username/password accounts and server-side sessions.

## Login Flow

1. POST /api/signup or /api/login with username and password
2. Password is checked against the stored salted hash
3. A server-side session is created and its id set in a signed cookie
4. Each authenticated request refreshes the session idle timer
5. POST /api/logout destroys the session

## Security

- Passwords are hashed (PBKDF2-SHA256), never stored in plain text
- Login failures do not reveal whether the username exists
- Session cookies are signed and HTTP-only
"""

from event_discovery.auth.passwords import (
    hash_password,
    verify_password,
)
from event_discovery.auth.session import (
    SessionData,
    SessionStore,
    get_session_store,
    encode_session_cookie,
    decode_session_cookie,
)
from event_discovery.auth.dependencies import (
    get_current_session,
    get_session_optional,
)

__all__ = [
    "hash_password",
    "verify_password",
    "SessionData",
    "SessionStore",
    "get_session_store",
    "encode_session_cookie",
    "decode_session_cookie",
    "get_current_session",
    "get_session_optional",
]
