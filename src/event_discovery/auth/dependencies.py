"""FastAPI dependencies for authentication.

## Usage

```python
from fastapi import Depends
from event_discovery.auth import get_current_session, SessionData

@app.get("/profile")
async def get_profile(session: SessionData = Depends(get_current_session)):
    return {"username": session.username}
```
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request, Response

from event_discovery.auth.session import (
    SessionData,
    SessionStore,
    decode_session_cookie,
    get_session_store,
    set_session_cookie,
)
from event_discovery.config import get_settings
from event_discovery.errors import NotAuthenticated

logger = logging.getLogger(__name__)


def get_session_id(request: Request) -> str | None:
    """Extract and verify the session id from the cookie, without a store lookup."""
    settings = get_settings()

    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None

    return decode_session_cookie(token)


async def get_session_optional(
    response: Response,
    session_id: str | None = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
) -> SessionData | None:
    """Get the current session if there is a live one, or None.

    A live session has its idle timer and cookie refreshed.
    """
    if session_id is None:
        return None

    session = store.get(session_id)
    if session is None:
        return None

    set_session_cookie(response, session)
    return session


async def get_current_session(
    session: SessionData | None = Depends(get_session_optional),
) -> SessionData:
    """Get the current session.

    Raises NotAuthenticated (401) if there is none.
    """
    if session is None:
        raise NotAuthenticated()

    return session
