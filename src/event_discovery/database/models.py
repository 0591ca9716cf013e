"""Database models for event discovery.

## Security Notes

- Passwords are stored as salted hashes, never in plain text
- Sessions are held server-side and are not persisted here

## Schema Overview

```
users
locations   - favorite venues, written from the event list
```
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Roles with full permissions on the frontend
ADMIN_ROLE = "admin"
DEFAULT_ROLE = "user"


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all database models."""


class User(Base):
    """User account created through signup."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), default=DEFAULT_ROLE, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    @property
    def permission(self) -> int:
        """Permission level used by the frontend (7 for admins, 1 otherwise)."""
        return 7 if self.is_admin else 1

    def __repr__(self) -> str:
        return f"<User {self.username}>"


class Location(Base):
    """A favorite venue.

    A copy of a subset of the venue feed fields. Rows are only ever inserted;
    the same venue may be saved more than once.
    """

    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    namee: Mapped[str | None] = mapped_column(String(512))
    namec: Mapped[str | None] = mapped_column(String(512))
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Location {self.namee}>"
