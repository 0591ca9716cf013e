"""Queries and writes used by the API routes."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from event_discovery.database.models import DEFAULT_ROLE, Location, User
from event_discovery.errors import AuthFailure, PersistenceFailure

logger = logging.getLogger(__name__)


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    try:
        result = await db.execute(select(User).where(User.username == username))
    except SQLAlchemyError as e:
        logger.error(f"Failed to look up user {username!r}: {e}")
        raise PersistenceFailure("Failed to look up user") from e
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    username: str,
    password_hash: str,
    role: str = DEFAULT_ROLE,
) -> User:
    """Insert a new user.

    Raises:
        AuthFailure: If the username is taken (400)
        PersistenceFailure: If the write fails
    """
    user = User(username=username, password_hash=password_hash, role=role)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent signup for the same name
        await db.rollback()
        logger.warning(f"Signup for existing username {username!r}")
        raise AuthFailure("Username already exists", status_code=400) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to create user {username!r}: {e}")
        raise PersistenceFailure("Failed to create user") from e

    await db.refresh(user)
    return user


async def record_login(db: AsyncSession, user: User) -> None:
    user.last_login_at = datetime.now(timezone.utc)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to record login for {user.username!r}: {e}")
        raise PersistenceFailure("Login failed") from e


async def add_locations(
    db: AsyncSession,
    locations: Iterable[Location],
) -> list[Location]:
    """Insert favorite locations in one transaction. No duplicate check.

    Raises:
        PersistenceFailure: If the write fails; nothing is stored
    """
    rows = list(locations)
    db.add_all(rows)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to store {len(rows)} locations: {e}")
        raise PersistenceFailure("Failed to update venues") from e
    return rows


async def list_locations(db: AsyncSession) -> list[Location]:
    try:
        result = await db.execute(select(Location).order_by(Location.id))
    except SQLAlchemyError as e:
        logger.error(f"Failed to list locations: {e}")
        raise PersistenceFailure("Failed to load venues") from e
    return list(result.scalars().all())
