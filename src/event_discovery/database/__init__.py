"""Database module for event discovery.

This module provides:
- SQLAlchemy async database connection
- User and favorite location models
- Repository functions used by the API
"""

from event_discovery.database.connection import (
    get_db,
    init_db,
    close_db,
)
from event_discovery.database.models import (
    Base,
    User,
    Location,
)

__all__ = [
    # Connection
    "get_db",
    "init_db",
    "close_db",
    # Models
    "Base",
    "User",
    "Location",
]
