"""
FastAPI dependency injection providers.

Provides request-scoped database sessions and the acting user.
"""

from typing import Optional
import logging

from fastapi import Header

from pulpit_scheduler.database import get_db

logger = logging.getLogger(__name__)


def get_db_session():
    """
    Dependency injection for database session.

    Yields a database session and ensures cleanup.
    """
    yield from get_db()


def resolve_actor(
    x_user_id: Optional[str] = Header(None, description="User ID from the identity provider"),
) -> Optional[str]:
    """
    Acting user for audited changes.

    The identity provider authenticates the caller; this only reads the id
    it forwards. Missing or blank means a system action.
    """
    if x_user_id is None:
        return None
    return x_user_id.strip()[:64] or None
