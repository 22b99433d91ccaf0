# backend/app/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

The JWT only carries the user id; these dependencies resolve it to an
active ``User`` row.
"""

import logging

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...core.exceptions import UnauthorizedException
from ...models.user import User
from ...repositories import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)


def get_current_active_user(
    current_user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the current authenticated and active user.

    Raises:
        UnauthorizedException: If the user no longer exists or is inactive
    """
    user = RepositoryFactory.create_user_repository(db).get_by_id(
        current_user_id, load_relationships=False
    )
    if user is None or not user.is_active:
        logger.warning(f"Token subject {current_user_id} does not match an active user")
        raise UnauthorizedException("Could not validate credentials", code="UNAUTHORIZED")
    return user


def get_current_mentor(current_user: User = Depends(get_current_active_user)) -> User:
    """
    Get the current authenticated mentor.

    Raises:
        HTTPException: If user is not a mentor
    """
    if not current_user.is_mentor:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a mentor")
    return current_user
