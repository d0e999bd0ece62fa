"""Caller resolution and role gates used as router dependencies.

Authentication happens upstream; the authenticated user's id arrives in the
``X-User-Id`` header.
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from opstracker.crud import user as user_crud
from opstracker.database import get_db
from opstracker.models.user import User, UserRole
from opstracker.utils.exceptions import ForbiddenError, UnauthorizedError


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    if not x_user_id:
        raise UnauthorizedError("Authentication required")
    user = user_crud.get_user(db, x_user_id)
    if not user:
        raise UnauthorizedError("Unknown user")
    return user


def require_operator(user: User = Depends(get_current_user)) -> User:
    if user.role == UserRole.VIEWER:
        raise ForbiddenError("Viewers cannot modify data")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise ForbiddenError("Administrator access required")
    return user
