"""Operation-level access control.

Admins can see and modify every operation. Everyone else can see an
operation when it is visible to everyone or when they belong to one of its
access groups, and can modify what they can see unless they are a viewer.
"""

import enum
import functools
from typing import Callable, Optional

from sqlalchemy import or_, true
from sqlalchemy.orm import Session

from opstracker.crud import operation as operation_crud
from opstracker.models.operation import Operation, OperationVisibility
from opstracker.models.user import Group, User, UserRole
from opstracker.utils.exceptions import ForbiddenError, NotFoundError


class AccessMode(str, enum.Enum):
    VIEW = "view"
    MODIFY = "modify"


def accessible_operation_filter(user: User):
    """SQL predicate over ``Operation`` matching what ``user`` may view."""
    if user.role == UserRole.ADMIN:
        return true()
    return or_(
        Operation.visibility == OperationVisibility.EVERYONE,
        Operation.access_groups.any(Group.members.any(User.id == user.id)),
    )


def can_access(user: User, operation: Operation, mode: AccessMode) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    if mode == AccessMode.MODIFY and user.role == UserRole.VIEWER:
        return False
    if operation.visibility == OperationVisibility.EVERYONE:
        return True
    member_of = {group.id for group in user.groups}
    return any(group.id in member_of for group in operation.access_groups)


def check_operation_access(db: Session, user: User, operation_id: int, mode: AccessMode) -> bool:
    operation = operation_crud.get_operation(db, operation_id)
    if operation is None:
        return False
    return can_access(user, operation, mode)


def ensure_operation_access(
    db: Session,
    user: User,
    operation_id: int,
    mode: AccessMode,
    forbidden_message: str = "You don't have permission to modify this operation",
) -> Operation:
    """Load an operation the caller may use in ``mode`` or raise.

    A denied view looks exactly like a missing operation.
    """
    operation = operation_crud.get_operation(db, operation_id)
    if operation is None:
        raise NotFoundError("Operation not found")
    if not can_access(user, operation, mode):
        if mode == AccessMode.MODIFY:
            raise ForbiddenError(forbidden_message)
        raise NotFoundError("Operation not found")
    return operation


def operation_access(
    mode: AccessMode,
    locate: Callable[..., Optional[int]],
    forbidden_message: str = "You don't have permission to modify this operation",
):
    """Gate a ``(db, user, ...)`` service function on operation access.

    ``locate`` receives the wrapped function's arguments after ``user`` and
    returns the operation id they refer to. The loaded operation is passed
    to the wrapped function as ``operation``. When ``locate`` returns None
    no check runs and ``operation`` is None.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(db: Session, user: User, *args, **kwargs):
            operation_id = locate(db, *args, **kwargs)
            operation = None
            if operation_id is not None:
                operation = ensure_operation_access(db, user, operation_id, mode, forbidden_message)
            return func(db, user, *args, operation=operation, **kwargs)
        return wrapper
    return decorator
