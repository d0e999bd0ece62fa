from sqlalchemy.orm import Session
from typing import List

from opstracker.crud import operation as operation_crud
from opstracker.models.operation import Operation
from opstracker.models.user import User
from opstracker.schemas.operation import OperationCreate
from opstracker.services.access import accessible_operation_filter
from opstracker.utils.audit import log_event
from opstracker.utils.exceptions import BadRequestError, NotFoundError


def create_operation(db: Session, user: User, payload: OperationCreate) -> Operation:
    group_ids = list(dict.fromkeys(payload.access_group_ids))
    groups = operation_crud.get_groups_by_ids(db, group_ids)
    if len(groups) != len(group_ids):
        raise BadRequestError("One or more groups not found")

    data = payload.model_dump(exclude={"access_group_ids"})
    created = operation_crud.create_operation(db, data, groups, created_by=user)

    log_event(
        user,
        "sec.operation.create",
        {"operation_id": created.id, "operation_name": created.name},
        "Operation created",
    )
    return created


def list_operations(db: Session, user: User, skip: int = 0, limit: int = 100) -> List[Operation]:
    return operation_crud.get_operations(db, accessible_operation_filter(user), skip=skip, limit=limit)


def get_operation(db: Session, user: User, operation_id: int) -> Operation:
    operation = operation_crud.get_accessible_operation(db, operation_id, accessible_operation_filter(user))
    if not operation:
        raise NotFoundError("Operation not found")
    return operation
