from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional

from opstracker.models.operation import Operation
from opstracker.models.user import Group, User
from opstracker.utils.logger import logger


def get_operation(db: Session, operation_id: int) -> Optional[Operation]:
    return db.query(Operation).filter(Operation.id == operation_id).first()


def get_accessible_operation(db: Session, operation_id: int, access_filter) -> Optional[Operation]:
    return db.query(Operation).filter(Operation.id == operation_id, access_filter).first()


def get_operations(db: Session, access_filter, skip: int = 0, limit: int = 100) -> List[Operation]:
    return (
        db.query(Operation)
        .filter(access_filter)
        .order_by(Operation.created_at.desc(), Operation.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_groups_by_ids(db: Session, group_ids: List[str]) -> List[Group]:
    if not group_ids:
        return []
    return db.query(Group).filter(Group.id.in_(group_ids)).all()


def create_operation(db: Session, data: Dict[str, Any], groups: List[Group], created_by: User) -> Operation:
    try:
        db_operation = Operation(**data, created_by_id=created_by.id)
        db_operation.access_groups = list(groups)
        db.add(db_operation)
        db.commit()
        db.refresh(db_operation)
        return db_operation
    except Exception as e:
        logger.error(f"Error creating operation: {e}")
        db.rollback()
        raise
