"""Technique management: the mutations and queries exposed by the API.

Every mutation follows the same path: operation access check, validation
of the payload and its references, a single committed write, then an audit
event. Nothing is written when any check fails. The access check is applied
by ``operation_access`` so each function only sees operations the caller
may use.
"""

from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional

from opstracker.crud import technique as technique_crud
from opstracker.models.operation import Operation
from opstracker.models.technique import Technique
from opstracker.models.user import User
from opstracker.schemas.technique import TechniqueCreate, TechniqueUpdate
from opstracker.services.access import AccessMode, accessible_operation_filter, operation_access
from opstracker.services.validation import (
    validate_mitre_references,
    validate_target_engagements,
    validate_time_window,
    validate_tool_ids,
)
from opstracker.utils.audit import log_event
from opstracker.utils.exceptions import BadRequestError, NotFoundError

MAX_PAGE_SIZE = 100


def _audit_payload(technique: Technique) -> Dict[str, Any]:
    return {
        "technique_id": technique.id,
        "technique_description": technique.description,
        "operation_id": technique.operation_id,
        "operation_name": technique.operation.name if technique.operation else None,
    }


def _load_technique(db: Session, technique_id: str) -> Technique:
    db_technique = technique_crud.get_technique(db, technique_id)
    if not db_technique:
        raise NotFoundError("Technique not found")
    return db_technique


def _technique_operation_id(db: Session, technique_id: str, *args, **kwargs) -> int:
    return _load_technique(db, technique_id).operation_id


@operation_access(AccessMode.MODIFY, lambda db, payload: payload.operation_id)
def create_technique(db: Session, user: User, payload: TechniqueCreate, operation: Operation = None) -> Technique:
    validate_mitre_references(db, payload.mitre_technique_id, payload.mitre_sub_technique_id)
    tools = validate_tool_ids(db, payload.tool_ids or [])
    validate_target_engagements(db, payload.target_engagements)
    validate_time_window(payload.start_time, payload.end_time)

    data = payload.model_dump(exclude={"tool_ids", "target_engagements"})
    created = technique_crud.create_technique(db, data, tools, payload.target_engagements)

    log_event(user, "sec.technique.create", _audit_payload(created), "Technique created")
    return created


@operation_access(AccessMode.MODIFY, _technique_operation_id)
def update_technique(
    db: Session, user: User, technique_id: str, payload: TechniqueUpdate, operation: Operation = None
) -> Technique:
    db_technique = _load_technique(db, technique_id)

    update_data = payload.model_dump(exclude_unset=True, exclude={"tool_ids", "target_engagements"})
    fields = payload.model_fields_set

    def merged(field: str):
        return update_data[field] if field in update_data else getattr(db_technique, field)

    validate_mitre_references(db, merged("mitre_technique_id"), merged("mitre_sub_technique_id"))

    tools = None
    if "tool_ids" in fields:
        tools = validate_tool_ids(db, payload.tool_ids)

    target_engagements = None
    if "target_engagements" in fields:
        target_engagements = payload.target_engagements
        validate_target_engagements(db, target_engagements)

    validate_time_window(merged("start_time"), merged("end_time"))

    updated = technique_crud.update_technique(db, db_technique, update_data, tools, target_engagements)

    log_event(user, "sec.technique.update", _audit_payload(updated), "Technique updated")
    return updated


@operation_access(
    AccessMode.MODIFY,
    _technique_operation_id,
    forbidden_message="You don't have permission to delete this technique",
)
def delete_technique(db: Session, user: User, technique_id: str, operation: Operation = None) -> Dict[str, Any]:
    db_technique = _load_technique(db, technique_id)

    snapshot = _audit_payload(db_technique)
    technique_crud.delete_technique(db, db_technique)

    log_event(user, "sec.technique.delete", snapshot, "Technique deleted")
    return {
        "id": snapshot["technique_id"],
        "description": snapshot["technique_description"],
        "operation_id": snapshot["operation_id"],
    }


@operation_access(AccessMode.MODIFY, lambda db, operation_id, technique_ids: operation_id)
def reorder_techniques(
    db: Session, user: User, operation_id: int, technique_ids: List[str], operation: Operation = None
) -> Dict[str, Any]:
    if len(set(technique_ids)) != len(technique_ids):
        raise BadRequestError("Duplicate technique IDs are not allowed")

    existing = set(technique_crud.get_operation_technique_ids(db, operation_id))
    invalid_ids = [technique_id for technique_id in technique_ids if technique_id not in existing]
    if invalid_ids:
        raise BadRequestError("Some technique IDs don't belong to this operation")

    new_order = technique_crud.reorder_techniques(db, operation, technique_ids)

    log_event(
        user,
        "sec.technique.reorder",
        {
            "operation_id": operation.id,
            "operation_name": operation.name,
            "technique_ids": new_order,
        },
        "Techniques reordered",
    )
    return {"success": True, "operation_id": operation.id, "technique_ids": new_order}


# Listing without an operation filter falls back to the accessible-operation predicate
@operation_access(AccessMode.VIEW, lambda db, operation_id=None, *args, **kwargs: operation_id)
def list_techniques(
    db: Session,
    user: User,
    operation_id: Optional[int] = None,
    limit: int = 50,
    cursor: Optional[str] = None,
    operation: Operation = None,
) -> Dict[str, Any]:
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise BadRequestError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

    techniques, next_cursor = technique_crud.get_techniques(
        db,
        accessible_operation_filter(user),
        operation_id=operation_id,
        limit=limit,
        cursor=cursor,
    )
    return {"techniques": techniques, "next_cursor": next_cursor}


def get_technique(db: Session, user: User, technique_id: str) -> Technique:
    technique = technique_crud.get_accessible_technique(db, technique_id, accessible_operation_filter(user))
    if not technique:
        raise NotFoundError("Technique not found")
    return technique
