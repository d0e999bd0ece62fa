from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session, selectinload
from typing import Any, Dict, Iterable, List, Optional, Tuple

from opstracker.models.mitre import MitreTechnique
from opstracker.models.operation import Operation
from opstracker.models.taxonomy import Tool
from opstracker.models.technique import Technique, TargetEngagement
from opstracker.utils.exceptions import BadRequestError
from opstracker.utils.logger import logger


def _hydrated():
    return (
        selectinload(Technique.operation),
        selectinload(Technique.mitre_technique).selectinload(MitreTechnique.tactic),
        selectinload(Technique.mitre_sub_technique),
        selectinload(Technique.tools),
        selectinload(Technique.target_engagements).selectinload(TargetEngagement.target),
    )


def _ordering():
    return (Technique.sort_order.asc(), Technique.created_at.asc(), Technique.id.asc())


def get_technique(db: Session, technique_id: str) -> Optional[Technique]:
    return db.query(Technique).options(*_hydrated()).filter(Technique.id == technique_id).first()


def get_accessible_technique(db: Session, technique_id: str, access_filter) -> Optional[Technique]:
    return (
        db.query(Technique)
        .join(Technique.operation)
        .options(*_hydrated())
        .filter(Technique.id == technique_id, access_filter)
        .first()
    )


def get_techniques(
    db: Session,
    access_filter,
    operation_id: Optional[int] = None,
    limit: int = 50,
    cursor: Optional[str] = None,
) -> Tuple[List[Technique], Optional[str]]:
    """Return one page of techniques and the id that opens the next page.

    The cursor row is included in the page it opens, so ``next_cursor`` is
    the first row that was not returned.
    """
    query = db.query(Technique).join(Technique.operation).filter(access_filter)
    if operation_id is not None:
        query = query.filter(Technique.operation_id == operation_id)

    if cursor:
        anchor = query.filter(Technique.id == cursor).first()
        if anchor is None:
            raise BadRequestError("Invalid cursor")
        query = query.filter(or_(
            Technique.sort_order > anchor.sort_order,
            and_(Technique.sort_order == anchor.sort_order, Technique.created_at > anchor.created_at),
            and_(
                Technique.sort_order == anchor.sort_order,
                Technique.created_at == anchor.created_at,
                Technique.id >= anchor.id,
            ),
        ))

    techniques = query.options(*_hydrated()).order_by(*_ordering()).limit(limit + 1).all()

    next_cursor = None
    if len(techniques) > limit:
        next_cursor = techniques.pop().id
    return techniques, next_cursor


def get_operation_technique_ids(db: Session, operation_id: int) -> List[str]:
    rows = (
        db.query(Technique.id)
        .filter(Technique.operation_id == operation_id)
        .order_by(*_ordering())
        .all()
    )
    return [row.id for row in rows]


def next_sort_order(db: Session, operation_id: int) -> int:
    current = db.query(func.max(Technique.sort_order)).filter(Technique.operation_id == operation_id).scalar()
    return 0 if current is None else current + 1


def reconcile_target_engagements(db_technique: Technique, engagements: Iterable) -> None:
    """Make the technique's engagements match ``engagements`` keyed by target id.

    Engagements for targets not listed are removed; listed targets are
    updated in place when already engaged and created otherwise.
    """
    incoming = {engagement.target_id: engagement.status for engagement in engagements}

    for existing in list(db_technique.target_engagements):
        if existing.target_id not in incoming:
            db_technique.target_engagements.remove(existing)

    current = {engagement.target_id: engagement for engagement in db_technique.target_engagements}
    for target_id, status in incoming.items():
        row = current.get(target_id)
        if row is None:
            db_technique.target_engagements.append(TargetEngagement(target_id=target_id, status=status))
        else:
            row.status = status


def create_technique(
    db: Session,
    data: Dict[str, Any],
    tools: Optional[List[Tool]] = None,
    target_engagements: Iterable = (),
) -> Technique:
    try:
        db_technique = Technique(**data)
        db_technique.sort_order = next_sort_order(db, data["operation_id"])
        db_technique.tools = list(tools or [])
        for engagement in target_engagements:
            db_technique.target_engagements.append(
                TargetEngagement(target_id=engagement.target_id, status=engagement.status)
            )
        db.add(db_technique)
        db.commit()
        return get_technique(db, db_technique.id)
    except Exception as e:
        logger.error(f"Error creating technique: {e}")
        db.rollback()
        raise


def update_technique(
    db: Session,
    db_technique: Technique,
    update_data: Dict[str, Any],
    tools: Optional[List[Tool]] = None,
    target_engagements: Optional[Iterable] = None,
) -> Technique:
    """Apply a partial update in one transaction.

    ``tools`` replaces the whole tool set when given; ``target_engagements``
    is reconciled against the existing rows. ``None`` leaves either untouched.
    """
    try:
        for key, value in update_data.items():
            setattr(db_technique, key, value)
        if tools is not None:
            db_technique.tools = list(tools)
        if target_engagements is not None:
            reconcile_target_engagements(db_technique, target_engagements)
        db.commit()
        return get_technique(db, db_technique.id)
    except Exception as e:
        logger.error(f"Error updating technique {db_technique.id}: {e}")
        db.rollback()
        raise


def delete_technique(db: Session, db_technique: Technique) -> None:
    try:
        db.delete(db_technique)
        db.commit()
    except Exception as e:
        logger.error(f"Error deleting technique {db_technique.id}: {e}")
        db.rollback()
        raise


def reorder_techniques(db: Session, operation: Operation, technique_ids: List[str]) -> List[str]:
    """Assign dense sort orders following ``technique_ids``.

    Techniques of the operation that are not listed keep their relative
    order and are placed after the listed ones. Returns the full new order.
    """
    try:
        techniques = (
            db.query(Technique)
            .filter(Technique.operation_id == operation.id)
            .order_by(*_ordering())
            .all()
        )
        by_id = {technique.id: technique for technique in techniques}
        listed = set(technique_ids)
        new_order = list(technique_ids) + [t.id for t in techniques if t.id not in listed]
        for index, technique_id in enumerate(new_order):
            by_id[technique_id].sort_order = index
        db.commit()
        return new_order
    except Exception as e:
        logger.error(f"Error reordering techniques for operation {operation.id}: {e}")
        db.rollback()
        raise
