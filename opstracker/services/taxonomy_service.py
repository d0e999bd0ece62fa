"""Shared tools and targets referenced by techniques."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Any, Dict, Type

from opstracker.crud import taxonomy as taxonomy_crud
from opstracker.models.taxonomy import Tool, Target
from opstracker.models.user import User
from opstracker.utils.audit import log_event
from opstracker.utils.exceptions import BadRequestError, NotFoundError

ENTRY_KINDS: Dict[Type, str] = {
    Tool: "tool",
    Target: "target",
}


def _get_or_404(db: Session, model: Type, entry_id: str):
    db_entry = taxonomy_crud.get_entry(db, model, entry_id)
    if not db_entry:
        raise NotFoundError(f"{ENTRY_KINDS[model].capitalize()} not found")
    return db_entry


def _audit(user: User, model: Type, action: str, entry_id: str, name: str) -> None:
    kind = ENTRY_KINDS[model]
    log_event(
        user,
        f"sec.{kind}.{action}",
        {f"{kind}_id": entry_id, f"{kind}_name": name},
        f"{kind.capitalize()} {action}d",
    )


def create_entry(db: Session, user: User, model: Type, data: Dict[str, Any]):
    try:
        created = taxonomy_crud.create_entry(db, model, data)
    except IntegrityError as e:
        raise BadRequestError(f"A {ENTRY_KINDS[model]} named '{data.get('name')}' already exists") from e
    _audit(user, model, "create", created.id, created.name)
    return created


def update_entry(db: Session, user: User, model: Type, entry_id: str, update_data: Dict[str, Any]):
    db_entry = _get_or_404(db, model, entry_id)
    try:
        updated = taxonomy_crud.update_entry(db, db_entry, update_data)
    except IntegrityError as e:
        raise BadRequestError(f"A {ENTRY_KINDS[model]} named '{update_data.get('name')}' already exists") from e
    _audit(user, model, "update", updated.id, updated.name)
    return updated


def delete_entry(db: Session, user: User, model: Type, entry_id: str) -> Dict[str, Any]:
    db_entry = _get_or_404(db, model, entry_id)
    snapshot = {"id": db_entry.id, "name": db_entry.name}
    taxonomy_crud.delete_entry(db, db_entry)
    _audit(user, model, "delete", snapshot["id"], snapshot["name"])
    return snapshot
