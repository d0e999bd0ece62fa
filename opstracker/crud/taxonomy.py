from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional, Type

from opstracker.models.mitre import MitreTactic, MitreTechnique, MitreSubTechnique
from opstracker.models.taxonomy import Tool, Target
from opstracker.utils.logger import logger


def get_tools_by_ids(db: Session, tool_ids: List[str]) -> List[Tool]:
    if not tool_ids:
        return []
    return db.query(Tool).filter(Tool.id.in_(tool_ids)).all()


def get_targets_by_ids(db: Session, target_ids: List[str]) -> List[Target]:
    if not target_ids:
        return []
    return db.query(Target).filter(Target.id.in_(target_ids)).all()


def get_mitre_technique(db: Session, technique_id: str) -> Optional[MitreTechnique]:
    return db.query(MitreTechnique).filter(MitreTechnique.id == technique_id).first()


def get_mitre_sub_technique(db: Session, sub_technique_id: str) -> Optional[MitreSubTechnique]:
    return db.query(MitreSubTechnique).filter(MitreSubTechnique.id == sub_technique_id).first()


def get_mitre_tactics(db: Session) -> List[MitreTactic]:
    return db.query(MitreTactic).order_by(MitreTactic.id).all()


def get_mitre_techniques(db: Session, tactic_id: Optional[str] = None) -> List[MitreTechnique]:
    query = db.query(MitreTechnique)
    if tactic_id:
        query = query.filter(MitreTechnique.tactic_id == tactic_id)
    return query.order_by(MitreTechnique.id).all()


def get_mitre_sub_techniques(db: Session, technique_id: Optional[str] = None) -> List[MitreSubTechnique]:
    query = db.query(MitreSubTechnique)
    if technique_id:
        query = query.filter(MitreSubTechnique.technique_id == technique_id)
    return query.order_by(MitreSubTechnique.id).all()


# Tools and targets share the same CRUD shape

def get_entries(db: Session, model: Type) -> List[Any]:
    return db.query(model).order_by(model.name).all()


def get_entry(db: Session, model: Type, entry_id: str) -> Optional[Any]:
    return db.query(model).filter(model.id == entry_id).first()


def create_entry(db: Session, model: Type, data: Dict[str, Any]) -> Any:
    try:
        db_entry = model(**data)
        db.add(db_entry)
        db.commit()
        db.refresh(db_entry)
        return db_entry
    except Exception as e:
        logger.error(f"Error creating {model.__tablename__} entry: {e}")
        db.rollback()
        raise


def update_entry(db: Session, db_entry: Any, update_data: Dict[str, Any]) -> Any:
    try:
        for key, value in update_data.items():
            setattr(db_entry, key, value)
        db.commit()
        db.refresh(db_entry)
        return db_entry
    except Exception as e:
        logger.error(f"Error updating {db_entry.__tablename__} entry {db_entry.id}: {e}")
        db.rollback()
        raise


def delete_entry(db: Session, db_entry: Any) -> None:
    try:
        db.delete(db_entry)
        db.commit()
    except Exception as e:
        logger.error(f"Error deleting {db_entry.__tablename__} entry {db_entry.id}: {e}")
        db.rollback()
        raise
