# routers/techniques.py
"""
Technique management router: create, update, delete and reorder techniques
within an operation, and list or fetch them with access control applied.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional

from opstracker.database import get_db
from opstracker.dependencies import get_current_user, require_operator
from opstracker.models.user import User
from opstracker.schemas.technique import (
    ReorderResult, Technique, TechniqueCreate, TechniqueDeleted, TechniqueList,
    TechniqueReorder, TechniqueUpdate,
)
from opstracker.services import technique_service
from opstracker.utils.exceptions import OpsTrackerError
from opstracker.utils.logger import logger

# Reads need any authenticated caller, writes need a non-viewer role
router = APIRouter(prefix="/techniques", tags=["techniques"], dependencies=[Depends(get_current_user)])
mutations = APIRouter(prefix="/techniques", tags=["techniques"], dependencies=[Depends(require_operator)])


@mutations.post("", response_model=Technique, status_code=201)
def create_technique(
    payload: TechniqueCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Create a new technique within an operation"""
    try:
        return technique_service.create_technique(db, user, payload)
    except OpsTrackerError:
        raise
    except Exception as e:
        logger.error(f"Error creating technique: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@mutations.post("/reorder", response_model=ReorderResult)
def reorder_techniques(
    payload: TechniqueReorder,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Reorder techniques within an operation"""
    try:
        return technique_service.reorder_techniques(db, user, payload.operation_id, payload.technique_ids)
    except OpsTrackerError:
        raise
    except Exception as e:
        logger.error(f"Error reordering techniques: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@mutations.patch("/{technique_id}", response_model=Technique)
def update_technique(
    technique_id: str,
    payload: TechniqueUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Partially update a technique and reconcile its tools and targets"""
    try:
        return technique_service.update_technique(db, user, technique_id, payload)
    except OpsTrackerError:
        raise
    except Exception as e:
        logger.error(f"Error updating technique {technique_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@mutations.delete("/{technique_id}", response_model=TechniqueDeleted)
def delete_technique(
    technique_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Delete a technique"""
    try:
        return technique_service.delete_technique(db, user, technique_id)
    except OpsTrackerError:
        raise
    except Exception as e:
        logger.error(f"Error deleting technique {technique_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=TechniqueList)
def list_techniques(
    operation_id: Optional[int] = None,
    limit: int = Query(default=50, ge=1, le=100),
    cursor: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """List techniques with cursor pagination"""
    try:
        return technique_service.list_techniques(db, user, operation_id=operation_id, limit=limit, cursor=cursor)
    except OpsTrackerError:
        raise
    except Exception as e:
        logger.error(f"Error listing techniques: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{technique_id}", response_model=Technique)
def get_technique(
    technique_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Get technique by ID"""
    try:
        return technique_service.get_technique(db, user, technique_id)
    except OpsTrackerError:
        raise
    except Exception as e:
        logger.error(f"Error getting technique {technique_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

