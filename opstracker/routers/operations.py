from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from opstracker.database import get_db
from opstracker.dependencies import get_current_user, require_operator
from opstracker.models.user import User
from opstracker.schemas.operation import Operation, OperationCreate
from opstracker.services import operation_service
from opstracker.utils.exceptions import OpsTrackerError
from opstracker.utils.logger import logger

router = APIRouter(prefix="/operations", tags=["operations"], dependencies=[Depends(get_current_user)])
mutations = APIRouter(prefix="/operations", tags=["operations"], dependencies=[Depends(require_operator)])


@mutations.post("", response_model=Operation, status_code=201)
def create_operation(
    payload: OperationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Create a new operation"""
    try:
        return operation_service.create_operation(db, user, payload)
    except OpsTrackerError:
        raise
    except Exception as e:
        logger.error(f"Error creating operation: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=List[Operation])
def list_operations(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Get operations visible to the caller"""
    return operation_service.list_operations(db, user, skip=skip, limit=limit)


@router.get("/{operation_id}", response_model=Operation)
def get_operation(
    operation_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Get specific operation by ID"""
    return operation_service.get_operation(db, user, operation_id)
