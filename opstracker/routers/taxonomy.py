# routers/taxonomy.py
"""
Reference data used by techniques: tools, targets and the MITRE ATT&CK
taxonomy. Anyone signed in can read it; only administrators change tools
and targets. The MITRE tables are read-only and filled at startup.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from opstracker.crud import taxonomy as taxonomy_crud
from opstracker.database import get_db
from opstracker.dependencies import get_current_user, require_admin
from opstracker.models import taxonomy as models
from opstracker.models.user import User
from opstracker.schemas.mitre import MitreSubTechnique, MitreTactic, MitreTechnique
from opstracker.schemas.taxonomy import (
    Target, TargetCreate, TargetUpdate, Tool, ToolCreate, ToolUpdate,
)
from opstracker.services import taxonomy_service

router = APIRouter(prefix="/taxonomy", tags=["taxonomy"], dependencies=[Depends(get_current_user)])
mutations = APIRouter(prefix="/taxonomy", tags=["taxonomy"], dependencies=[Depends(require_admin)])


# ========== TOOLS ==========

@router.get("/tools", response_model=List[Tool])
def list_tools(db: Session = Depends(get_db)):
    return taxonomy_crud.get_entries(db, models.Tool)


@mutations.post("/tools", response_model=Tool, status_code=201)
def create_tool(payload: ToolCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return taxonomy_service.create_entry(db, user, models.Tool, payload.model_dump())


@mutations.patch("/tools/{tool_id}", response_model=Tool)
def update_tool(tool_id: str, payload: ToolUpdate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return taxonomy_service.update_entry(db, user, models.Tool, tool_id, payload.model_dump(exclude_unset=True))


@mutations.delete("/tools/{tool_id}")
def delete_tool(tool_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return taxonomy_service.delete_entry(db, user, models.Tool, tool_id)


# ========== TARGETS ==========

@router.get("/targets", response_model=List[Target])
def list_targets(db: Session = Depends(get_db)):
    return taxonomy_crud.get_entries(db, models.Target)


@mutations.post("/targets", response_model=Target, status_code=201)
def create_target(payload: TargetCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return taxonomy_service.create_entry(db, user, models.Target, payload.model_dump())


@mutations.patch("/targets/{target_id}", response_model=Target)
def update_target(target_id: str, payload: TargetUpdate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return taxonomy_service.update_entry(db, user, models.Target, target_id, payload.model_dump(exclude_unset=True))


@mutations.delete("/targets/{target_id}")
def delete_target(target_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return taxonomy_service.delete_entry(db, user, models.Target, target_id)


# ========== MITRE ATT&CK ==========

@router.get("/mitre/tactics", response_model=List[MitreTactic])
def list_mitre_tactics(db: Session = Depends(get_db)):
    return taxonomy_crud.get_mitre_tactics(db)


@router.get("/mitre/techniques", response_model=List[MitreTechnique])
def list_mitre_techniques(tactic_id: Optional[str] = None, db: Session = Depends(get_db)):
    return taxonomy_crud.get_mitre_techniques(db, tactic_id=tactic_id)


@router.get("/mitre/sub-techniques", response_model=List[MitreSubTechnique])
def list_mitre_sub_techniques(technique_id: Optional[str] = None, db: Session = Depends(get_db)):
    return taxonomy_crud.get_mitre_sub_techniques(db, technique_id=technique_id)
