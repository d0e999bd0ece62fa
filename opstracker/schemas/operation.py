from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import datetime

from opstracker.models.operation import OperationVisibility


class OperationCreate(BaseModel):
    name: str
    description: Optional[str] = None
    visibility: OperationVisibility = OperationVisibility.EVERYONE
    access_group_ids: List[str] = []

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

class OperationSummary(BaseModel):
    id: int
    name: str

    model_config = {
        "from_attributes": True
    }

class Operation(OperationSummary):
    description: Optional[str] = None
    visibility: OperationVisibility
    created_by_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
