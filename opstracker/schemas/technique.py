"""Request and response models for technique management.

Create and update payloads carry the field-level rules (types, enums,
trimming, which fields may be explicitly cleared). Checks that need the
database live in ``opstracker.services.validation``.
"""

from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import datetime

from opstracker.models.technique import EngagementStatus
from opstracker.schemas.mitre import MitreTechnique, MitreSubTechnique
from opstracker.schemas.operation import OperationSummary
from opstracker.schemas.taxonomy import Tool, Target
from opstracker.utils.helpers import to_naive_utc


# ========== REQUEST MODELS ==========

class TargetEngagementInput(BaseModel):
    target_id: str
    status: EngagementStatus


class TechniqueCreate(BaseModel):
    operation_id: int
    description: str = ""
    mitre_technique_id: Optional[str] = None
    mitre_sub_technique_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    source_ip: Optional[str] = None
    target_system: Optional[str] = None
    tool_ids: Optional[List[str]] = None
    executed_successfully: Optional[bool] = None
    target_engagements: List[TargetEngagementInput] = []

    @field_validator("description", mode="before")
    @classmethod
    def trim_description(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, v):
        return to_naive_utc(v)


class TechniqueUpdate(BaseModel):
    """Partial update; only fields present in the payload are applied."""

    description: Optional[str] = None
    mitre_technique_id: Optional[str] = None
    mitre_sub_technique_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    source_ip: Optional[str] = None
    target_system: Optional[str] = None
    tool_ids: Optional[List[str]] = None
    executed_successfully: Optional[bool] = None
    target_engagements: Optional[List[TargetEngagementInput]] = None

    # Validators only run for fields present in the payload
    @field_validator("description")
    @classmethod
    def trim_description(cls, v):
        if v is None:
            raise ValueError("description may not be null")
        return v.strip()

    @field_validator("tool_ids", "target_engagements")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, v):
        return to_naive_utc(v)


class TechniqueReorder(BaseModel):
    operation_id: int
    technique_ids: List[str]


# ========== RESPONSE MODELS ==========

class TargetEngagement(BaseModel):
    target_id: str
    status: EngagementStatus
    target: Target

    model_config = {
        "from_attributes": True
    }


class Technique(BaseModel):
    id: str
    operation_id: int
    description: str
    sort_order: int
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    source_ip: Optional[str] = None
    target_system: Optional[str] = None
    executed_successfully: Optional[bool] = None
    mitre_technique_id: Optional[str] = None
    mitre_sub_technique_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    operation: OperationSummary
    mitre_technique: Optional[MitreTechnique] = None
    mitre_sub_technique: Optional[MitreSubTechnique] = None
    tools: List[Tool] = []
    target_engagements: List[TargetEngagement] = []

    model_config = {
        "from_attributes": True
    }


class TechniqueList(BaseModel):
    techniques: List[Technique]
    next_cursor: Optional[str] = None


class TechniqueDeleted(BaseModel):
    id: str
    description: str
    operation_id: int


class ReorderResult(BaseModel):
    success: bool
    operation_id: int
    technique_ids: List[str]

