"""Reference and cross-field checks run before any technique write."""

from datetime import datetime
from sqlalchemy.orm import Session
from typing import Iterable, List, Optional

from opstracker.crud import taxonomy as taxonomy_crud
from opstracker.models.taxonomy import Tool
from opstracker.utils.exceptions import BadRequestError


def validate_mitre_references(
    db: Session,
    mitre_technique_id: Optional[str],
    mitre_sub_technique_id: Optional[str],
) -> None:
    if mitre_technique_id is not None:
        if taxonomy_crud.get_mitre_technique(db, mitre_technique_id) is None:
            raise BadRequestError("MITRE technique not found")

    if mitre_sub_technique_id is not None:
        sub_technique = taxonomy_crud.get_mitre_sub_technique(db, mitre_sub_technique_id)
        if sub_technique is None:
            raise BadRequestError("MITRE sub-technique not found")
        if mitre_technique_id is not None and sub_technique.technique_id != mitre_technique_id:
            raise BadRequestError("Sub-technique does not belong to the specified technique")


def validate_tool_ids(db: Session, tool_ids: Iterable[str]) -> List[Tool]:
    """Return the tools for ``tool_ids`` or raise if any is unknown."""
    unique_ids = list(dict.fromkeys(tool_ids))
    tools = taxonomy_crud.get_tools_by_ids(db, unique_ids)
    if len(tools) != len(unique_ids):
        raise BadRequestError("One or more tools not found")
    return tools


def validate_target_engagements(db: Session, engagements: Iterable) -> None:
    target_ids = [engagement.target_id for engagement in engagements]
    if not target_ids:
        return
    if len(set(target_ids)) != len(target_ids):
        raise BadRequestError("Duplicate targets are not allowed")
    existing = taxonomy_crud.get_targets_by_ids(db, target_ids)
    if len(existing) != len(target_ids):
        raise BadRequestError("One or more targets not found")


def validate_time_window(start_time: Optional[datetime], end_time: Optional[datetime]) -> None:
    if start_time and end_time and end_time < start_time:
        raise BadRequestError("End time cannot be before start time")
