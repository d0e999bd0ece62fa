import enum
import uuid

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Table, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from opstracker.database import Base
from opstracker.utils.helpers import utcnow


class EngagementStatus(str, enum.Enum):
    UNKNOWN = "unknown"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


technique_tools = Table(
    "technique_tools",
    Base.metadata,
    Column("technique_id", String, ForeignKey("techniques.id", ondelete="CASCADE"), primary_key=True),
    Column("tool_id", String, ForeignKey("tools.id", ondelete="CASCADE"), primary_key=True),
)


class Technique(Base):

    __tablename__ = "techniques"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    operation_id = Column(Integer, ForeignKey("operations.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    sort_order = Column(Integer, nullable=False, default=0)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    source_ip = Column(String, nullable=True)
    target_system = Column(String, nullable=True)
    executed_successfully = Column(Boolean, nullable=True)
    mitre_technique_id = Column(String, ForeignKey("mitre_techniques.id"), nullable=True)
    mitre_sub_technique_id = Column(String, ForeignKey("mitre_sub_techniques.id"), nullable=True)
    # Python-side default keeps sub-second precision for list ordering
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    operation = relationship("Operation", back_populates="techniques")
    mitre_technique = relationship("MitreTechnique")
    mitre_sub_technique = relationship("MitreSubTechnique")
    tools = relationship("Tool", secondary=technique_tools, order_by="Tool.name", passive_deletes=True)
    target_engagements = relationship(
        "TargetEngagement",
        back_populates="technique",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class TargetEngagement(Base):

    __tablename__ = "technique_targets"
    __table_args__ = (UniqueConstraint("technique_id", "target_id", name="uq_technique_target"),)

    id = Column(Integer, primary_key=True, index=True)
    technique_id = Column(String, ForeignKey("techniques.id", ondelete="CASCADE"), nullable=False, index=True)
    target_id = Column(String, ForeignKey("targets.id", ondelete="CASCADE"), nullable=False, index=True)
    # NULL = unknown, True = succeeded, False = failed
    was_successful = Column(Boolean, nullable=True)

    technique = relationship("Technique", back_populates="target_engagements")
    target = relationship("Target")

    @property
    def status(self) -> EngagementStatus:
        if self.was_successful is None:
            return EngagementStatus.UNKNOWN
        return EngagementStatus.SUCCEEDED if self.was_successful else EngagementStatus.FAILED

    @status.setter
    def status(self, value) -> None:
        value = EngagementStatus(value)
        if value is EngagementStatus.UNKNOWN:
            self.was_successful = None
        else:
            self.was_successful = value is EngagementStatus.SUCCEEDED
