import enum

from sqlalchemy import Column, Integer, String, DateTime, Text, Enum, ForeignKey, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from opstracker.database import Base


class OperationVisibility(str, enum.Enum):
    EVERYONE = "everyone"
    GROUPS_ONLY = "groups_only"


operation_access_groups = Table(
    "operation_access_groups",
    Base.metadata,
    Column("operation_id", Integer, ForeignKey("operations.id", ondelete="CASCADE"), primary_key=True),
    Column("group_id", String, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
)


class Operation(Base):

    __tablename__ = "operations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    visibility = Column(
        Enum(OperationVisibility, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=OperationVisibility.EVERYONE,
    )
    created_by_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    access_groups = relationship("Group", secondary=operation_access_groups)
    techniques = relationship(
        "Technique",
        back_populates="operation",
        order_by="Technique.sort_order",
        passive_deletes=True,
    )
