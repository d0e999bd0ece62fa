import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Text
from sqlalchemy.sql import func
from opstracker.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Tool(Base):

    __tablename__ = "tools"

    id = Column(String, primary_key=True, index=True, default=_new_id)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Target(Base):

    __tablename__ = "targets"

    id = Column(String, primary_key=True, index=True, default=_new_id)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=True)
    is_crown_jewel = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
