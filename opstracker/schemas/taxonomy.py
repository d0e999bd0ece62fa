from pydantic import BaseModel, field_validator
from typing import Optional


class ToolBase(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

class ToolCreate(ToolBase):
    pass

class ToolUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> str:
        if v is None or not v.strip():
            raise ValueError("name must not be empty")
        return v.strip()

class Tool(ToolBase):
    id: str

    model_config = {
        "from_attributes": True
    }


class TargetBase(BaseModel):
    name: str
    description: Optional[str] = None
    is_crown_jewel: bool = False

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

class TargetCreate(TargetBase):
    pass

class TargetUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_crown_jewel: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> str:
        if v is None or not v.strip():
            raise ValueError("name must not be empty")
        return v.strip()

    @field_validator("is_crown_jewel")
    @classmethod
    def flag_not_null(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("is_crown_jewel may not be null")
        return v

class Target(TargetBase):
    id: str

    model_config = {
        "from_attributes": True
    }
