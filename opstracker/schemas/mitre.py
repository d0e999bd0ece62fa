from pydantic import BaseModel
from typing import Optional


class MitreTactic(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    url: Optional[str] = None

    model_config = {
        "from_attributes": True
    }

class MitreTechnique(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    url: Optional[str] = None
    tactic: Optional[MitreTactic] = None

    model_config = {
        "from_attributes": True
    }

class MitreSubTechnique(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    url: Optional[str] = None
    technique_id: str

    model_config = {
        "from_attributes": True
    }
