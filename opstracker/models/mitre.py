from sqlalchemy import Column, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from opstracker.database import Base


class MitreTactic(Base):

    __tablename__ = "mitre_tactics"

    id = Column(String, primary_key=True, index=True)  # TA0001
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    url = Column(String, nullable=True)

    techniques = relationship("MitreTechnique", back_populates="tactic")


class MitreTechnique(Base):

    __tablename__ = "mitre_techniques"

    id = Column(String, primary_key=True, index=True)  # T1566
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    url = Column(String, nullable=True)
    tactic_id = Column(String, ForeignKey("mitre_tactics.id"), nullable=True, index=True)

    tactic = relationship("MitreTactic", back_populates="techniques")
    sub_techniques = relationship("MitreSubTechnique", back_populates="technique")


class MitreSubTechnique(Base):

    __tablename__ = "mitre_sub_techniques"

    id = Column(String, primary_key=True, index=True)  # T1566.001
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    url = Column(String, nullable=True)
    technique_id = Column(String, ForeignKey("mitre_techniques.id"), nullable=False, index=True)

    technique = relationship("MitreTechnique", back_populates="sub_techniques")
