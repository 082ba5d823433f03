from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel, SoftDeleteMixin


class Materia(SoftDeleteMixin, BaseModel):
    __tablename__ = "subjects"

    clave = Column(String(20), unique=True, nullable=False, index=True)
    nombre = Column(String(200), nullable=False)
    creditos = Column(Integer, nullable=False)
    tipo = Column(String(30), default="OBLIGATORIA", nullable=False)

    # Relationships
    grupos = relationship("Grupo", back_populates="materia")
    prerrequisitos = relationship(
        "Prerrequisito",
        foreign_keys="Prerrequisito.materia_id",
        back_populates="materia",
    )


class Prerrequisito(BaseModel):
    __tablename__ = "prerequisites"
    __table_args__ = (
        UniqueConstraint("materia_id", "prerrequisito_id", name="uq_prerequisites_par"),
    )

    materia_id = Column(String(36), ForeignKey("subjects.id"), nullable=False)
    prerrequisito_id = Column(String(36), ForeignKey("subjects.id"), nullable=False)

    materia = relationship(
        "Materia", foreign_keys=[materia_id], back_populates="prerrequisitos"
    )
    prerrequisito = relationship("Materia", foreign_keys=[prerrequisito_id])
