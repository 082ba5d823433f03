from sqlalchemy import Column, ForeignKey, String
from sqlalchemy.orm import relationship

from .base import BaseModel, SoftDeleteMixin


class Docente(SoftDeleteMixin, BaseModel):
    __tablename__ = "teachers"

    usuario_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    nombre = Column(String(100), nullable=False)
    apellido_paterno = Column(String(100), nullable=False)
    apellido_materno = Column(String(100), nullable=True)
    departamento = Column(String(100), nullable=True)

    # Relationships
    usuario = relationship("Usuario", back_populates="docente")
    grupos = relationship("Grupo", back_populates="docente")

    @property
    def nombre_completo(self) -> str:
        partes = [self.nombre, self.apellido_paterno, self.apellido_materno]
        return " ".join(p for p in partes if p)
