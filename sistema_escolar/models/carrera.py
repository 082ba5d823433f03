from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from .base import BaseModel, SoftDeleteMixin


class Carrera(SoftDeleteMixin, BaseModel):
    __tablename__ = "careers"

    clave = Column(String(20), unique=True, nullable=False, index=True)
    nombre = Column(String(150), nullable=False)

    # Relationships
    estudiantes = relationship("Estudiante", back_populates="carrera")
