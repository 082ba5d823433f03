from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .base import BaseModel, SoftDeleteMixin
from .enums import Modalidad


class Grupo(SoftDeleteMixin, BaseModel):
    __tablename__ = "groups"
    __table_args__ = (
        CheckConstraint("cupo_actual >= 0", name="ck_groups_cupo_actual_min"),
        CheckConstraint("cupo_actual <= cupo_maximo", name="ck_groups_cupo_actual_max"),
        CheckConstraint("cupo_minimo <= cupo_maximo", name="ck_groups_cupo_minimo"),
        CheckConstraint(
            "nivel_ingles IS NULL OR nivel_ingles BETWEEN 1 AND 6",
            name="ck_groups_nivel_ingles",
        ),
    )

    nombre = Column(String(50), nullable=False)
    periodo = Column(String(10), nullable=False, index=True)
    materia_id = Column(String(36), ForeignKey("subjects.id"), nullable=False)
    docente_id = Column(String(36), ForeignKey("teachers.id"), nullable=True)
    cupo_minimo = Column(Integer, default=5, nullable=False)
    cupo_maximo = Column(Integer, default=30, nullable=False)
    # Solo lo modifica core.capacidad
    cupo_actual = Column(Integer, default=0, nullable=False)
    modalidad = Column(
        Enum(Modalidad, native_enum=False), default=Modalidad.PRESENCIAL, nullable=False
    )

    # Cursos de inglés
    nivel_ingles = Column(Integer, nullable=True)
    fecha_inicio_inscripcion = Column(DateTime, nullable=True)
    fecha_fin_inscripcion = Column(DateTime, nullable=True)

    # Relationships
    materia = relationship("Materia", back_populates="grupos")
    docente = relationship("Docente", back_populates="grupos")
    inscripciones = relationship("Inscripcion", back_populates="grupo")
    cursos_especiales = relationship("CursoEspecial", back_populates="grupo")

    @property
    def cupos_disponibles(self) -> int:
        return max(self.cupo_maximo - self.cupo_actual, 0)
