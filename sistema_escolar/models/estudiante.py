from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import relationship

from .base import BaseModel, SoftDeleteMixin
from .enums import EstatusEstudiante


class Estudiante(SoftDeleteMixin, BaseModel):
    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint("semestre BETWEEN 1 AND 12", name="ck_students_semestre"),
        CheckConstraint(
            "creditos_aprobados <= creditos_cursados", name="ck_students_creditos"
        ),
        CheckConstraint(
            "nivel_ingles_actual IS NULL OR nivel_ingles_actual BETWEEN 1 AND 6",
            name="ck_students_nivel_ingles",
        ),
    )

    usuario_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    matricula = Column(String(20), unique=True, nullable=False, index=True)
    nombre = Column(String(100), nullable=False)
    apellido_paterno = Column(String(100), nullable=False)
    apellido_materno = Column(String(100), nullable=True)
    curp = Column(String(18), nullable=True)
    carrera_id = Column(String(36), ForeignKey("careers.id"), nullable=True)
    semestre = Column(Integer, default=1, nullable=False)
    estatus = Column(
        Enum(EstatusEstudiante, native_enum=False),
        default=EstatusEstudiante.ACTIVO,
        nullable=False,
    )

    # Inglés
    nivel_ingles_actual = Column(Integer, nullable=True)
    nivel_ingles_certificado = Column(Integer, nullable=True)
    promedio_ingles = Column(Float, nullable=True)
    cumple_requisito_ingles = Column(Boolean, default=False, nullable=False)
    fecha_examen_diagnostico = Column(DateTime, nullable=True)

    # Créditos
    creditos_cursados = Column(Integer, default=0, nullable=False)
    creditos_aprobados = Column(Integer, default=0, nullable=False)
    promedio_general = Column(Float, nullable=True)

    # Relationships
    usuario = relationship("Usuario", back_populates="estudiante")
    carrera = relationship("Carrera", back_populates="estudiantes")
    inscripciones = relationship("Inscripcion", back_populates="estudiante")
    cursos_especiales = relationship("CursoEspecial", back_populates="estudiante")
    registros_examen = relationship("InscripcionExamen", back_populates="estudiante")

    @property
    def nombre_completo(self) -> str:
        partes = [self.nombre, self.apellido_paterno, self.apellido_materno]
        return " ".join(p for p in partes if p)
