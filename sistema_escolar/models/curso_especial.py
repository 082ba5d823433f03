from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel, SoftDeleteMixin, ahora
from .enums import EstatusInscripcion, TipoCurso


class CursoEspecial(SoftDeleteMixin, BaseModel):
    __tablename__ = "special_courses"

    codigo = Column(String(30), unique=True, nullable=False, index=True)
    estudiante_id = Column(String(36), ForeignKey("students.id"), nullable=False)
    grupo_id = Column(String(36), ForeignKey("groups.id"), nullable=True)
    tipo_curso = Column(Enum(TipoCurso, native_enum=False), nullable=False)
    nivel_ingles = Column(Integer, nullable=True)
    estatus = Column(
        Enum(EstatusInscripcion, native_enum=False),
        default=EstatusInscripcion.PENDIENTE_PAGO,
        nullable=False,
    )
    fecha_inscripcion = Column(DateTime, default=ahora, nullable=False)
    fecha_inicio = Column(DateTime, nullable=True)

    # Pago
    requiere_pago = Column(Boolean, default=True, nullable=False)
    pago_aprobado = Column(Boolean, nullable=True)
    fecha_pago_aprobado = Column(DateTime, nullable=True)
    monto_pago = Column(Float, nullable=True)

    # Resultado
    calificacion = Column(Float, nullable=True)
    aprobado = Column(Boolean, default=False, nullable=False)
    fecha_aprobacion = Column(DateTime, nullable=True)
    completado_por_diagnostico = Column(Boolean, default=False, nullable=False)

    cupo_reservado = Column(Boolean, default=False, nullable=False)
    observaciones = Column(Text, nullable=True)

    estudiante = relationship("Estudiante", back_populates="cursos_especiales")
    grupo = relationship("Grupo", back_populates="cursos_especiales")

    @property
    def es_patron_diagnostico(self) -> bool:
        """Curso creado por un examen diagnóstico aprobado"""
        return (
            self.grupo_id is None
            and not self.requiere_pago
            and bool(self.aprobado)
            and self.tipo_curso == TipoCurso.INGLES
        )
