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
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel, SoftDeleteMixin, ahora
from .enums import EstatusInscripcion


class Inscripcion(SoftDeleteMixin, BaseModel):
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("estudiante_id", "grupo_id", name="uq_enrollments_estudiante_grupo"),
    )

    codigo = Column(String(30), unique=True, nullable=False, index=True)
    estudiante_id = Column(String(36), ForeignKey("students.id"), nullable=False)
    grupo_id = Column(String(36), ForeignKey("groups.id"), nullable=False)
    estatus = Column(
        Enum(EstatusInscripcion, native_enum=False),
        default=EstatusInscripcion.INSCRITO,
        nullable=False,
    )
    fecha_inscripcion = Column(DateTime, default=ahora, nullable=False)

    # Calificaciones
    calificacion_parcial1 = Column(Float, nullable=True)
    calificacion_parcial2 = Column(Float, nullable=True)
    calificacion_parcial3 = Column(Float, nullable=True)
    calificacion_final = Column(Float, nullable=True)
    aprobado = Column(Boolean, default=False, nullable=False)
    fecha_aprobacion = Column(DateTime, nullable=True)

    # Asistencia
    asistencias = Column(Integer, default=0, nullable=False)
    faltas = Column(Integer, default=0, nullable=False)
    retardos = Column(Integer, default=0, nullable=False)
    porcentaje_asistencia = Column(Float, nullable=True)

    cupo_reservado = Column(Boolean, default=False, nullable=False)
    fecha_baja = Column(DateTime, nullable=True)
    observaciones = Column(Text, nullable=True)

    # Relationships
    estudiante = relationship("Estudiante", back_populates="inscripciones")
    grupo = relationship("Grupo", back_populates="inscripciones")
    historial = relationship(
        "HistorialInscripcion",
        back_populates="inscripcion",
        order_by="HistorialInscripcion.created_at",
    )


class HistorialInscripcion(BaseModel):
    __tablename__ = "enrollment_history"

    inscripcion_id = Column(String(36), ForeignKey("enrollments.id"), nullable=False)
    accion = Column(String(30), nullable=False)
    campo = Column(String(50), nullable=True)
    valor_anterior = Column(String(100), nullable=True)
    valor_nuevo = Column(String(100), nullable=True)
    descripcion = Column(Text, nullable=True)
    realizado_por = Column(String(36), nullable=True)

    inscripcion = relationship("Inscripcion", back_populates="historial")
