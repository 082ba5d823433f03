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
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel, SoftDeleteMixin, ahora
from .enums import EstatusInscripcion, EstatusPeriodoExamen


class PeriodoExamen(SoftDeleteMixin, BaseModel):
    __tablename__ = "exam_periods"
    __table_args__ = (
        CheckConstraint("cupo_actual >= 0", name="ck_exam_periods_cupo_actual_min"),
        CheckConstraint(
            "cupo_actual <= cupo_maximo", name="ck_exam_periods_cupo_actual_max"
        ),
    )

    nombre = Column(String(150), nullable=False)
    descripcion = Column(Text, nullable=True)
    fecha_inicio = Column(DateTime, nullable=False)
    fecha_fin = Column(DateTime, nullable=False)
    fecha_inscripcion_inicio = Column(DateTime, nullable=False)
    fecha_inscripcion_fin = Column(DateTime, nullable=False)
    cupo_maximo = Column(Integer, default=100, nullable=False)
    cupo_actual = Column(Integer, default=0, nullable=False)
    estatus = Column(
        Enum(EstatusPeriodoExamen, native_enum=False),
        default=EstatusPeriodoExamen.PLANEADO,
        nullable=False,
    )
    requiere_pago = Column(Boolean, default=False, nullable=False)
    monto_pago = Column(Float, nullable=True)
    observaciones = Column(Text, nullable=True)

    registros = relationship("InscripcionExamen", back_populates="periodo")

    @property
    def cupos_disponibles(self) -> int:
        return max(self.cupo_maximo - self.cupo_actual, 0)


class InscripcionExamen(SoftDeleteMixin, BaseModel):
    __tablename__ = "exam_registrations"

    codigo = Column(String(30), unique=True, nullable=False, index=True)
    periodo_id = Column(String(36), ForeignKey("exam_periods.id"), nullable=False)
    estudiante_id = Column(String(36), ForeignKey("students.id"), nullable=False)
    estatus = Column(
        Enum(EstatusInscripcion, native_enum=False),
        default=EstatusInscripcion.INSCRITO,
        nullable=False,
    )
    fecha_inscripcion = Column(DateTime, default=ahora, nullable=False)
    calificacion = Column(Float, nullable=True)
    aprobado = Column(Boolean, default=False, nullable=False)
    nivel_asignado = Column(Integer, nullable=True)
    cupo_reservado = Column(Boolean, default=False, nullable=False)
    observaciones = Column(Text, nullable=True)

    periodo = relationship("PeriodoExamen", back_populates="registros")
    estudiante = relationship("Estudiante", back_populates="registros_examen")
