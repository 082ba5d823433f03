from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sistema_escolar.config.settings import settings
from sistema_escolar.models.enums import EstatusInscripcion, EstatusPeriodoExamen

from .comun import EntradaBase, no_nulos


class PeriodoExamenBase(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=150)
    descripcion: Optional[str] = None
    fecha_inicio: datetime
    fecha_fin: datetime
    fecha_inscripcion_inicio: datetime
    fecha_inscripcion_fin: datetime
    cupo_maximo: int = Field(
        default_factory=lambda: settings.cupo_maximo_periodo_examen, ge=1
    )
    requiere_pago: bool = False
    monto_pago: Optional[float] = Field(None, ge=0)
    observaciones: Optional[str] = None


class PeriodoExamenCreate(EntradaBase, PeriodoExamenBase):
    @model_validator(mode="after")
    def validar_fechas(self):
        if self.fecha_inicio > self.fecha_fin:
            raise ValueError("fecha_inicio debe ser anterior a fecha_fin")
        if self.fecha_inscripcion_inicio > self.fecha_inscripcion_fin:
            raise ValueError(
                "fecha_inscripcion_inicio debe ser anterior a fecha_inscripcion_fin"
            )
        return self


class PeriodoExamenUpdate(EntradaBase):
    nombre: Optional[str] = Field(None, min_length=1, max_length=150)
    descripcion: Optional[str] = None
    fecha_inicio: Optional[datetime] = None
    fecha_fin: Optional[datetime] = None
    fecha_inscripcion_inicio: Optional[datetime] = None
    fecha_inscripcion_fin: Optional[datetime] = None
    cupo_maximo: Optional[int] = Field(None, ge=1)
    requiere_pago: Optional[bool] = None
    monto_pago: Optional[float] = Field(None, ge=0)
    observaciones: Optional[str] = None

    requeridos = no_nulos(
        "nombre",
        "fecha_inicio",
        "fecha_fin",
        "fecha_inscripcion_inicio",
        "fecha_inscripcion_fin",
        "cupo_maximo",
        "requiere_pago",
    )


class PeriodoExamen(PeriodoExamenBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    cupo_actual: int
    cupos_disponibles: int
    estatus: EstatusPeriodoExamen
    created_at: datetime
    updated_at: datetime


class PeriodoDisponible(PeriodoExamen):
    esta_disponible: bool
    condiciones: Dict[str, bool]


class InscripcionExamenCreate(EntradaBase):
    estudiante_id: Optional[str] = None
    observaciones: Optional[str] = None


class ResultadoExamen(EntradaBase):
    calificacion: float = Field(..., ge=0, le=100)
    nivel_ingles: Optional[int] = Field(None, ge=1, le=6)
    calificaciones_por_nivel: Optional[Dict[int, float]] = None


class InscripcionExamen(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    codigo: str
    periodo_id: str
    estudiante_id: str
    estatus: EstatusInscripcion
    fecha_inscripcion: datetime
    calificacion: Optional[float] = None
    aprobado: bool
    nivel_asignado: Optional[int] = None
    observaciones: Optional[str] = None
    created_at: datetime


class CambioEstatusRegistro(EntradaBase):
    estatus: EstatusInscripcion
    motivo: Optional[str] = None


class ResultadoProcesado(BaseModel):
    registro: InscripcionExamen
    nivel_asignado: int
    cursos_creados: int
    puntuacion_perfecta: bool
    mensaje: str
