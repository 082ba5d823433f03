from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from sistema_escolar.models.enums import EstatusInscripcion

from .comun import EntradaBase, no_nulos

Calificacion = Optional[float]


class InscripcionCreate(EntradaBase):
    estudiante_id: str
    grupo_id: str
    observaciones: Optional[str] = None


class CambioEstatus(EntradaBase):
    estatus: EstatusInscripcion
    calificacion: Optional[float] = Field(None, ge=0, le=100)
    motivo: Optional[str] = None


class InscripcionCalificaciones(EntradaBase):
    calificacion_parcial1: Calificacion = Field(None, ge=0, le=100)
    calificacion_parcial2: Calificacion = Field(None, ge=0, le=100)
    calificacion_parcial3: Calificacion = Field(None, ge=0, le=100)
    calificacion_final: Calificacion = Field(None, ge=0, le=100)
    asistencias: Optional[int] = Field(None, ge=0)
    faltas: Optional[int] = Field(None, ge=0)
    retardos: Optional[int] = Field(None, ge=0)
    observaciones: Optional[str] = None

    requeridos = no_nulos("asistencias", "faltas", "retardos")


class HistorialInscripcion(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    accion: str
    campo: Optional[str] = None
    valor_anterior: Optional[str] = None
    valor_nuevo: Optional[str] = None
    descripcion: Optional[str] = None
    realizado_por: Optional[str] = None
    created_at: datetime


class Inscripcion(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    codigo: str
    estudiante_id: str
    grupo_id: str
    estatus: EstatusInscripcion
    fecha_inscripcion: datetime
    calificacion_parcial1: Calificacion = None
    calificacion_parcial2: Calificacion = None
    calificacion_parcial3: Calificacion = None
    calificacion_final: Calificacion = None
    aprobado: bool
    fecha_aprobacion: Optional[datetime] = None
    asistencias: int
    faltas: int
    retardos: int
    porcentaje_asistencia: Optional[float] = None
    fecha_baja: Optional[datetime] = None
    observaciones: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class InscripcionWithHistorial(Inscripcion):
    historial: List[HistorialInscripcion] = []
