from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sistema_escolar.models.enums import EstatusInscripcion, TipoCurso

from .comun import EntradaBase


class CursoEspecialCreate(EntradaBase):
    tipo_curso: TipoCurso
    estudiante_id: Optional[str] = None
    grupo_id: Optional[str] = None
    nivel_ingles: Optional[int] = Field(None, ge=1, le=6)
    requiere_pago: bool = True
    monto_pago: Optional[float] = Field(None, ge=0)
    fecha_inicio: Optional[datetime] = None
    observaciones: Optional[str] = None

    @model_validator(mode="after")
    def validar_nivel(self):
        if self.tipo_curso == TipoCurso.INGLES and self.nivel_ingles is None:
            raise ValueError("Los cursos de inglés requieren nivel_ingles")
        return self


class RechazoPago(EntradaBase):
    motivo: str = Field(..., min_length=1)


class CompletarCurso(EntradaBase):
    calificacion: float = Field(..., ge=0, le=100)
    observaciones: Optional[str] = None


class CursoEspecial(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    codigo: str
    estudiante_id: str
    grupo_id: Optional[str] = None
    tipo_curso: TipoCurso
    nivel_ingles: Optional[int] = None
    estatus: EstatusInscripcion
    fecha_inscripcion: datetime
    fecha_inicio: Optional[datetime] = None
    requiere_pago: bool
    pago_aprobado: Optional[bool] = None
    fecha_pago_aprobado: Optional[datetime] = None
    monto_pago: Optional[float] = None
    calificacion: Optional[float] = None
    aprobado: bool
    fecha_aprobacion: Optional[datetime] = None
    completado_por_diagnostico: bool
    observaciones: Optional[str] = None
    created_at: datetime


class AprobacionPago(EntradaBase):
    monto_pago: float = Field(..., gt=0)
    fecha_inicio: Optional[datetime] = None
    observaciones: Optional[str] = None


class CambioEstatusCurso(EntradaBase):
    estatus: EstatusInscripcion
    motivo: Optional[str] = None
