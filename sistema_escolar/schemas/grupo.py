from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sistema_escolar.models.enums import Modalidad

from .comun import EntradaBase, no_nulos


class GrupoBase(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=50)
    periodo: str = Field(..., pattern=r"^\d{4}-[12]$")
    materia_id: str
    docente_id: Optional[str] = None
    cupo_minimo: int = Field(5, ge=0)
    cupo_maximo: int = Field(30, ge=1)
    modalidad: Modalidad = Modalidad.PRESENCIAL
    nivel_ingles: Optional[int] = Field(None, ge=1, le=6)
    fecha_inicio_inscripcion: Optional[datetime] = None
    fecha_fin_inscripcion: Optional[datetime] = None


class GrupoCreate(EntradaBase, GrupoBase):
    @model_validator(mode="after")
    def validar_cupos(self):
        if self.cupo_minimo > self.cupo_maximo:
            raise ValueError("cupo_minimo no puede ser mayor que cupo_maximo")
        return self


class GrupoUpdate(EntradaBase):
    nombre: Optional[str] = Field(None, min_length=1, max_length=50)
    docente_id: Optional[str] = None
    cupo_minimo: Optional[int] = Field(None, ge=0)
    cupo_maximo: Optional[int] = Field(None, ge=1)
    modalidad: Optional[Modalidad] = None
    fecha_inicio_inscripcion: Optional[datetime] = None
    fecha_fin_inscripcion: Optional[datetime] = None

    requeridos = no_nulos("nombre", "cupo_minimo", "cupo_maximo", "modalidad")


class GrupoInDB(GrupoBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    cupo_actual: int
    created_at: datetime
    updated_at: datetime


class Grupo(GrupoInDB):
    cupos_disponibles: int
