from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .comun import EntradaBase, no_nulos


class MateriaBase(BaseModel):
    clave: str = Field(..., min_length=1, max_length=20)
    nombre: str = Field(..., min_length=1, max_length=200)
    creditos: int = Field(..., ge=0, le=30)
    tipo: str = "OBLIGATORIA"


class MateriaCreate(EntradaBase, MateriaBase):
    prerrequisitos: List[str] = []


class MateriaUpdate(EntradaBase):
    nombre: Optional[str] = Field(None, min_length=1, max_length=200)
    creditos: Optional[int] = Field(None, ge=0, le=30)
    tipo: Optional[str] = None

    requeridos = no_nulos("nombre", "creditos", "tipo")


class Materia(MateriaBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime
    updated_at: datetime
