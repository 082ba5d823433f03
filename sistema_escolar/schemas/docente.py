from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .comun import EntradaBase, no_nulos


class DocenteBase(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=100)
    apellido_paterno: str = Field(..., min_length=1, max_length=100)
    apellido_materno: Optional[str] = Field(None, max_length=100)
    departamento: Optional[str] = Field(None, max_length=100)


class DocenteCreate(EntradaBase, DocenteBase):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    email: Optional[str] = Field(None, max_length=120)


class DocenteUpdate(EntradaBase):
    nombre: Optional[str] = Field(None, min_length=1, max_length=100)
    apellido_paterno: Optional[str] = Field(None, min_length=1, max_length=100)
    apellido_materno: Optional[str] = Field(None, max_length=100)
    departamento: Optional[str] = Field(None, max_length=100)

    requeridos = no_nulos("nombre", "apellido_paterno")


class DocenteInDB(DocenteBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    usuario_id: str
    created_at: datetime
    updated_at: datetime


class Docente(DocenteInDB):
    nombre_completo: str
