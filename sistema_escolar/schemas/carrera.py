from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .comun import EntradaBase


class CarreraBase(BaseModel):
    clave: str = Field(..., min_length=1, max_length=20)
    nombre: str = Field(..., min_length=1, max_length=150)


class CarreraCreate(EntradaBase, CarreraBase):
    pass


class Carrera(CarreraBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime
    updated_at: datetime


class CarreraConConteo(Carrera):
    estudiantes_count: int = 0
