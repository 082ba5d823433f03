from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator

T = TypeVar("T")


def a_utc_naive(valor: datetime) -> datetime:
    """Fechas con zona horaria se guardan como UTC sin zona, igual que ``ahora()``"""
    if valor.tzinfo is None:
        return valor
    return valor.astimezone(timezone.utc).replace(tzinfo=None)


def no_nulos(*campos: str):
    """Validador para updates: el campo puede omitirse pero no enviarse como null"""

    def rechazar_nulo(cls, valor, info):
        if valor is None:
            raise ValueError(f"{info.field_name} no puede ser nulo")
        return valor

    return field_validator(*campos)(rechazar_nulo)


class EntradaBase(BaseModel):
    """Base de los cuerpos de petición: rechaza campos desconocidos"""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @field_validator("*")
    @classmethod
    def fechas_en_utc(cls, valor):
        if isinstance(valor, datetime):
            return a_utc_naive(valor)
        return valor


class MetaPaginacion(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class Pagina(BaseModel, Generic[T]):
    items: List[T]
    pagination: MetaPaginacion


class Mensaje(BaseModel):
    message: str
    detalles: Dict[str, Any] = {}
