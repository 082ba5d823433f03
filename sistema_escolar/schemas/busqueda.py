from typing import Any, Dict, List

from pydantic import BaseModel


class ResultadoBusqueda(BaseModel):
    id: str
    titulo: str
    subtitulo: str
    datos: Dict[str, Any] = {}


class RespuestaBusqueda(BaseModel):
    query: str
    total: int
    estudiantes: List[ResultadoBusqueda] = []
    docentes: List[ResultadoBusqueda] = []
    materias: List[ResultadoBusqueda] = []
    grupos: List[ResultadoBusqueda] = []
