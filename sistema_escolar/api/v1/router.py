from fastapi import APIRouter

from sistema_escolar.api import auth
from sistema_escolar.api.v1 import (
    busqueda,
    carreras,
    cursos_especiales,
    docentes,
    estudiantes,
    grupos,
    inscripciones,
    materias,
    periodos_examen,
    reportes,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(
    estudiantes.router, prefix="/estudiantes", tags=["estudiantes"]
)
api_router.include_router(docentes.router, prefix="/docentes", tags=["docentes"])
api_router.include_router(carreras.router, prefix="/carreras", tags=["carreras"])
api_router.include_router(materias.router, prefix="/materias", tags=["materias"])
api_router.include_router(grupos.router, prefix="/grupos", tags=["grupos"])
api_router.include_router(
    inscripciones.router, prefix="/inscripciones", tags=["inscripciones"]
)
api_router.include_router(
    periodos_examen.router, prefix="/periodos-examen", tags=["periodos-examen"]
)
api_router.include_router(
    cursos_especiales.router, prefix="/cursos-especiales", tags=["cursos-especiales"]
)
api_router.include_router(reportes.router, prefix="/reportes", tags=["reportes"])
api_router.include_router(busqueda.router, prefix="/busqueda", tags=["busqueda"])
