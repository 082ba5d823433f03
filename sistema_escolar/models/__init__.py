from .base import BaseModel
from .usuario import Usuario
from .carrera import Carrera
from .estudiante import Estudiante
from .docente import Docente
from .materia import Materia, Prerrequisito
from .periodo import PeriodoAcademico
from .grupo import Grupo
from .inscripcion import Inscripcion, HistorialInscripcion
from .periodo_examen import PeriodoExamen, InscripcionExamen
from .curso_especial import CursoEspecial

__all__ = [
    "BaseModel",
    "Usuario",
    "Carrera",
    "Estudiante",
    "Docente",
    "Materia",
    "Prerrequisito",
    "PeriodoAcademico",
    "Grupo",
    "Inscripcion",
    "HistorialInscripcion",
    "PeriodoExamen",
    "InscripcionExamen",
    "CursoEspecial",
]
