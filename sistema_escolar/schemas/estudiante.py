from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from sistema_escolar.models.enums import EstatusEstudiante

from .comun import EntradaBase, no_nulos


class EstudianteBase(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=100)
    apellido_paterno: str = Field(..., min_length=1, max_length=100)
    apellido_materno: Optional[str] = Field(None, max_length=100)
    curp: Optional[str] = Field(None, max_length=18)
    carrera_id: Optional[str] = None
    semestre: int = Field(1, ge=1, le=12)


class EstudianteCreate(EntradaBase, EstudianteBase):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    email: Optional[str] = Field(None, max_length=120)
    nivel_ingles_actual: Optional[int] = Field(None, ge=1, le=6)


class EstudianteUpdate(EntradaBase):
    nombre: Optional[str] = Field(None, min_length=1, max_length=100)
    apellido_paterno: Optional[str] = Field(None, min_length=1, max_length=100)
    apellido_materno: Optional[str] = Field(None, max_length=100)
    curp: Optional[str] = Field(None, max_length=18)
    carrera_id: Optional[str] = None
    semestre: Optional[int] = Field(None, ge=1, le=12)
    estatus: Optional[EstatusEstudiante] = None
    creditos_cursados: Optional[int] = Field(None, ge=0)
    creditos_aprobados: Optional[int] = Field(None, ge=0)

    requeridos = no_nulos(
        "nombre",
        "apellido_paterno",
        "semestre",
        "estatus",
        "creditos_cursados",
        "creditos_aprobados",
    )


class EstudianteInDB(EstudianteBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    usuario_id: str
    matricula: str
    estatus: EstatusEstudiante
    nivel_ingles_actual: Optional[int] = None
    nivel_ingles_certificado: Optional[int] = None
    promedio_ingles: Optional[float] = None
    cumple_requisito_ingles: bool = False
    fecha_examen_diagnostico: Optional[datetime] = None
    creditos_cursados: int = 0
    creditos_aprobados: int = 0
    promedio_general: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class Estudiante(EstudianteInDB):
    nombre_completo: str


class EstadoIngles(BaseModel):
    estudiante_id: str
    nivel_ingles_actual: Optional[int] = None
    nivel_ingles_certificado: Optional[int] = None
    promedio_ingles: Optional[float] = None
    cumple_requisito: bool
    niveles_completados: List[int]
    niveles_pendientes: List[int]
    progreso: int
    razon_no_cumple: Optional[str] = None
