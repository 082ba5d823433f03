from enum import Enum
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session, contains_eager

from sistema_escolar.api.deps import require_admin
from sistema_escolar.config.database import get_db
from sistema_escolar.models.docente import Docente
from sistema_escolar.models.estudiante import Estudiante
from sistema_escolar.models.grupo import Grupo
from sistema_escolar.models.materia import Materia
from sistema_escolar.schemas.busqueda import RespuestaBusqueda, ResultadoBusqueda

router = APIRouter()


class TipoBusqueda(str, Enum):
    ESTUDIANTES = "estudiantes"
    DOCENTES = "docentes"
    MATERIAS = "materias"
    GRUPOS = "grupos"


def _buscar_estudiantes(db: Session, patron: str, limite: int):
    encontrados = (
        db.query(Estudiante)
        .filter(
            Estudiante.deleted_at.is_(None),
            or_(
                Estudiante.matricula.ilike(patron),
                Estudiante.nombre.ilike(patron),
                Estudiante.apellido_paterno.ilike(patron),
                Estudiante.apellido_materno.ilike(patron),
                Estudiante.curp.ilike(patron),
            ),
        )
        .order_by(Estudiante.matricula.asc())
        .limit(limite)
        .all()
    )
    return [
        ResultadoBusqueda(
            id=e.id,
            titulo=e.nombre_completo,
            subtitulo=f"Matrícula: {e.matricula} | Semestre {e.semestre}",
            datos={"matricula": e.matricula, "semestre": e.semestre},
        )
        for e in encontrados
    ]


def _buscar_docentes(db: Session, patron: str, limite: int):
    encontrados = (
        db.query(Docente)
        .filter(
            Docente.deleted_at.is_(None),
            or_(
                Docente.nombre.ilike(patron),
                Docente.apellido_paterno.ilike(patron),
                Docente.apellido_materno.ilike(patron),
                Docente.departamento.ilike(patron),
            ),
        )
        .order_by(Docente.apellido_paterno.asc(), Docente.nombre.asc())
        .limit(limite)
        .all()
    )
    return [
        ResultadoBusqueda(
            id=d.id,
            titulo=d.nombre_completo,
            subtitulo=f"Departamento: {d.departamento or 'sin asignar'}",
            datos={"departamento": d.departamento},
        )
        for d in encontrados
    ]


def _buscar_materias(db: Session, patron: str, limite: int):
    encontradas = (
        db.query(Materia)
        .filter(
            Materia.deleted_at.is_(None),
            or_(Materia.clave.ilike(patron), Materia.nombre.ilike(patron)),
        )
        .order_by(Materia.clave.asc())
        .limit(limite)
        .all()
    )
    return [
        ResultadoBusqueda(
            id=m.id,
            titulo=f"{m.clave} - {m.nombre}",
            subtitulo=f"{m.creditos} créditos",
            datos={"clave": m.clave, "creditos": m.creditos},
        )
        for m in encontradas
    ]


def _buscar_grupos(db: Session, patron: str, limite: int):
    encontrados = (
        db.query(Grupo)
        .join(Grupo.materia)
        .options(contains_eager(Grupo.materia))
        .filter(
            Grupo.deleted_at.is_(None),
            or_(
                Grupo.nombre.ilike(patron),
                Grupo.periodo.ilike(patron),
                Materia.nombre.ilike(patron),
                Materia.clave.ilike(patron),
            ),
        )
        .order_by(Grupo.periodo.desc(), Grupo.nombre.asc())
        .limit(limite)
        .all()
    )
    return [
        ResultadoBusqueda(
            id=g.id,
            titulo=f"{g.nombre} - {g.materia.nombre}",
            subtitulo=f"Período {g.periodo} | Cupo {g.cupo_actual}/{g.cupo_maximo}",
            datos={
                "periodo": g.periodo,
                "materia_clave": g.materia.clave,
                "cupos_disponibles": g.cupos_disponibles,
            },
        )
        for g in encontrados
    ]


BUSCADORES = {
    TipoBusqueda.ESTUDIANTES: _buscar_estudiantes,
    TipoBusqueda.DOCENTES: _buscar_docentes,
    TipoBusqueda.MATERIAS: _buscar_materias,
    TipoBusqueda.GRUPOS: _buscar_grupos,
}


@router.get("/", response_model=RespuestaBusqueda)
def busqueda_global(
    q: str = Query(..., min_length=2, max_length=100),
    limite: int = Query(10, ge=1, le=50, description="Máximo de resultados por tipo"),
    tipos: Optional[List[TipoBusqueda]] = Query(None),
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    """Buscar estudiantes, docentes, materias y grupos en una sola consulta"""
    termino = q.strip()
    respuesta = RespuestaBusqueda(query=termino, total=0)
    if len(termino) < 2:
        return respuesta

    patron = f"%{termino}%"
    for tipo in tipos or list(TipoBusqueda):
        resultados = BUSCADORES[tipo](db, patron, limite)
        setattr(respuesta, tipo.value, resultados)
        respuesta.total += len(resultados)
    return respuesta
