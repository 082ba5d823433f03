from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from sistema_escolar.api.deps import get_current_user, require_admin
from sistema_escolar.config.database import get_db
from sistema_escolar.core import catalogos
from sistema_escolar.core.paginacion import (
    ParametrosPaginacion,
    paginador,
    parametros_paginacion,
    respuesta_paginada,
)
from sistema_escolar.models.carrera import Carrera as CarreraModel
from sistema_escolar.models.estudiante import Estudiante
from sistema_escolar.schemas.carrera import Carrera, CarreraConConteo, CarreraCreate
from sistema_escolar.schemas.comun import Pagina

router = APIRouter()

CAMPOS_ORDEN = {"clave": CarreraModel.clave, "nombre": CarreraModel.nombre}


@router.get("/", response_model=Pagina[CarreraConConteo])
def get_carreras(
    search: Optional[str] = Query(None, description="Buscar por clave o nombre"),
    params: ParametrosPaginacion = Depends(parametros_paginacion),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """Lista de carreras con la cantidad de estudiantes de cada una"""
    query = db.query(CarreraModel).filter(CarreraModel.deleted_at.is_(None))
    if search:
        patron = f"%{search}%"
        query = query.filter(
            or_(CarreraModel.clave.ilike(patron), CarreraModel.nombre.ilike(patron))
        )

    carreras, pagination = paginador.paginar(query, params, CAMPOS_ORDEN, CarreraModel.clave.asc())

    conteos = dict(
        db.query(Estudiante.carrera_id, func.count(Estudiante.id))
        .filter(
            Estudiante.carrera_id.in_([c.id for c in carreras]),
            Estudiante.deleted_at.is_(None),
        )
        .group_by(Estudiante.carrera_id)
        .all()
    )
    items = [
        {**Carrera.model_validate(c).model_dump(), "estudiantes_count": conteos.get(c.id, 0)}
        for c in carreras
    ]
    return respuesta_paginada(items, pagination)


@router.post("/", response_model=Carrera, status_code=201)
def create_carrera(
    carrera_data: CarreraCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return catalogos.crear_carrera(db, carrera_data)
