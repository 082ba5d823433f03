from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from sistema_escolar.api.deps import get_current_user, require_admin
from sistema_escolar.config.database import get_db
from sistema_escolar.core import estudiantes as servicio
from sistema_escolar.core.paginacion import (
    ParametrosPaginacion,
    paginador,
    parametros_paginacion,
    respuesta_paginada,
)
from sistema_escolar.models.docente import Docente as DocenteModel
from sistema_escolar.schemas.comun import Pagina
from sistema_escolar.schemas.docente import Docente, DocenteCreate, DocenteUpdate

router = APIRouter()

CAMPOS_ORDEN = {
    "nombre": DocenteModel.nombre,
    "apellido_paterno": DocenteModel.apellido_paterno,
    "departamento": DocenteModel.departamento,
    "created_at": DocenteModel.created_at,
}


@router.get("/", response_model=Pagina[Docente])
def get_docentes(
    search: Optional[str] = Query(None),
    departamento: Optional[str] = Query(None),
    params: ParametrosPaginacion = Depends(parametros_paginacion),
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    query = db.query(DocenteModel).filter(DocenteModel.deleted_at.is_(None))
    if search:
        patron = f"%{search}%"
        query = query.filter(
            or_(
                DocenteModel.nombre.ilike(patron),
                DocenteModel.apellido_paterno.ilike(patron),
                DocenteModel.apellido_materno.ilike(patron),
            )
        )
    if departamento:
        query = query.filter(DocenteModel.departamento == departamento)

    items, pagination = paginador.paginar(
        query, params, CAMPOS_ORDEN, DocenteModel.apellido_paterno.asc()
    )
    return respuesta_paginada(items, pagination)


@router.get("/{docente_id}", response_model=Docente)
def get_docente(
    docente_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return servicio.obtener_docente(db, docente_id)


@router.post("/", response_model=Docente, status_code=201)
def create_docente(
    docente_data: DocenteCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    """Crear usuario y docente en una sola transacción"""
    return servicio.crear_docente(db, docente_data)


@router.put("/{docente_id}", response_model=Docente)
def update_docente(
    docente_id: str,
    docente_data: DocenteUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return servicio.actualizar_docente(db, docente_id, docente_data)


@router.delete("/{docente_id}")
def delete_docente(
    docente_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    docente = servicio.eliminar_docente(db, docente_id)
    return {"message": f"Docente {docente.nombre_completo} eliminado"}
