from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
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
from sistema_escolar.models.materia import Materia as MateriaModel
from sistema_escolar.schemas.comun import Pagina
from sistema_escolar.schemas.materia import Materia, MateriaCreate, MateriaUpdate

router = APIRouter()

CAMPOS_ORDEN = {
    "clave": MateriaModel.clave,
    "nombre": MateriaModel.nombre,
    "creditos": MateriaModel.creditos,
}


@router.get("/", response_model=Pagina[Materia])
def get_materias(
    search: Optional[str] = Query(None, description="Buscar por clave o nombre"),
    tipo: Optional[str] = Query(None),
    params: ParametrosPaginacion = Depends(parametros_paginacion),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = db.query(MateriaModel).filter(MateriaModel.deleted_at.is_(None))
    if search:
        patron = f"%{search}%"
        query = query.filter(
            or_(MateriaModel.clave.ilike(patron), MateriaModel.nombre.ilike(patron))
        )
    if tipo:
        query = query.filter(MateriaModel.tipo == tipo)

    items, pagination = paginador.paginar(query, params, CAMPOS_ORDEN, MateriaModel.clave.asc())
    return respuesta_paginada(items, pagination)


@router.get("/{materia_id}", response_model=Materia)
def get_materia(
    materia_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return catalogos.obtener_materia(db, materia_id)


@router.post("/", response_model=Materia, status_code=201)
def create_materia(
    materia_data: MateriaCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return catalogos.crear_materia(db, materia_data)


@router.put("/{materia_id}", response_model=Materia)
def update_materia(
    materia_id: str,
    materia_data: MateriaUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return catalogos.actualizar_materia(db, materia_id, materia_data)


@router.delete("/{materia_id}")
def delete_materia(
    materia_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    """Eliminar materia; falla si todavía tiene grupos activos"""
    materia = catalogos.eliminar_materia(db, materia_id)
    return {"message": f"Materia {materia.clave} eliminada"}
