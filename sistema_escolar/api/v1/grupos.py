from typing import Optional

from fastapi import APIRouter, Depends, Query
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
from sistema_escolar.models.grupo import Grupo as GrupoModel
from sistema_escolar.schemas.comun import Pagina
from sistema_escolar.schemas.grupo import Grupo, GrupoCreate, GrupoUpdate

router = APIRouter()

CAMPOS_ORDEN = {
    "nombre": GrupoModel.nombre,
    "periodo": GrupoModel.periodo,
    "cupo_actual": GrupoModel.cupo_actual,
    "cupo_maximo": GrupoModel.cupo_maximo,
    "created_at": GrupoModel.created_at,
}


@router.get("/", response_model=Pagina[Grupo])
def get_grupos(
    periodo: Optional[str] = Query(None, pattern=r"^\d{4}-[12]$"),
    materia_id: Optional[str] = Query(None),
    docente_id: Optional[str] = Query(None),
    nivel_ingles: Optional[int] = Query(None, ge=1, le=6),
    params: ParametrosPaginacion = Depends(parametros_paginacion),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """Listar grupos con su cupo disponible"""
    query = db.query(GrupoModel).filter(GrupoModel.deleted_at.is_(None))
    if periodo:
        query = query.filter(GrupoModel.periodo == periodo)
    if materia_id:
        query = query.filter(GrupoModel.materia_id == materia_id)
    if docente_id:
        query = query.filter(GrupoModel.docente_id == docente_id)
    if nivel_ingles:
        query = query.filter(GrupoModel.nivel_ingles == nivel_ingles)

    items, pagination = paginador.paginar(query, params, CAMPOS_ORDEN, GrupoModel.nombre.asc())
    return respuesta_paginada(items, pagination)


@router.get("/{grupo_id}", response_model=Grupo)
def get_grupo(
    grupo_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return catalogos.obtener_grupo(db, grupo_id)


@router.post("/", response_model=Grupo, status_code=201)
def create_grupo(
    grupo_data: GrupoCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return catalogos.crear_grupo(db, grupo_data)


@router.put("/{grupo_id}", response_model=Grupo)
def update_grupo(
    grupo_id: str,
    grupo_data: GrupoUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    """Actualizar grupo; el cupo máximo no puede quedar debajo de los inscritos"""
    return catalogos.actualizar_grupo(db, grupo_id, grupo_data)


@router.delete("/{grupo_id}")
def delete_grupo(
    grupo_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    grupo = catalogos.eliminar_grupo(db, grupo_id)
    return {"message": f"Grupo {grupo.nombre} eliminado"}
