from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sistema_escolar.api.deps import get_current_estudiante, require_admin, require_roles
from sistema_escolar.config.database import get_db
from sistema_escolar.core import catalogos, inscripciones as servicio
from sistema_escolar.core.paginacion import (
    ParametrosPaginacion,
    paginador,
    parametros_paginacion,
    respuesta_paginada,
)
from sistema_escolar.crud.inscripcion import inscripcion as crud_inscripcion
from sistema_escolar.models.enums import EstatusInscripcion, RolUsuario
from sistema_escolar.models.inscripcion import Inscripcion as InscripcionModel
from sistema_escolar.schemas.comun import Pagina
from sistema_escolar.schemas.inscripcion import (
    CambioEstatus,
    Inscripcion,
    InscripcionCalificaciones,
    InscripcionCreate,
    InscripcionWithHistorial,
)

router = APIRouter()

admin_o_docente = require_roles(RolUsuario.ADMIN, RolUsuario.TEACHER)

CAMPOS_ORDEN = {
    "codigo": InscripcionModel.codigo,
    "fecha_inscripcion": InscripcionModel.fecha_inscripcion,
    "estatus": InscripcionModel.estatus,
    "calificacion_final": InscripcionModel.calificacion_final,
}


@router.get("/", response_model=Pagina[Inscripcion])
def get_inscripciones(
    estudiante_id: Optional[str] = Query(None),
    grupo_id: Optional[str] = Query(None),
    estatus: Optional[EstatusInscripcion] = Query(None),
    params: ParametrosPaginacion = Depends(parametros_paginacion),
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    query = db.query(InscripcionModel).filter(InscripcionModel.deleted_at.is_(None))
    if estudiante_id:
        query = query.filter(InscripcionModel.estudiante_id == estudiante_id)
    if grupo_id:
        query = query.filter(InscripcionModel.grupo_id == grupo_id)
    if estatus:
        query = query.filter(InscripcionModel.estatus == estatus)

    items, pagination = paginador.paginar(
        query, params, CAMPOS_ORDEN, InscripcionModel.fecha_inscripcion.desc()
    )
    return respuesta_paginada(items, pagination)


@router.get("/me", response_model=List[Inscripcion])
def get_mis_inscripciones(
    db: Session = Depends(get_db),
    estudiante=Depends(get_current_estudiante),
):
    """Inscripciones del estudiante autenticado"""
    return crud_inscripcion.get_by_estudiante(db, estudiante.id)


@router.get("/grupo/{grupo_id}", response_model=List[Inscripcion])
def get_inscripciones_grupo(
    grupo_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(admin_o_docente),
):
    """Lista del grupo; un docente solo ve los grupos que imparte"""
    grupo = catalogos.obtener_grupo(db, grupo_id)
    servicio.verificar_docente_del_grupo(current_user, grupo)
    return crud_inscripcion.get_by_grupo(db, grupo.id)


@router.get("/{inscripcion_id}", response_model=InscripcionWithHistorial)
def get_inscripcion(
    inscripcion_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return servicio.obtener_inscripcion(db, inscripcion_id)


@router.post("/", response_model=Inscripcion, status_code=201)
def create_inscripcion(
    inscripcion_data: InscripcionCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    """Inscribir: elegibilidad, reserva de cupo y registro en una sola transacción"""
    return servicio.crear_inscripcion(db, inscripcion_data, current_user)


@router.patch("/{inscripcion_id}/estatus", response_model=Inscripcion)
def update_estatus(
    inscripcion_id: str,
    cambio: CambioEstatus,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return servicio.cambiar_estatus(
        db,
        inscripcion_id,
        cambio.estatus,
        calificacion=cambio.calificacion,
        motivo=cambio.motivo,
        usuario=current_user,
    )


@router.put("/{inscripcion_id}/calificaciones", response_model=Inscripcion)
def update_calificaciones(
    inscripcion_id: str,
    calificaciones: InscripcionCalificaciones,
    db: Session = Depends(get_db),
    current_user=Depends(admin_o_docente),
):
    """Parciales, asistencia y calificación final; la final cierra la inscripción"""
    return servicio.actualizar_calificaciones(db, inscripcion_id, calificaciones, current_user)


@router.delete("/{inscripcion_id}")
def delete_inscripcion(
    inscripcion_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    inscripcion = servicio.eliminar_inscripcion(db, inscripcion_id, current_user)
    return {"message": f"Inscripción {inscripcion.codigo} eliminada"}
