from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from sistema_escolar.api.deps import get_current_estudiante, get_current_user, require_admin
from sistema_escolar.config.database import get_db
from sistema_escolar.core import estudiantes as servicio
from sistema_escolar.core.exceptions import PermissionDeniedError
from sistema_escolar.core.paginacion import (
    ParametrosPaginacion,
    paginador,
    parametros_paginacion,
    respuesta_paginada,
)
from sistema_escolar.models.enums import EstatusEstudiante, RolUsuario
from sistema_escolar.models.estudiante import Estudiante as EstudianteModel
from sistema_escolar.schemas.comun import Pagina
from sistema_escolar.schemas.estudiante import (
    EstadoIngles,
    Estudiante,
    EstudianteCreate,
    EstudianteUpdate,
)

router = APIRouter()

CAMPOS_ORDEN = {
    "matricula": EstudianteModel.matricula,
    "nombre": EstudianteModel.nombre,
    "apellido_paterno": EstudianteModel.apellido_paterno,
    "semestre": EstudianteModel.semestre,
    "created_at": EstudianteModel.created_at,
}


@router.get("/", response_model=Pagina[Estudiante])
def get_estudiantes(
    search: Optional[str] = Query(None, description="Buscar por nombre, matrícula o CURP"),
    carrera_id: Optional[str] = Query(None),
    estatus: Optional[EstatusEstudiante] = Query(None),
    semestre: Optional[int] = Query(None, ge=1, le=12),
    params: ParametrosPaginacion = Depends(parametros_paginacion),
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    """Listar estudiantes con filtros y paginación"""
    query = db.query(EstudianteModel).filter(EstudianteModel.deleted_at.is_(None))

    if search:
        patron = f"%{search}%"
        query = query.filter(
            or_(
                EstudianteModel.nombre.ilike(patron),
                EstudianteModel.apellido_paterno.ilike(patron),
                EstudianteModel.apellido_materno.ilike(patron),
                EstudianteModel.matricula.ilike(patron),
                EstudianteModel.curp.ilike(patron),
            )
        )
    if carrera_id:
        query = query.filter(EstudianteModel.carrera_id == carrera_id)
    if estatus:
        query = query.filter(EstudianteModel.estatus == estatus)
    if semestre:
        query = query.filter(EstudianteModel.semestre == semestre)

    items, pagination = paginador.paginar(
        query, params, CAMPOS_ORDEN, EstudianteModel.matricula.asc()
    )
    return respuesta_paginada(items, pagination)


@router.get("/me", response_model=Estudiante)
def get_estudiante_actual(estudiante=Depends(get_current_estudiante)):
    """Mi información completa"""
    return estudiante


@router.get("/{estudiante_id}", response_model=Estudiante)
def get_estudiante(
    estudiante_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    estudiante = servicio.obtener_estudiante(db, estudiante_id)
    if current_user.rol == RolUsuario.STUDENT and estudiante.usuario_id != current_user.id:
        raise PermissionDeniedError("Solo puedes consultar tu propia información")
    return estudiante


@router.get("/{estudiante_id}/ingles", response_model=EstadoIngles)
def get_estado_ingles(
    estudiante_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """Estado del requisito de inglés: niveles completados, pendientes y promedio"""
    estudiante = servicio.obtener_estudiante(db, estudiante_id)
    if current_user.rol == RolUsuario.STUDENT and estudiante.usuario_id != current_user.id:
        raise PermissionDeniedError("Solo puedes consultar tu propia información")
    return servicio.estado_ingles(db, estudiante_id)


@router.post("/", response_model=Estudiante, status_code=201)
def create_estudiante(
    estudiante_data: EstudianteCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    """Crear usuario y estudiante; la matrícula se genera automáticamente"""
    return servicio.crear_estudiante(db, estudiante_data)


@router.put("/{estudiante_id}", response_model=Estudiante)
def update_estudiante(
    estudiante_id: str,
    estudiante_data: EstudianteUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return servicio.actualizar_estudiante(db, estudiante_id, estudiante_data)


@router.delete("/{estudiante_id}")
def delete_estudiante(
    estudiante_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    estudiante = servicio.eliminar_estudiante(db, estudiante_id)
    return {"message": f"Estudiante {estudiante.matricula} eliminado"}
