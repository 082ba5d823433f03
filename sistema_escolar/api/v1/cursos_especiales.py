from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sistema_escolar.api.deps import get_current_estudiante, get_current_user, require_admin
from sistema_escolar.config.database import get_db
from sistema_escolar.core import cursos_especiales as servicio
from sistema_escolar.core.exceptions import PermissionDeniedError, ValidationError
from sistema_escolar.core.paginacion import (
    ParametrosPaginacion,
    paginador,
    parametros_paginacion,
    respuesta_paginada,
)
from sistema_escolar.models.curso_especial import CursoEspecial as CursoModel
from sistema_escolar.models.enums import EstatusInscripcion, RolUsuario, TipoCurso
from sistema_escolar.models.estudiante import Estudiante
from sistema_escolar.schemas.comun import Pagina
from sistema_escolar.schemas.curso_especial import (
    AprobacionPago,
    CambioEstatusCurso,
    CompletarCurso,
    CursoEspecial,
    CursoEspecialCreate,
    RechazoPago,
)

router = APIRouter()

CAMPOS_ORDEN = {
    "codigo": CursoModel.codigo,
    "fecha_inscripcion": CursoModel.fecha_inscripcion,
    "estatus": CursoModel.estatus,
    "nivel_ingles": CursoModel.nivel_ingles,
}


@router.get("/", response_model=Pagina[CursoEspecial])
def get_cursos(
    tipo_curso: Optional[TipoCurso] = Query(None),
    estatus: Optional[EstatusInscripcion] = Query(None),
    estudiante_id: Optional[str] = Query(None),
    params: ParametrosPaginacion = Depends(parametros_paginacion),
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    """Solicitudes de cursos; los niveles acreditados por diagnóstico no se listan"""
    query = db.query(CursoModel).filter(
        CursoModel.deleted_at.is_(None),
        CursoModel.completado_por_diagnostico.is_(False),
    )
    if tipo_curso:
        query = query.filter(CursoModel.tipo_curso == tipo_curso)
    if estatus:
        query = query.filter(CursoModel.estatus == estatus)
    if estudiante_id:
        query = query.filter(CursoModel.estudiante_id == estudiante_id)

    items, pagination = paginador.paginar(
        query, params, CAMPOS_ORDEN, CursoModel.fecha_inscripcion.desc()
    )
    return respuesta_paginada(items, pagination)


@router.get("/me", response_model=List[CursoEspecial])
def get_mis_cursos(
    db: Session = Depends(get_db),
    estudiante=Depends(get_current_estudiante),
):
    return (
        db.query(CursoModel)
        .filter(CursoModel.estudiante_id == estudiante.id, CursoModel.deleted_at.is_(None))
        .order_by(CursoModel.fecha_inscripcion.desc())
        .all()
    )


@router.get("/{curso_id}", response_model=CursoEspecial)
def get_curso(
    curso_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    curso = servicio.obtener_curso(db, curso_id)
    if current_user.rol == RolUsuario.STUDENT and curso.estudiante.usuario_id != current_user.id:
        raise PermissionDeniedError("Solo puedes consultar tus propios cursos")
    return curso


@router.post("/", response_model=CursoEspecial, status_code=201)
def solicitar_curso(
    curso_data: CursoEspecialCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """Solicitar un curso especial; en inglés aplica las reglas de nivel"""
    if current_user.rol == RolUsuario.STUDENT:
        if curso_data.estudiante_id is not None:
            raise PermissionDeniedError("Solo puedes solicitar cursos para ti")
        estudiante = (
            db.query(Estudiante).filter(Estudiante.usuario_id == current_user.id).first()
        )
        if estudiante is None:
            raise PermissionDeniedError("No hay un estudiante asociado a este usuario")
        estudiante_id = estudiante.id
    elif current_user.rol == RolUsuario.ADMIN:
        if curso_data.estudiante_id is None:
            raise ValidationError("Indica el estudiante del curso")
        estudiante_id = curso_data.estudiante_id
    else:
        raise PermissionDeniedError("No tienes permiso para realizar esta acción")

    return servicio.solicitar_curso(db, estudiante_id, curso_data)


@router.post("/{curso_id}/aprobar-pago", response_model=CursoEspecial)
def aprobar_pago(
    curso_id: str,
    datos: AprobacionPago,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    """Registrar el comprobante y pasar el curso a INSCRITO"""
    return servicio.aprobar_pago(db, curso_id, datos)


@router.post("/{curso_id}/rechazar-pago", response_model=CursoEspecial)
def rechazar_pago(
    curso_id: str,
    datos: RechazoPago,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return servicio.rechazar_pago(db, curso_id, datos.motivo)


@router.post("/{curso_id}/completar", response_model=CursoEspecial)
def completar_curso(
    curso_id: str,
    datos: CompletarCurso,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return servicio.completar_curso(db, curso_id, datos.calificacion, datos.observaciones)


@router.patch("/{curso_id}/estatus", response_model=CursoEspecial)
def update_estatus(
    curso_id: str,
    cambio: CambioEstatusCurso,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return servicio.cambiar_estatus_curso(db, curso_id, cambio.estatus, cambio.motivo)


@router.delete("/{curso_id}")
def delete_curso(
    curso_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    curso = servicio.eliminar_curso(db, curso_id)
    return {"message": f"Curso {curso.codigo} eliminado"}
