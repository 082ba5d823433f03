from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sistema_escolar.api.deps import get_current_user, require_admin
from sistema_escolar.config.database import get_db
from sistema_escolar.core import examenes
from sistema_escolar.core.estudiantes import obtener_estudiante
from sistema_escolar.core.exceptions import PermissionDeniedError, ValidationError
from sistema_escolar.core.paginacion import (
    ParametrosPaginacion,
    paginador,
    parametros_paginacion,
    respuesta_paginada,
)
from sistema_escolar.crud.estudiante import estudiante as crud_estudiante
from sistema_escolar.models.enums import EstatusPeriodoExamen, RolUsuario
from sistema_escolar.models.periodo_examen import PeriodoExamen as PeriodoExamenModel
from sistema_escolar.schemas.comun import Pagina
from sistema_escolar.schemas.periodo_examen import (
    CambioEstatusRegistro,
    InscripcionExamen,
    InscripcionExamenCreate,
    PeriodoDisponible,
    PeriodoExamen,
    PeriodoExamenCreate,
    PeriodoExamenUpdate,
    ResultadoExamen,
    ResultadoProcesado,
)

router = APIRouter()

CAMPOS_ORDEN = {
    "nombre": PeriodoExamenModel.nombre,
    "fecha_inicio": PeriodoExamenModel.fecha_inicio,
    "fecha_inscripcion_inicio": PeriodoExamenModel.fecha_inscripcion_inicio,
    "estatus": PeriodoExamenModel.estatus,
}


@router.get("/", response_model=Pagina[PeriodoExamen])
def get_periodos(
    estatus: Optional[EstatusPeriodoExamen] = Query(None),
    params: ParametrosPaginacion = Depends(parametros_paginacion),
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    query = db.query(PeriodoExamenModel).filter(PeriodoExamenModel.deleted_at.is_(None))
    if estatus:
        query = query.filter(PeriodoExamenModel.estatus == estatus)
    items, pagination = paginador.paginar(
        query, params, CAMPOS_ORDEN, PeriodoExamenModel.fecha_inicio.desc()
    )
    return respuesta_paginada(items, pagination)


@router.get("/disponibles", response_model=List[PeriodoDisponible])
def get_periodos_disponibles(
    todos: bool = Query(False, description="Incluir períodos no disponibles"),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """Períodos con el desglose de condiciones de disponibilidad"""
    resultado = []
    for periodo, disponibilidad in examenes.periodos_disponibles(db, solo_disponibles=not todos):
        datos = PeriodoExamen.model_validate(periodo).model_dump()
        resultado.append(
            {
                **datos,
                "esta_disponible": disponibilidad.esta_disponible,
                "condiciones": disponibilidad.condiciones,
            }
        )
    return resultado


@router.get("/{periodo_id}", response_model=PeriodoExamen)
def get_periodo(
    periodo_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return examenes.obtener_periodo(db, periodo_id)


@router.post("/", response_model=PeriodoExamen, status_code=201)
def create_periodo(
    periodo_data: PeriodoExamenCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return examenes.crear_periodo(db, periodo_data)


@router.put("/{periodo_id}", response_model=PeriodoExamen)
def update_periodo(
    periodo_id: str,
    periodo_data: PeriodoExamenUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return examenes.actualizar_periodo(db, periodo_id, periodo_data)


@router.post("/{periodo_id}/abrir", response_model=PeriodoExamen)
def abrir_periodo(
    periodo_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return examenes.abrir_periodo(db, periodo_id)


@router.post("/{periodo_id}/cerrar", response_model=PeriodoExamen)
def cerrar_periodo(
    periodo_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return examenes.cerrar_periodo(db, periodo_id)


@router.delete("/{periodo_id}")
def delete_periodo(
    periodo_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    periodo = examenes.eliminar_periodo(db, periodo_id)
    return {"message": f"Período {periodo.nombre} eliminado"}


@router.post("/{periodo_id}/inscribirse", response_model=InscripcionExamen, status_code=201)
def inscribirse(
    periodo_id: str,
    datos: InscripcionExamenCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """Registro al examen diagnóstico.

    Un estudiante se registra a sí mismo; el administrador indica el estudiante.
    """
    if current_user.rol == RolUsuario.STUDENT:
        if datos.estudiante_id is not None:
            raise PermissionDeniedError("Solo puedes registrarte a ti mismo")
        estudiante = crud_estudiante.get_by_usuario(db, usuario_id=current_user.id)
        if estudiante is None:
            raise PermissionDeniedError("No hay un estudiante asociado a este usuario")
        estudiante_id = estudiante.id
    elif current_user.rol == RolUsuario.ADMIN:
        if datos.estudiante_id is None:
            raise ValidationError("Indica el estudiante a registrar")
        estudiante_id = obtener_estudiante(db, datos.estudiante_id).id
    else:
        raise PermissionDeniedError("No tienes permiso para realizar esta acción")

    return examenes.inscribirse(db, periodo_id, estudiante_id, datos.observaciones)


@router.post("/registros/{registro_id}/resultado", response_model=ResultadoProcesado)
def procesar_resultado(
    registro_id: str,
    resultado: ResultadoExamen,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    """Registrar el resultado, asignar nivel y acreditar los niveles inferiores"""
    return examenes.procesar_resultado(db, registro_id, resultado)


@router.patch("/registros/{registro_id}/estatus", response_model=InscripcionExamen)
def update_estatus_registro(
    registro_id: str,
    cambio: CambioEstatusRegistro,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return examenes.cambiar_estatus_registro(db, registro_id, cambio.estatus, cambio.motivo)
