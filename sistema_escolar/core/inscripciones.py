"""Inscripciones a grupos: alta con elegibilidad y cupo, estatus y calificaciones.

Cada operación pública es una unidad de trabajo completa: si cualquier paso
falla, ni el cupo ni el registro ni el historial quedan escritos.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from sistema_escolar.config.settings import settings
from sistema_escolar.core import capacidad, elegibilidad, estados
from sistema_escolar.core.codigos import siguiente_codigo
from sistema_escolar.core.estudiantes import (
    avanzar_nivel_ingles,
    construir_snapshot,
    obtener_estudiante,
    recalcular_ingles,
)
from sistema_escolar.core.exceptions import (
    DuplicateEnrollmentError,
    EligibilityError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from sistema_escolar.core.transacciones import unidad_de_trabajo
from sistema_escolar.crud.grupo import grupo as crud_grupo
from sistema_escolar.crud.inscripcion import inscripcion as crud_inscripcion
from sistema_escolar.models.base import ahora
from sistema_escolar.models.enums import EstatusInscripcion, RolUsuario
from sistema_escolar.models.grupo import Grupo
from sistema_escolar.models.inscripcion import Inscripcion
from sistema_escolar.models.usuario import Usuario
from sistema_escolar.schemas.inscripcion import InscripcionCalificaciones, InscripcionCreate

logger = logging.getLogger(__name__)

E = EstatusInscripcion


def _id_usuario(usuario: Optional[Usuario]) -> Optional[str]:
    return usuario.id if usuario is not None else None


def obtener_inscripcion(db: Session, inscripcion_id: str) -> Inscripcion:
    inscripcion = crud_inscripcion.get_with_relations(db, inscripcion_id)
    if inscripcion is None:
        raise NotFoundError(f"Inscripción con ID {inscripcion_id} no encontrada")
    return inscripcion


def verificar_docente_del_grupo(usuario: Optional[Usuario], grupo: Grupo):
    """Un docente solo puede calificar los grupos que imparte"""
    if usuario is None or usuario.rol != RolUsuario.TEACHER:
        return
    if grupo.docente is None or grupo.docente.usuario_id != usuario.id:
        raise PermissionDeniedError("Solo puedes calificar tus propios grupos")


def evaluar(db: Session, estudiante, grupo: Grupo) -> elegibilidad.Decision:
    """Decisión completa para inscribir al estudiante en el grupo.

    Primero estudiante activo y grupo vigente; en grupos de inglés después las
    reglas de nivel; al final la inscripción repetida en el mismo grupo.
    """
    snapshot = construir_snapshot(db, estudiante)
    objetivo = elegibilidad.ObjetivoGrupo(
        grupo_id=grupo.id, nivel_ingles=grupo.nivel_ingles, eliminado=grupo.eliminado
    )

    general = elegibilidad.evaluar_inscripcion_grupo(snapshot, objetivo)
    if not general and general.motivo != elegibilidad.YA_INSCRITO_GRUPO:
        return general

    if grupo.nivel_ingles is not None:
        ingles = elegibilidad.evaluar_curso_ingles(
            snapshot, grupo.nivel_ingles, objetivo, settings.calificacion_aprobatoria
        )
        if not ingles:
            return ingles

    return general


def crear_inscripcion(
    db: Session, datos: InscripcionCreate, usuario: Optional[Usuario] = None
) -> Inscripcion:
    with unidad_de_trabajo(db, "crear_inscripcion"):
        estudiante = obtener_estudiante(db, datos.estudiante_id)
        grupo = crud_grupo.get(db, datos.grupo_id, incluir_eliminados=True)
        if grupo is None:
            raise NotFoundError(f"Grupo con ID {datos.grupo_id} no encontrado")

        decision = evaluar(db, estudiante, grupo)
        if not decision:
            raise EligibilityError(decision)

        previa = crud_inscripcion.get_by_estudiante_grupo(db, estudiante.id, grupo.id)
        if previa is not None:
            raise DuplicateEnrollmentError(
                "El estudiante ya tuvo una inscripción en este grupo",
                {"inscripcion_id": previa.id, "estatus": previa.estatus.value},
            )

        capacidad.reservar(db, Grupo, grupo.id)

        inscripcion = Inscripcion(
            codigo=siguiente_codigo(db, Inscripcion),
            estudiante_id=estudiante.id,
            grupo_id=grupo.id,
            estatus=E.INSCRITO,
            cupo_reservado=True,
            observaciones=datos.observaciones,
        )
        db.add(inscripcion)
        db.flush()
        crud_inscripcion.registrar_historial(
            db,
            inscripcion,
            "CREADA",
            campo="estatus",
            valor_nuevo=E.INSCRITO.value,
            realizado_por=_id_usuario(usuario),
        )

    logger.info(
        "Inscripción %s: estudiante %s en grupo %s",
        inscripcion.codigo,
        estudiante.matricula,
        grupo.nombre,
    )
    return inscripcion


def _aplicar_estatus(
    db: Session,
    inscripcion: Inscripcion,
    nuevo: EstatusInscripcion,
    usuario: Optional[Usuario] = None,
    descripcion: Optional[str] = None,
):
    """Escribir el nuevo estatus con sus efectos: cupo, fechas e historial"""
    anterior = inscripcion.estatus
    inscripcion.estatus = nuevo

    if estados.libera_cupo(nuevo) and inscripcion.cupo_reservado:
        capacidad.liberar(db, Grupo, inscripcion.grupo_id)
        inscripcion.cupo_reservado = False

    if nuevo == E.BAJA:
        inscripcion.fecha_baja = ahora()
    if nuevo == E.APROBADO:
        inscripcion.aprobado = True
        inscripcion.fecha_aprobacion = ahora()
    elif nuevo == E.REPROBADO:
        inscripcion.aprobado = False

    crud_inscripcion.registrar_historial(
        db,
        inscripcion,
        "CAMBIO_ESTATUS",
        campo="estatus",
        valor_anterior=anterior.value,
        valor_nuevo=nuevo.value,
        descripcion=descripcion,
        realizado_por=_id_usuario(usuario),
    )

    if nuevo in (E.APROBADO, E.REPROBADO) and inscripcion.grupo.nivel_ingles is not None:
        estudiante = inscripcion.estudiante
        if nuevo == E.APROBADO:
            avanzar_nivel_ingles(db, estudiante, inscripcion.grupo.nivel_ingles)
        else:
            recalcular_ingles(db, estudiante)


def cambiar_estatus(
    db: Session,
    inscripcion_id: str,
    nuevo: EstatusInscripcion,
    calificacion: Optional[float] = None,
    motivo: Optional[str] = None,
    usuario: Optional[Usuario] = None,
) -> Inscripcion:
    """Cambiar el estatus de una inscripción.

    La calificación solo acompaña a APROBADO o REPROBADO y se registra igual
    que en ``calificar``: historial, ``aprobado`` derivado y paso por EN_CURSO.
    """
    if calificacion is not None and nuevo not in (E.APROBADO, E.REPROBADO):
        raise ValidationError(
            "La calificación solo se registra al pasar a APROBADO o REPROBADO",
            {"estatus": nuevo.value},
        )
    estados.validar_calificacion(calificacion, "calificación final")

    with unidad_de_trabajo(db, "cambiar_estatus_inscripcion"):
        inscripcion = obtener_inscripcion(db, inscripcion_id)

        if calificacion is not None:
            if estados.es_terminal(inscripcion.estatus):
                raise InvalidTransitionError(
                    f"La inscripción ya está cerrada con estatus {inscripcion.estatus.value}"
                )
            # La calificación debe coincidir con el estatus pedido
            estados.validar_transicion(
                E.EN_CURSO, nuevo, calificacion, settings.calificacion_aprobatoria
            )
            _calificar(db, inscripcion, calificacion, usuario, motivo)
        else:
            estados.validar_transicion(
                inscripcion.estatus,
                nuevo,
                inscripcion.calificacion_final,
                settings.calificacion_aprobatoria,
            )
            _aplicar_estatus(db, inscripcion, nuevo, usuario, motivo)
    return inscripcion


def _calificar(
    db: Session,
    inscripcion: Inscripcion,
    calificacion: float,
    usuario: Optional[Usuario],
    descripcion: Optional[str] = None,
):
    aprobatoria = settings.calificacion_aprobatoria
    anterior = inscripcion.calificacion_final
    inscripcion.calificacion_final = calificacion
    crud_inscripcion.registrar_historial(
        db,
        inscripcion,
        "CALIFICACION",
        campo="calificacion_final",
        valor_anterior=anterior,
        valor_nuevo=calificacion,
        realizado_por=_id_usuario(usuario),
    )

    destino = E.APROBADO if estados.esta_aprobado(calificacion, aprobatoria) else E.REPROBADO
    for paso in estados.ruta_hacia(inscripcion.estatus, destino):
        estados.validar_transicion(inscripcion.estatus, paso, calificacion, aprobatoria)
        _aplicar_estatus(db, inscripcion, paso, usuario, descripcion)


def calificar(
    db: Session, inscripcion_id: str, calificacion: float, usuario: Optional[Usuario] = None
) -> Inscripcion:
    """Registrar la calificación final y cerrar la inscripción.

    ``aprobado`` se deriva de la calificación; una inscripción INSCRITO pasa
    por EN_CURSO antes de quedar APROBADO o REPROBADO.
    """
    estados.validar_calificacion(calificacion, "calificación final")
    with unidad_de_trabajo(db, "calificar_inscripcion"):
        inscripcion = obtener_inscripcion(db, inscripcion_id)
        verificar_docente_del_grupo(usuario, inscripcion.grupo)
        _calificar(db, inscripcion, calificacion, usuario)
    return inscripcion


def actualizar_calificaciones(
    db: Session,
    inscripcion_id: str,
    datos: InscripcionCalificaciones,
    usuario: Optional[Usuario] = None,
) -> Inscripcion:
    cambios = datos.model_dump(exclude_unset=True)
    final = cambios.pop("calificacion_final", None)

    with unidad_de_trabajo(db, "actualizar_calificaciones"):
        inscripcion = obtener_inscripcion(db, inscripcion_id)
        verificar_docente_del_grupo(usuario, inscripcion.grupo)

        if final is not None and estados.es_terminal(inscripcion.estatus):
            raise InvalidTransitionError(
                f"La inscripción ya está cerrada con estatus {inscripcion.estatus.value}"
            )

        for campo, valor in cambios.items():
            if campo.startswith("calificacion_"):
                estados.validar_calificacion(valor, campo.replace("_", " "))
                crud_inscripcion.registrar_historial(
                    db,
                    inscripcion,
                    "CALIFICACION",
                    campo=campo,
                    valor_anterior=getattr(inscripcion, campo),
                    valor_nuevo=valor,
                    realizado_por=_id_usuario(usuario),
                )
            setattr(inscripcion, campo, valor)

        sesiones = (inscripcion.asistencias or 0) + (inscripcion.faltas or 0)
        if sesiones:
            inscripcion.porcentaje_asistencia = round(
                inscripcion.asistencias / sesiones * 100, 2
            )

        if final is not None:
            _calificar(db, inscripcion, final, usuario)
        else:
            db.flush()
    return inscripcion


def eliminar_inscripcion(
    db: Session, inscripcion_id: str, usuario: Optional[Usuario] = None
) -> Inscripcion:
    """Baja lógica: devuelve el cupo si lo conservaba y deja rastro en el historial"""
    with unidad_de_trabajo(db, "eliminar_inscripcion"):
        inscripcion = obtener_inscripcion(db, inscripcion_id)
        if inscripcion.cupo_reservado:
            capacidad.liberar(db, Grupo, inscripcion.grupo_id)
            inscripcion.cupo_reservado = False
        crud_inscripcion.soft_delete(db, db_obj=inscripcion)
        crud_inscripcion.registrar_historial(
            db,
            inscripcion,
            "ELIMINADA",
            valor_anterior=inscripcion.estatus.value,
            realizado_por=_id_usuario(usuario),
        )
        if inscripcion.grupo.nivel_ingles is not None:
            recalcular_ingles(db, inscripcion.estudiante)
    return inscripcion
