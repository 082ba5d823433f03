"""Cursos especiales: solicitud, pago, conclusión y marcas de diagnóstico."""

import logging
from typing import Dict, Optional

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
    EligibilityError,
    InvalidTransitionError,
    NotFoundError,
)
from sistema_escolar.core.transacciones import unidad_de_trabajo
from sistema_escolar.crud.grupo import grupo as crud_grupo
from sistema_escolar.models.base import ahora
from sistema_escolar.models.curso_especial import CursoEspecial
from sistema_escolar.models.enums import ESTATUS_INACTIVOS, EstatusInscripcion, TipoCurso
from sistema_escolar.models.grupo import Grupo
from sistema_escolar.schemas.curso_especial import AprobacionPago, CursoEspecialCreate

logger = logging.getLogger(__name__)

E = EstatusInscripcion


def obtener_curso(db: Session, curso_id: str) -> CursoEspecial:
    curso = (
        db.query(CursoEspecial)
        .filter(CursoEspecial.id == curso_id, CursoEspecial.deleted_at.is_(None))
        .first()
    )
    if curso is None:
        raise NotFoundError(f"Curso especial con ID {curso_id} no encontrado")
    return curso


def solicitar_curso(db: Session, estudiante_id: str, datos: CursoEspecialCreate) -> CursoEspecial:
    """Registrar la solicitud de un curso especial.

    Con pago requerido queda PENDIENTE_PAGO y no ocupa cupo; sin pago queda
    INSCRITO y, si tiene grupo, reserva el lugar en la misma unidad.
    """
    with unidad_de_trabajo(db, "solicitar_curso"):
        estudiante = obtener_estudiante(db, estudiante_id)

        objetivo = None
        if datos.grupo_id is not None:
            grupo = crud_grupo.get(db, datos.grupo_id)
            if grupo is None:
                raise NotFoundError(f"Grupo con ID {datos.grupo_id} no encontrado")
            objetivo = elegibilidad.ObjetivoGrupo(
                grupo_id=grupo.id, nivel_ingles=grupo.nivel_ingles
            )

        snapshot = construir_snapshot(db, estudiante)
        if datos.tipo_curso == TipoCurso.INGLES:
            decision = elegibilidad.evaluar_curso_ingles(
                snapshot, datos.nivel_ingles, objetivo, settings.calificacion_aprobatoria
            )
            if not decision:
                raise EligibilityError(decision)
        elif objetivo is not None:
            curso_activo = (
                db.query(CursoEspecial.id)
                .filter(
                    CursoEspecial.estudiante_id == estudiante.id,
                    CursoEspecial.grupo_id == objetivo.grupo_id,
                    CursoEspecial.deleted_at.is_(None),
                    CursoEspecial.estatus.notin_(ESTATUS_INACTIVOS),
                )
                .first()
            )
            if objetivo.grupo_id in snapshot.grupos_activos or curso_activo is not None:
                raise EligibilityError(
                    elegibilidad.Decision(
                        False,
                        elegibilidad.YA_INSCRITO_GRUPO,
                        "Ya estás inscrito en este curso. No puedes inscribirte "
                        "dos veces al mismo curso.",
                        {"sin_registro_activo_en_grupo": False},
                    )
                )

        reservar = objetivo is not None and not datos.requiere_pago
        if reservar:
            capacidad.reservar(db, Grupo, objetivo.grupo_id)

        curso = CursoEspecial(
            codigo=siguiente_codigo(db, CursoEspecial),
            estudiante_id=estudiante.id,
            grupo_id=datos.grupo_id,
            tipo_curso=datos.tipo_curso,
            nivel_ingles=datos.nivel_ingles,
            estatus=E.PENDIENTE_PAGO if datos.requiere_pago else E.INSCRITO,
            requiere_pago=datos.requiere_pago,
            pago_aprobado=None if datos.requiere_pago else True,
            fecha_pago_aprobado=None if datos.requiere_pago else ahora(),
            monto_pago=datos.monto_pago,
            fecha_inicio=datos.fecha_inicio,
            cupo_reservado=reservar,
            observaciones=datos.observaciones,
        )
        db.add(curso)
        db.flush()

    logger.info("Curso especial %s (%s) solicitado", curso.codigo, curso.tipo_curso.value)
    return curso


def aprobar_pago(db: Session, curso_id: str, datos: AprobacionPago) -> CursoEspecial:
    with unidad_de_trabajo(db, "aprobar_pago"):
        curso = obtener_curso(db, curso_id)
        if curso.estatus != E.PENDIENTE_PAGO:
            raise InvalidTransitionError("Este curso no está pendiente de pago")

        estados.validar_transicion(curso.estatus, E.INSCRITO)
        if curso.grupo_id is not None:
            capacidad.reservar(db, Grupo, curso.grupo_id)
            curso.cupo_reservado = True

        curso.estatus = E.INSCRITO
        curso.monto_pago = datos.monto_pago
        curso.pago_aprobado = True
        curso.fecha_pago_aprobado = ahora()
        if datos.fecha_inicio is not None:
            curso.fecha_inicio = datos.fecha_inicio
        if datos.observaciones:
            curso.observaciones = datos.observaciones
    return curso


def rechazar_pago(db: Session, curso_id: str, motivo: str) -> CursoEspecial:
    """El curso sigue PENDIENTE_PAGO para que el estudiante vuelva a pagar"""
    with unidad_de_trabajo(db, "rechazar_pago"):
        curso = obtener_curso(db, curso_id)
        if curso.estatus != E.PENDIENTE_PAGO:
            raise InvalidTransitionError(
                "Este curso debe estar pendiente de pago para rechazarlo"
            )
        curso.pago_aprobado = False
        curso.monto_pago = None
        curso.observaciones = f"Pago rechazado. Motivo: {motivo}"
    return curso


def _cerrar(db: Session, curso: CursoEspecial, nuevo: EstatusInscripcion):
    curso.estatus = nuevo
    if estados.libera_cupo(nuevo) and curso.cupo_reservado:
        capacidad.liberar(db, Grupo, curso.grupo_id)
        curso.cupo_reservado = False


def completar_curso(
    db: Session, curso_id: str, calificacion: float, observaciones: Optional[str] = None
) -> CursoEspecial:
    estados.validar_calificacion(calificacion)
    aprobatoria = settings.calificacion_aprobatoria

    with unidad_de_trabajo(db, "completar_curso"):
        curso = obtener_curso(db, curso_id)
        destino = E.APROBADO if estados.esta_aprobado(calificacion, aprobatoria) else E.REPROBADO

        for paso in estados.ruta_hacia(curso.estatus, destino):
            estados.validar_transicion(curso.estatus, paso, calificacion, aprobatoria)
            _cerrar(db, curso, paso)

        curso.calificacion = calificacion
        curso.aprobado = destino == E.APROBADO
        curso.fecha_aprobacion = ahora() if curso.aprobado else None
        if observaciones:
            curso.observaciones = observaciones
        db.flush()

        if curso.tipo_curso == TipoCurso.INGLES:
            if curso.aprobado:
                avanzar_nivel_ingles(db, curso.estudiante, curso.nivel_ingles or 1)
            else:
                recalcular_ingles(db, curso.estudiante)
    return curso


def cambiar_estatus_curso(
    db: Session, curso_id: str, nuevo: EstatusInscripcion, motivo: Optional[str] = None
) -> CursoEspecial:
    """Transiciones sin calificación; APROBADO/REPROBADO van por completar_curso"""
    with unidad_de_trabajo(db, "cambiar_estatus_curso"):
        curso = obtener_curso(db, curso_id)
        if nuevo in (E.APROBADO, E.REPROBADO):
            raise InvalidTransitionError(
                "Para aprobar o reprobar un curso registra su calificación"
            )
        if nuevo == E.INSCRITO and curso.estatus == E.PENDIENTE_PAGO:
            raise InvalidTransitionError(
                "Un curso pendiente de pago se inscribe al aprobar el pago"
            )
        estados.validar_transicion(curso.estatus, nuevo)
        _cerrar(db, curso, nuevo)
        if motivo:
            curso.observaciones = motivo
    return curso


def eliminar_curso(db: Session, curso_id: str) -> CursoEspecial:
    with unidad_de_trabajo(db, "eliminar_curso"):
        curso = obtener_curso(db, curso_id)
        if curso.cupo_reservado:
            capacidad.liberar(db, Grupo, curso.grupo_id)
            curso.cupo_reservado = False
        curso.deleted_at = ahora()
        db.flush()
        if curso.tipo_curso == TipoCurso.INGLES:
            recalcular_ingles(db, curso.estudiante)
    return curso


def crear_cursos_por_diagnostico(
    db: Session,
    estudiante_id: str,
    niveles,
    calificacion: float,
    calificaciones_por_nivel: Optional[Dict[int, float]] = None,
) -> list:
    """Registrar como aprobados los niveles acreditados con el examen diagnóstico.

    No hace commit; corre dentro de la unidad que procesa el resultado. Un nivel
    que ya tiene registro de inglés no se duplica.
    """
    existentes = {
        nivel
        for (nivel,) in db.query(CursoEspecial.nivel_ingles)
        .filter(
            CursoEspecial.estudiante_id == estudiante_id,
            CursoEspecial.tipo_curso == TipoCurso.INGLES,
            CursoEspecial.deleted_at.is_(None),
        )
        .all()
    }
    calificaciones_por_nivel = calificaciones_por_nivel or {}
    creados = []
    for nivel in niveles:
        if nivel in existentes:
            continue
        curso = CursoEspecial(
            codigo=siguiente_codigo(db, CursoEspecial),
            estudiante_id=estudiante_id,
            grupo_id=None,
            tipo_curso=TipoCurso.INGLES,
            nivel_ingles=nivel,
            estatus=E.APROBADO,
            requiere_pago=False,
            pago_aprobado=True,
            fecha_pago_aprobado=ahora(),
            calificacion=calificaciones_por_nivel.get(nivel, calificacion),
            aprobado=True,
            fecha_aprobacion=ahora(),
            completado_por_diagnostico=True,
            observaciones=f"Nivel {nivel} de inglés completado mediante examen de diagnóstico",
        )
        db.add(curso)
        db.flush()
        creados.append(curso)
    return creados


def marcar_cursos_diagnostico(db: Session) -> int:
    """Marcar los cursos con patrón de diagnóstico que no tienen la bandera"""
    with unidad_de_trabajo(db, "marcar_cursos_diagnostico"):
        candidatos = (
            db.query(CursoEspecial)
            .filter(
                CursoEspecial.grupo_id.is_(None),
                CursoEspecial.requiere_pago.is_(False),
                CursoEspecial.aprobado.is_(True),
                CursoEspecial.tipo_curso == TipoCurso.INGLES,
                CursoEspecial.completado_por_diagnostico.is_(False),
            )
            .all()
        )
        for curso in candidatos:
            curso.completado_por_diagnostico = True
    logger.info("%d cursos marcados como completados por diagnóstico", len(candidatos))
    return len(candidatos)
