"""Períodos de examen diagnóstico y registros de estudiantes."""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from sistema_escolar.config.settings import settings
from sistema_escolar.core import capacidad, elegibilidad, estados
from sistema_escolar.core.codigos import siguiente_codigo
from sistema_escolar.core.cursos_especiales import crear_cursos_por_diagnostico
from sistema_escolar.core.estudiantes import obtener_estudiante, recalcular_ingles
from sistema_escolar.core.exceptions import (
    DuplicateEnrollmentError,
    EligibilityError,
    InvalidTransitionError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
)
from sistema_escolar.core.transacciones import unidad_de_trabajo
from sistema_escolar.models.base import ahora
from sistema_escolar.models.enums import (
    ESTATUS_INACTIVOS,
    EstatusEstudiante,
    EstatusInscripcion,
    EstatusPeriodoExamen,
)
from sistema_escolar.models.periodo_examen import InscripcionExamen, PeriodoExamen
from sistema_escolar.schemas.periodo_examen import (
    PeriodoExamenCreate,
    PeriodoExamenUpdate,
    ResultadoExamen,
)

logger = logging.getLogger(__name__)

E = EstatusInscripcion
P = EstatusPeriodoExamen

# Estados desde los que se puede abrir o cerrar un período
SE_PUEDE_ABRIR = {P.PLANEADO, P.CERRADO}
SE_PUEDE_CERRAR = {P.ABIERTO}


def obtener_periodo(db: Session, periodo_id: str, incluir_eliminados: bool = False) -> PeriodoExamen:
    query = db.query(PeriodoExamen).filter(PeriodoExamen.id == periodo_id)
    if not incluir_eliminados:
        query = query.filter(PeriodoExamen.deleted_at.is_(None))
    periodo = query.first()
    if periodo is None:
        raise NotFoundError(f"Período de examen con ID {periodo_id} no encontrado")
    return periodo


def crear_periodo(db: Session, datos: PeriodoExamenCreate) -> PeriodoExamen:
    with unidad_de_trabajo(db, "crear_periodo_examen"):
        periodo = PeriodoExamen(**datos.model_dump(), estatus=P.PLANEADO, cupo_actual=0)
        db.add(periodo)
        db.flush()
    return periodo


def actualizar_periodo(db: Session, periodo_id: str, datos: PeriodoExamenUpdate) -> PeriodoExamen:
    with unidad_de_trabajo(db, "actualizar_periodo_examen"):
        periodo = obtener_periodo(db, periodo_id)
        cambios = datos.model_dump(exclude_unset=True)

        cupo_maximo = cambios.get("cupo_maximo", periodo.cupo_maximo)
        if cupo_maximo < periodo.cupo_actual:
            raise ValidationError(
                "El cupo máximo no puede ser menor al número de inscritos",
                {"cupo_actual": periodo.cupo_actual, "cupo_maximo": cupo_maximo},
            )

        for campo, valor in cambios.items():
            setattr(periodo, campo, valor)

        if periodo.fecha_inicio > periodo.fecha_fin:
            raise ValidationError("fecha_inicio debe ser anterior a fecha_fin")
        if periodo.fecha_inscripcion_inicio > periodo.fecha_inscripcion_fin:
            raise ValidationError(
                "fecha_inscripcion_inicio debe ser anterior a fecha_inscripcion_fin"
            )
        db.flush()
    return periodo


def _cambiar_estatus_periodo(db: Session, periodo_id: str, nuevo: P, permitidos) -> PeriodoExamen:
    with unidad_de_trabajo(db, f"periodo_{nuevo.value.lower()}"):
        periodo = obtener_periodo(db, periodo_id)
        if periodo.estatus not in permitidos:
            raise InvalidTransitionError(
                f"No se puede pasar un período {periodo.estatus.value} a {nuevo.value}"
            )
        periodo.estatus = nuevo
    logger.info("Período de examen %s ahora %s", periodo.nombre, nuevo.value)
    return periodo


def abrir_periodo(db: Session, periodo_id: str) -> PeriodoExamen:
    return _cambiar_estatus_periodo(db, periodo_id, P.ABIERTO, SE_PUEDE_ABRIR)


def cerrar_periodo(db: Session, periodo_id: str) -> PeriodoExamen:
    return _cambiar_estatus_periodo(db, periodo_id, P.CERRADO, SE_PUEDE_CERRAR)


def eliminar_periodo(db: Session, periodo_id: str) -> PeriodoExamen:
    with unidad_de_trabajo(db, "eliminar_periodo_examen"):
        periodo = obtener_periodo(db, periodo_id)
        activos = (
            db.query(InscripcionExamen)
            .filter(
                InscripcionExamen.periodo_id == periodo.id,
                InscripcionExamen.deleted_at.is_(None),
                InscripcionExamen.estatus.notin_(ESTATUS_INACTIVOS),
            )
            .count()
        )
        if activos:
            raise ReferentialIntegrityError(
                "El período tiene estudiantes registrados", {"registros_activos": activos}
            )
        periodo.deleted_at = ahora()
    return periodo


def periodos_disponibles(
    db: Session, momento: Optional[datetime] = None, solo_disponibles: bool = True
) -> List[Tuple[PeriodoExamen, elegibilidad.DisponibilidadPeriodo]]:
    """Períodos con el desglose de sus cuatro condiciones de disponibilidad"""
    momento = momento or ahora()
    periodos = (
        db.query(PeriodoExamen)
        .filter(PeriodoExamen.deleted_at.is_(None))
        .order_by(PeriodoExamen.fecha_inscripcion_inicio.asc())
        .all()
    )
    resultado = []
    for periodo in periodos:
        disponibilidad = elegibilidad.evaluar_periodo_examen(periodo, momento)
        if solo_disponibles and not disponibilidad.esta_disponible:
            continue
        resultado.append((periodo, disponibilidad))
    return resultado


def obtener_registro(db: Session, registro_id: str) -> InscripcionExamen:
    registro = (
        db.query(InscripcionExamen)
        .filter(InscripcionExamen.id == registro_id, InscripcionExamen.deleted_at.is_(None))
        .first()
    )
    if registro is None:
        raise NotFoundError(f"Registro de examen con ID {registro_id} no encontrado")
    return registro


def inscribirse(
    db: Session, periodo_id: str, estudiante_id: str, observaciones: Optional[str] = None
) -> InscripcionExamen:
    """Registrar al estudiante en el examen diagnóstico del período.

    Falla si el período no está abierto, fue eliminado o está fuera de fechas
    de inscripción; el cupo se valida en la reserva misma.
    """
    with unidad_de_trabajo(db, "inscribirse_examen"):
        periodo = obtener_periodo(db, periodo_id, incluir_eliminados=True)
        estudiante = obtener_estudiante(db, estudiante_id)

        if estudiante.estatus != EstatusEstudiante.ACTIVO:
            raise EligibilityError(
                elegibilidad.Decision(
                    False,
                    elegibilidad.ESTUDIANTE_NO_ACTIVO,
                    f"El estudiante tiene estatus {estudiante.estatus.value}",
                    {"estudiante_activo": False},
                )
            )

        disponibilidad = elegibilidad.evaluar_periodo_examen(periodo, ahora())
        if not (
            disponibilidad.esta_abierto
            and disponibilidad.no_eliminado
            and disponibilidad.en_periodo_inscripcion
        ):
            raise EligibilityError(disponibilidad.como_decision())

        activo = (
            db.query(InscripcionExamen)
            .filter(
                InscripcionExamen.estudiante_id == estudiante.id,
                InscripcionExamen.deleted_at.is_(None),
                InscripcionExamen.estatus.notin_(ESTATUS_INACTIVOS),
            )
            .first()
        )
        if activo is not None:
            raise DuplicateEnrollmentError(
                "Ya tienes un examen de diagnóstico registrado",
                {"registro_id": activo.id, "estatus": activo.estatus.value},
            )

        capacidad.reservar(db, PeriodoExamen, periodo.id)

        registro = InscripcionExamen(
            codigo=siguiente_codigo(db, InscripcionExamen),
            periodo_id=periodo.id,
            estudiante_id=estudiante.id,
            estatus=E.PENDIENTE_PAGO if periodo.requiere_pago else E.INSCRITO,
            cupo_reservado=True,
            observaciones=observaciones,
        )
        db.add(registro)
        db.flush()

    logger.info("Registro %s al período %s", registro.codigo, periodo.nombre)
    return registro


def _cerrar_registro(db: Session, registro: InscripcionExamen, nuevo: EstatusInscripcion):
    registro.estatus = nuevo
    if estados.libera_cupo(nuevo) and registro.cupo_reservado:
        capacidad.liberar(db, PeriodoExamen, registro.periodo_id)
        registro.cupo_reservado = False


def procesar_resultado(db: Session, registro_id: str, datos: ResultadoExamen) -> dict:
    """Registrar el resultado del diagnóstico y asignar el nivel de inglés.

    Los niveles inferiores al asignado quedan como cursos aprobados por
    diagnóstico. Con 100 se acreditan los seis niveles.
    """
    calificacion = datos.calificacion
    estados.validar_calificacion(calificacion)
    aprobatoria = settings.calificacion_aprobatoria

    with unidad_de_trabajo(db, "procesar_resultado_examen"):
        registro = obtener_registro(db, registro_id)
        if registro.estatus not in (E.INSCRITO, E.EN_CURSO):
            raise InvalidTransitionError(
                f"No se puede registrar resultado con estatus {registro.estatus.value}"
            )

        destino = E.APROBADO if estados.esta_aprobado(calificacion, aprobatoria) else E.REPROBADO
        for paso in estados.ruta_hacia(registro.estatus, destino):
            estados.validar_transicion(registro.estatus, paso, calificacion, aprobatoria)
            _cerrar_registro(db, registro, paso)

        perfecta = calificacion == 100
        nivel = (
            settings.niveles_ingles
            if perfecta
            else datos.nivel_ingles or elegibilidad.nivel_por_calificacion(calificacion)
        )
        niveles = (
            range(1, settings.niveles_ingles + 1) if perfecta else range(1, nivel)
        )

        registro.calificacion = calificacion
        registro.aprobado = destino == E.APROBADO
        registro.nivel_asignado = nivel

        estudiante = registro.estudiante
        estudiante.nivel_ingles_actual = nivel
        estudiante.fecha_examen_diagnostico = ahora()

        creados = crear_cursos_por_diagnostico(
            db, estudiante.id, niveles, calificacion, datos.calificaciones_por_nivel
        )
        recalcular_ingles(db, estudiante)

    if perfecta:
        mensaje = (
            "El estudiante obtuvo 100% en el examen de diagnóstico. Todos los niveles "
            "de inglés (1-6) han sido completados automáticamente."
        )
    else:
        mensaje = f"Examen procesado. Nivel de inglés asignado: {nivel}"

    logger.info(
        "Resultado de %s: %.2f, nivel %d, %d cursos creados",
        registro.codigo,
        calificacion,
        nivel,
        len(creados),
    )
    return {
        "registro": registro,
        "nivel_asignado": nivel,
        "cursos_creados": len(creados),
        "puntuacion_perfecta": perfecta,
        "mensaje": mensaje,
    }


def cambiar_estatus_registro(
    db: Session, registro_id: str, nuevo: EstatusInscripcion, motivo: Optional[str] = None
) -> InscripcionExamen:
    with unidad_de_trabajo(db, "cambiar_estatus_registro"):
        registro = obtener_registro(db, registro_id)
        if nuevo in (E.APROBADO, E.REPROBADO):
            raise InvalidTransitionError(
                "Para aprobar o reprobar un examen registra su resultado"
            )
        estados.validar_transicion(registro.estatus, nuevo)
        _cerrar_registro(db, registro, nuevo)
        if motivo:
            registro.observaciones = motivo
    return registro
