from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as EsquemaInvalido

from sistema_escolar.config.settings import settings
from sistema_escolar.core import elegibilidad, examenes
from sistema_escolar.core.estudiantes import actualizar_estudiante
from sistema_escolar.core.exceptions import (
    CapacityExceededError,
    DuplicateEnrollmentError,
    EligibilityError,
    InvalidTransitionError,
    ReferentialIntegrityError,
    ValidationError,
)
from sistema_escolar.models import CursoEspecial
from sistema_escolar.models.enums import (
    EstatusEstudiante,
    EstatusInscripcion as E,
    EstatusPeriodoExamen as P,
)
from sistema_escolar.schemas.estudiante import EstudianteUpdate
from sistema_escolar.schemas.periodo_examen import (
    PeriodoExamenCreate,
    PeriodoExamenUpdate,
    ResultadoExamen,
)


def test_crear_abrir_y_cerrar(db):
    ahora = datetime.utcnow()
    periodo = examenes.crear_periodo(
        db,
        PeriodoExamenCreate(
            nombre="Diagnóstico agosto",
            fecha_inscripcion_inicio=ahora,
            fecha_inscripcion_fin=ahora + timedelta(days=5),
            fecha_inicio=ahora + timedelta(days=6),
            fecha_fin=ahora + timedelta(days=7),
            cupo_maximo=40,
        ),
    )
    assert periodo.estatus == P.PLANEADO
    assert periodo.cupo_actual == 0

    examenes.abrir_periodo(db, periodo.id)
    assert periodo.estatus == P.ABIERTO
    with pytest.raises(InvalidTransitionError):
        examenes.abrir_periodo(db, periodo.id)

    examenes.cerrar_periodo(db, periodo.id)
    assert periodo.estatus == P.CERRADO


def test_disponibles_con_inscripcion_futura(db, fabrica):
    ahora = datetime.utcnow()
    futuro = fabrica.periodo_examen(
        inicio_inscripcion=ahora + timedelta(days=3), fin_inscripcion=ahora + timedelta(days=9)
    )
    vigente = fabrica.periodo_examen()

    disponibles = [p.id for p, _ in examenes.periodos_disponibles(db)]
    assert disponibles == [vigente.id]

    todos = dict(
        (p.id, d) for p, d in examenes.periodos_disponibles(db, solo_disponibles=False)
    )
    assert todos[futuro.id].en_periodo_inscripcion is False
    assert todos[futuro.id].esta_disponible is False


def test_inscribirse_reserva_cupo(db, fabrica):
    periodo = fabrica.periodo_examen(cupo_maximo=1)
    estudiante = fabrica.estudiante()

    registro = examenes.inscribirse(db, periodo.id, estudiante.id)

    assert registro.estatus == E.INSCRITO
    assert registro.codigo == "EXA-00000001"
    assert periodo.cupo_actual == 1

    with pytest.raises(CapacityExceededError):
        examenes.inscribirse(db, periodo.id, fabrica.estudiante().id)


def test_inscribirse_con_pago_queda_pendiente(db, fabrica):
    periodo = fabrica.periodo_examen(requiere_pago=True)

    registro = examenes.inscribirse(db, periodo.id, fabrica.estudiante().id)

    assert registro.estatus == E.PENDIENTE_PAGO
    assert registro.cupo_reservado is True


def test_un_solo_registro_activo(db, fabrica):
    estudiante = fabrica.estudiante()
    examenes.inscribirse(db, fabrica.periodo_examen().id, estudiante.id)

    with pytest.raises(DuplicateEnrollmentError):
        examenes.inscribirse(db, fabrica.periodo_examen().id, estudiante.id)


def test_periodo_cerrado_o_fuera_de_fechas(db, fabrica):
    estudiante = fabrica.estudiante()
    cerrado = fabrica.periodo_examen(estatus=P.CERRADO)
    ahora = datetime.utcnow()
    vencido = fabrica.periodo_examen(
        inicio_inscripcion=ahora - timedelta(days=10), fin_inscripcion=ahora - timedelta(days=1)
    )

    with pytest.raises(EligibilityError) as exc:
        examenes.inscribirse(db, cerrado.id, estudiante.id)
    assert exc.value.decision.motivo == elegibilidad.PERIODO_NO_DISPONIBLE
    assert exc.value.detalles["condiciones"]["esta_abierto"] is False

    with pytest.raises(EligibilityError) as exc:
        examenes.inscribirse(db, vencido.id, estudiante.id)
    assert exc.value.detalles["condiciones"]["en_periodo_inscripcion"] is False


def test_estudiante_inactivo_no_se_registra(db, fabrica):
    estudiante = fabrica.estudiante()
    actualizar_estudiante(db, estudiante.id, EstudianteUpdate(estatus=EstatusEstudiante.EGRESADO))

    with pytest.raises(EligibilityError) as exc:
        examenes.inscribirse(db, fabrica.periodo_examen().id, estudiante.id)
    assert exc.value.decision.motivo == elegibilidad.ESTUDIANTE_NO_ACTIVO


def test_resultado_perfecto_acredita_seis_niveles(db, fabrica):
    estudiante = fabrica.estudiante()
    registro = examenes.inscribirse(db, fabrica.periodo_examen().id, estudiante.id)

    resultado = examenes.procesar_resultado(db, registro.id, ResultadoExamen(calificacion=100))

    assert resultado["puntuacion_perfecta"] is True
    assert resultado["nivel_asignado"] == 6
    assert resultado["cursos_creados"] == 6
    assert registro.estatus == E.APROBADO
    assert estudiante.nivel_ingles_actual == 6
    assert estudiante.cumple_requisito_ingles is True
    assert estudiante.promedio_ingles == 100
    cursos = db.query(CursoEspecial).filter(CursoEspecial.estudiante_id == estudiante.id).all()
    assert all(c.completado_por_diagnostico and c.es_patron_diagnostico for c in cursos)


def test_resultado_asigna_nivel_y_niveles_inferiores(db, fabrica):
    estudiante = fabrica.estudiante()
    registro = examenes.inscribirse(db, fabrica.periodo_examen().id, estudiante.id)

    resultado = examenes.procesar_resultado(db, registro.id, ResultadoExamen(calificacion=75))

    assert resultado["nivel_asignado"] == 4
    assert resultado["cursos_creados"] == 3
    assert estudiante.nivel_ingles_actual == 4
    assert estudiante.nivel_ingles_certificado == 3
    assert estudiante.fecha_examen_diagnostico is not None
    assert estudiante.cumple_requisito_ingles is False


def test_resultado_reprobatorio_libera_cupo(db, fabrica):
    periodo = fabrica.periodo_examen()
    estudiante = fabrica.estudiante()
    registro = examenes.inscribirse(db, periodo.id, estudiante.id)

    resultado = examenes.procesar_resultado(
        db, registro.id, ResultadoExamen(calificacion=30, nivel_ingles=1)
    )

    assert registro.estatus == E.REPROBADO
    assert resultado["cursos_creados"] == 0
    assert estudiante.nivel_ingles_actual == 1
    assert periodo.cupo_actual == 0


def test_resultado_en_registro_pendiente_de_pago(db, fabrica):
    periodo = fabrica.periodo_examen(requiere_pago=True)
    registro = examenes.inscribirse(db, periodo.id, fabrica.estudiante().id)

    with pytest.raises(InvalidTransitionError):
        examenes.procesar_resultado(db, registro.id, ResultadoExamen(calificacion=80))


def test_actualizar_cupo_por_debajo_de_inscritos(db, fabrica):
    periodo = fabrica.periodo_examen(cupo_maximo=5)
    examenes.inscribirse(db, periodo.id, fabrica.estudiante().id)
    examenes.inscribirse(db, periodo.id, fabrica.estudiante().id)

    with pytest.raises(ValidationError):
        examenes.actualizar_periodo(db, periodo.id, PeriodoExamenUpdate(cupo_maximo=1))


def test_eliminar_periodo_con_registros(db, fabrica):
    periodo = fabrica.periodo_examen()
    registro = examenes.inscribirse(db, periodo.id, fabrica.estudiante().id)

    with pytest.raises(ReferentialIntegrityError):
        examenes.eliminar_periodo(db, periodo.id)

    examenes.cambiar_estatus_registro(db, registro.id, E.CANCELADO, "Sin pago")
    assert periodo.cupo_actual == 0

    examenes.eliminar_periodo(db, periodo.id)
    assert periodo.deleted_at is not None


@pytest.mark.parametrize("campo", ["cupo_maximo", "fecha_inicio", "requiere_pago"])
def test_actualizar_periodo_rechaza_nulos(db, fabrica, campo):
    periodo = fabrica.periodo_examen(cupo_maximo=30)

    with pytest.raises(EsquemaInvalido):
        examenes.actualizar_periodo(
            db, periodo.id, PeriodoExamenUpdate.model_validate({campo: None})
        )

    db.refresh(periodo)
    assert periodo.cupo_maximo == 30
    assert periodo.fecha_inicio is not None


def test_actualizar_periodo_con_fecha_con_zona(db, fabrica):
    periodo = fabrica.periodo_examen()
    cierre = datetime.now(timezone(timedelta(hours=-6))) + timedelta(hours=3)

    examenes.actualizar_periodo(
        db, periodo.id, PeriodoExamenUpdate(fecha_inscripcion_fin=cierre)
    )

    assert periodo.fecha_inscripcion_fin.tzinfo is None
    assert periodo.fecha_inscripcion_fin == cierre.astimezone(timezone.utc).replace(tzinfo=None)


def test_crear_periodo_con_fechas_mixtas(db):
    ahora = datetime.utcnow()
    datos = PeriodoExamenCreate(
        nombre="Diagnóstico enero",
        fecha_inscripcion_inicio=ahora,
        fecha_inscripcion_fin=datetime.now(timezone.utc) + timedelta(days=5),
        fecha_inicio=ahora + timedelta(days=6),
        fecha_fin=(ahora + timedelta(days=7)).replace(tzinfo=timezone.utc),
    )

    periodo = examenes.crear_periodo(db, datos)

    assert periodo.fecha_inscripcion_fin.tzinfo is None
    assert periodo.fecha_fin.tzinfo is None


def test_cupo_por_omision_desde_configuracion(db, monkeypatch):
    monkeypatch.setattr(settings, "cupo_maximo_periodo_examen", 25)
    ahora = datetime.utcnow()

    periodo = examenes.crear_periodo(
        db,
        PeriodoExamenCreate(
            nombre="Diagnóstico junio",
            fecha_inscripcion_inicio=ahora,
            fecha_inscripcion_fin=ahora + timedelta(days=2),
            fecha_inicio=ahora + timedelta(days=3),
            fecha_fin=ahora + timedelta(days=4),
        ),
    )

    assert periodo.cupo_maximo == 25
