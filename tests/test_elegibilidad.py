from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from sistema_escolar.core import elegibilidad as el
from sistema_escolar.models.enums import (
    EstatusEstudiante,
    EstatusInscripcion as E,
    EstatusPeriodoExamen,
)


def snapshot(nivel=None, registros=(), promedio=None, **extra):
    return el.SnapshotEstudiante(
        estudiante_id="est-1",
        nivel_ingles_actual=nivel,
        promedio_ingles=promedio,
        registros_ingles=tuple(registros),
        **extra,
    )


def test_ya_inscrito_en_el_nivel():
    estudiante = snapshot(nivel=2, registros=[el.RegistroIngles(2, None, E.EN_CURSO)])
    grupo = el.ObjetivoGrupo("g-2", nivel_ingles=2)

    decision = el.evaluar_curso_ingles(estudiante, 2, grupo)

    assert not decision
    assert decision.motivo == el.YA_INSCRITO_NIVEL
    assert "nivel 2" in decision.mensaje
    assert decision.condiciones["sin_registro_activo_en_nivel"] is False


def test_nivel_superior_al_actual():
    estudiante = snapshot(nivel=2, registros=[el.RegistroIngles(2, None, E.EN_CURSO)])

    decision = el.evaluar_curso_ingles(estudiante, 3, el.ObjetivoGrupo("g-3", 3))

    assert decision.motivo == el.NIVEL_DISTINTO
    assert "nivel actual 2" in decision.mensaje


def test_nivel_actual_sin_registros_permitido():
    decision = el.evaluar_curso_ingles(snapshot(nivel=2), 2, el.ObjetivoGrupo("g-2", 2))

    assert decision
    assert decision.motivo == el.PERMITIDO
    assert all(decision.condiciones.values())


def test_registro_inactivo_no_bloquea():
    estudiante = snapshot(nivel=2, registros=[el.RegistroIngles(2, "g-2", E.REPROBADO)])

    assert el.evaluar_curso_ingles(estudiante, 2, el.ObjetivoGrupo("g-2", 2))


def test_sin_diagnostico_solo_nivel_uno():
    assert el.evaluar_curso_ingles(snapshot(), 1)

    decision = el.evaluar_curso_ingles(snapshot(), 3)
    assert decision.motivo == el.DIAGNOSTICO_REQUERIDO


def test_requisito_cumplido_niega_todo():
    registros = [el.RegistroIngles(n, None, E.APROBADO) for n in el.NIVELES_INGLES]
    estudiante = snapshot(nivel=6, registros=registros, promedio=85.0)

    decision = el.evaluar_curso_ingles(estudiante, 6)

    assert decision.motivo == el.REQUISITO_CUMPLIDO


def test_nivel_del_grupo_distinto():
    decision = el.evaluar_curso_ingles(snapshot(nivel=2), 2, el.ObjetivoGrupo("g-4", 4))

    assert decision.motivo == el.NIVEL_GRUPO_DISTINTO


def test_mismo_grupo_activo_en_otro_nivel():
    estudiante = snapshot(nivel=2, registros=[el.RegistroIngles(1, "g-x", E.INSCRITO)])

    decision = el.evaluar_curso_ingles(estudiante, 2, el.ObjetivoGrupo("g-x"))

    assert decision.motivo == el.YA_INSCRITO_GRUPO


def test_grupo_general():
    grupo = el.ObjetivoGrupo("g-1")

    assert el.evaluar_inscripcion_grupo(snapshot(), grupo)
    assert (
        el.evaluar_inscripcion_grupo(snapshot(estatus=EstatusEstudiante.INACTIVO), grupo).motivo
        == el.ESTUDIANTE_NO_ACTIVO
    )
    assert (
        el.evaluar_inscripcion_grupo(snapshot(), el.ObjetivoGrupo("g-1", eliminado=True)).motivo
        == el.GRUPO_NO_VIGENTE
    )
    assert (
        el.evaluar_inscripcion_grupo(snapshot(grupos_activos=("g-1",)), grupo).motivo
        == el.YA_INSCRITO_GRUPO
    )


def test_estado_requisito_ingles():
    estado = el.estado_requisito_ingles([1, 2, 3], 80.0)

    assert not estado.cumple_requisito
    assert estado.niveles_pendientes == [4, 5, 6]
    assert estado.progreso == 50
    assert "Faltan 3" in estado.razon_no_cumple

    completo = el.estado_requisito_ingles(el.NIVELES_INGLES, 69.9)
    assert not completo.cumple_requisito
    assert "Promedio insuficiente" in completo.razon_no_cumple

    assert el.estado_requisito_ingles(el.NIVELES_INGLES, 70.0).cumple_requisito


@pytest.mark.parametrize(
    "calificacion,nivel",
    [(0, 1), (40.9, 1), (41, 2), (56, 3), (70, 3), (71, 4), (81, 5), (91, 6), (100, 6)],
)
def test_nivel_por_calificacion(calificacion, nivel):
    assert el.nivel_por_calificacion(calificacion) == nivel


def _periodo(inicio, fin, cupo_actual=0, cupo_maximo=10, estatus=EstatusPeriodoExamen.ABIERTO):
    return SimpleNamespace(
        estatus=estatus,
        deleted_at=None,
        fecha_inscripcion_inicio=inicio,
        fecha_inscripcion_fin=fin,
        cupo_actual=cupo_actual,
        cupo_maximo=cupo_maximo,
    )


def test_periodo_con_inscripcion_futura_no_disponible():
    ahora = datetime(2025, 3, 1, 12, 0)
    periodo = _periodo(ahora + timedelta(days=1), ahora + timedelta(days=10))

    disponibilidad = el.evaluar_periodo_examen(periodo, ahora)

    assert disponibilidad.en_periodo_inscripcion is False
    assert disponibilidad.esta_disponible is False
    assert disponibilidad.esta_abierto and disponibilidad.tiene_cupo


def test_periodo_lleno_y_decision():
    ahora = datetime(2025, 3, 1, 12, 0)
    periodo = _periodo(ahora - timedelta(days=1), ahora + timedelta(days=1), cupo_actual=10)

    disponibilidad = el.evaluar_periodo_examen(periodo, ahora)
    decision = disponibilidad.como_decision()

    assert disponibilidad.cupos_disponibles == 0
    assert not decision
    assert decision.motivo == el.PERIODO_NO_DISPONIBLE
    assert "tiene_cupo" in decision.mensaje
