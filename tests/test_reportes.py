from datetime import datetime, timedelta

from sistema_escolar.core import reportes
from sistema_escolar.core.examenes import inscribirse
from sistema_escolar.core.inscripciones import cambiar_estatus, crear_inscripcion
from sistema_escolar.models.enums import EstatusInscripcion as E
from sistema_escolar.schemas.inscripcion import InscripcionCreate


def test_diagnostico_periodos_incluye_eliminados(db, fabrica):
    ahora = datetime.utcnow()
    vigente = fabrica.periodo_examen()
    eliminado = fabrica.periodo_examen()
    eliminado.deleted_at = ahora
    futuro = fabrica.periodo_examen(
        inicio_inscripcion=ahora + timedelta(days=2), fin_inscripcion=ahora + timedelta(days=4)
    )
    inscribirse(db, vigente.id, fabrica.estudiante().id)

    reporte = {fila["id"]: fila for fila in reportes.diagnostico_periodos(db)}

    assert reporte[vigente.id]["esta_disponible"] is True
    assert reporte[vigente.id]["registros"] == 1
    assert reporte[eliminado.id]["condiciones"]["no_eliminado"] is False
    assert reporte[futuro.id]["condiciones"]["en_periodo_inscripcion"] is False


def test_resumen_cupos_consistente(db, fabrica):
    grupo = fabrica.grupo()
    primera = crear_inscripcion(
        db, InscripcionCreate(estudiante_id=fabrica.estudiante().id, grupo_id=grupo.id)
    )
    crear_inscripcion(
        db, InscripcionCreate(estudiante_id=fabrica.estudiante().id, grupo_id=grupo.id)
    )
    cambiar_estatus(db, primera.id, E.BAJA)

    (fila,) = reportes.resumen_cupos(db, periodo="2025-1")

    assert fila["cupo_actual"] == 1
    assert fila["lugares_ocupados"] == 1
    assert fila["consistente"] is True


def test_diagnostico_ingles(db, fabrica):
    estudiante = fabrica.estudiante(nivel_ingles=2)

    reporte = reportes.diagnostico_ingles(db, estudiante.id)

    assert reporte["estudiante"]["matricula"] == estudiante.matricula
    assert reporte["registros_activos"] == 0
    assert reporte["decisiones"][2]["permitido"] is True
    assert reporte["decisiones"][3]["permitido"] is False
