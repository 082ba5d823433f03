import pytest

from sistema_escolar.core import elegibilidad
from sistema_escolar.core.cursos_especiales import (
    aprobar_pago,
    cambiar_estatus_curso,
    completar_curso,
    crear_cursos_por_diagnostico,
    eliminar_curso,
    marcar_cursos_diagnostico,
    rechazar_pago,
    solicitar_curso,
)
from sistema_escolar.core.exceptions import EligibilityError, InvalidTransitionError
from sistema_escolar.models import CursoEspecial
from sistema_escolar.models.enums import EstatusInscripcion as E, TipoCurso
from sistema_escolar.schemas.curso_especial import AprobacionPago, CursoEspecialCreate


def ingles(nivel, grupo=None, requiere_pago=True):
    return CursoEspecialCreate(
        tipo_curso=TipoCurso.INGLES,
        nivel_ingles=nivel,
        grupo_id=grupo.id if grupo is not None else None,
        requiere_pago=requiere_pago,
    )


def test_curso_con_pago_no_ocupa_cupo_hasta_aprobar(db, fabrica):
    estudiante = fabrica.estudiante(nivel_ingles=1)
    grupo = fabrica.grupo(nivel_ingles=1)

    curso = solicitar_curso(db, estudiante.id, ingles(1, grupo))
    assert curso.estatus == E.PENDIENTE_PAGO
    assert curso.codigo == "CUR-00000001"
    assert grupo.cupo_actual == 0

    aprobar_pago(db, curso.id, AprobacionPago(monto_pago=1500))
    assert curso.estatus == E.INSCRITO
    assert curso.pago_aprobado is True
    assert curso.cupo_reservado is True
    assert grupo.cupo_actual == 1


def test_rechazo_de_pago_sigue_pendiente(db, fabrica):
    curso = solicitar_curso(db, fabrica.estudiante().id, ingles(1))

    rechazar_pago(db, curso.id, "Comprobante ilegible")

    assert curso.estatus == E.PENDIENTE_PAGO
    assert curso.pago_aprobado is False
    assert curso.monto_pago is None
    assert curso.observaciones == "Pago rechazado. Motivo: Comprobante ilegible"


def test_solicitud_repetida_del_mismo_nivel(db, fabrica):
    estudiante = fabrica.estudiante(nivel_ingles=1)
    solicitar_curso(db, estudiante.id, ingles(1))

    with pytest.raises(EligibilityError) as exc:
        solicitar_curso(db, estudiante.id, ingles(1))

    assert exc.value.decision.motivo == elegibilidad.YA_INSCRITO_NIVEL
    assert exc.value.mensaje.startswith("Ya tienes una solicitud pendiente de pago")


def test_completar_aprueba_y_avanza_nivel(db, fabrica):
    estudiante = fabrica.estudiante(nivel_ingles=1)
    curso = solicitar_curso(db, estudiante.id, ingles(1, requiere_pago=False))

    completar_curso(db, curso.id, 88)

    assert curso.estatus == E.APROBADO
    assert curso.aprobado is True
    assert curso.fecha_aprobacion is not None
    assert estudiante.nivel_ingles_actual == 2
    assert estudiante.promedio_ingles == 88


def test_completar_reprobado_libera_cupo(db, fabrica):
    estudiante = fabrica.estudiante(nivel_ingles=1)
    grupo = fabrica.grupo(nivel_ingles=1)
    curso = solicitar_curso(db, estudiante.id, ingles(1, grupo, requiere_pago=False))
    assert grupo.cupo_actual == 1

    completar_curso(db, curso.id, 40)

    assert curso.estatus == E.REPROBADO
    assert curso.aprobado is False
    assert grupo.cupo_actual == 0
    assert estudiante.nivel_ingles_actual == 1


def test_no_se_completa_un_curso_pendiente_de_pago(db, fabrica):
    curso = solicitar_curso(db, fabrica.estudiante().id, ingles(1))

    with pytest.raises(InvalidTransitionError):
        completar_curso(db, curso.id, 90)


def test_cambiar_estatus_no_aprueba(db, fabrica):
    curso = solicitar_curso(db, fabrica.estudiante().id, ingles(1, requiere_pago=False))

    with pytest.raises(InvalidTransitionError):
        cambiar_estatus_curso(db, curso.id, E.APROBADO)

    cambiar_estatus_curso(db, curso.id, E.CANCELADO, "Solicitud del alumno")
    assert curso.estatus == E.CANCELADO
    assert curso.observaciones == "Solicitud del alumno"


def test_taller_en_grupo_repetido(db, fabrica):
    estudiante = fabrica.estudiante()
    grupo = fabrica.grupo()
    datos = CursoEspecialCreate(
        tipo_curso=TipoCurso.TALLER, grupo_id=grupo.id, requiere_pago=False
    )
    solicitar_curso(db, estudiante.id, datos)

    with pytest.raises(EligibilityError):
        solicitar_curso(db, estudiante.id, datos)


def test_eliminar_curso_devuelve_lugar(db, fabrica):
    grupo = fabrica.grupo(nivel_ingles=1)
    curso = solicitar_curso(
        db, fabrica.estudiante(nivel_ingles=1).id, ingles(1, grupo, requiere_pago=False)
    )

    eliminar_curso(db, curso.id)

    assert curso.deleted_at is not None
    assert grupo.cupo_actual == 0


def test_cursos_por_diagnostico_no_duplican_niveles(db, fabrica):
    estudiante = fabrica.estudiante(nivel_ingles=1)
    curso = solicitar_curso(db, estudiante.id, ingles(1, requiere_pago=False))
    completar_curso(db, curso.id, 80)

    creados = crear_cursos_por_diagnostico(db, estudiante.id, range(1, 4), 85, {2: 90})
    db.commit()

    assert [c.nivel_ingles for c in creados] == [2, 3]
    assert [c.calificacion for c in creados] == [90, 85]
    assert all(c.completado_por_diagnostico for c in creados)


def test_marcar_cursos_diagnostico(db, fabrica):
    estudiante = fabrica.estudiante()
    legado = CursoEspecial(
        codigo="CUR-00000099",
        estudiante_id=estudiante.id,
        tipo_curso=TipoCurso.INGLES,
        nivel_ingles=1,
        estatus=E.APROBADO,
        requiere_pago=False,
        aprobado=True,
        calificacion=80,
    )
    db.add(legado)
    db.commit()

    assert marcar_cursos_diagnostico(db) == 1
    assert legado.completado_por_diagnostico is True
    assert marcar_cursos_diagnostico(db) == 0
