import pytest
from pydantic import ValidationError as EsquemaInvalido

from sistema_escolar.core import codigos
from sistema_escolar.core.estudiantes import (
    actualizar_estudiante,
    eliminar_docente,
    eliminar_estudiante,
    estado_ingles,
)
from sistema_escolar.core.exceptions import (
    DuplicateRecordError,
    ReferentialIntegrityError,
    ValidationError,
)
from sistema_escolar.core.inscripciones import crear_inscripcion
from sistema_escolar.models import Estudiante, Usuario
from sistema_escolar.schemas.estudiante import EstudianteUpdate
from sistema_escolar.schemas.inscripcion import InscripcionCreate


def test_matriculas_consecutivas_por_anio(db, fabrica):
    primera = fabrica.estudiante(anio=2025)
    segunda = fabrica.estudiante(anio=2025)
    otra = fabrica.estudiante(anio=2024)
    tercera = fabrica.estudiante(anio=2025)

    assert primera.matricula == "2025-000001"
    assert segunda.matricula == "2025-000002"
    assert tercera.matricula == "2025-000003"
    assert otra.matricula == "2024-000001"
    assert codigos.siguiente_matricula(db, 2025) == "2025-000004"


def test_alta_crea_usuario_y_estudiante(db, fabrica):
    estudiante = fabrica.estudiante(curp="gomd900101hdfrrn09")

    assert estudiante.usuario.username.startswith("alumno")
    assert estudiante.usuario.rol.value == "STUDENT"
    assert estudiante.curp == "GOMD900101HDFRRN09"


def test_usuario_repetido_no_deja_huerfanos(db, fabrica):
    fabrica.estudiante(username="repetido")

    with pytest.raises(DuplicateRecordError):
        fabrica.estudiante(username="repetido")

    assert db.query(Usuario).filter(Usuario.username == "repetido").count() == 1
    assert db.query(Estudiante).count() == 1


def test_curp_invalida(db, fabrica):
    with pytest.raises(ValidationError):
        fabrica.estudiante(curp="NO-ES-CURP")
    assert db.query(Usuario).count() == 0


@pytest.mark.parametrize("valor", ["2025-1", "2025-2"])
def test_periodo_valido(valor):
    assert codigos.validar_periodo(valor) == valor


@pytest.mark.parametrize("valor", ["2025-3", "25-1", "2025"])
def test_periodo_invalido(valor):
    with pytest.raises(ValidationError):
        codigos.validar_periodo(valor)


def test_validar_matricula():
    assert codigos.validar_matricula("2025-000010") == "2025-000010"
    with pytest.raises(ValidationError):
        codigos.validar_matricula("2025-10")


def test_creditos_aprobados_no_superan_cursados(db, fabrica):
    estudiante = fabrica.estudiante()

    with pytest.raises(ValidationError):
        actualizar_estudiante(
            db, estudiante.id, EstudianteUpdate(creditos_cursados=10, creditos_aprobados=12)
        )


def test_eliminar_estudiante_con_inscripcion_activa(db, fabrica):
    estudiante = fabrica.estudiante()
    crear_inscripcion(
        db, InscripcionCreate(estudiante_id=estudiante.id, grupo_id=fabrica.grupo().id)
    )

    with pytest.raises(ReferentialIntegrityError):
        eliminar_estudiante(db, estudiante.id)


def test_eliminar_estudiante_desactiva_usuario(db, fabrica):
    estudiante = fabrica.estudiante()

    eliminar_estudiante(db, estudiante.id)

    assert estudiante.deleted_at is not None
    assert estudiante.usuario.activo is False


def test_eliminar_docente_con_grupos(db, fabrica):
    docente = fabrica.docente()
    fabrica.grupo(docente=docente)

    with pytest.raises(ReferentialIntegrityError):
        eliminar_docente(db, docente.id)


def test_estado_ingles_inicial(db, fabrica):
    estudiante = fabrica.estudiante(nivel_ingles=1)

    estado = estado_ingles(db, estudiante.id)

    assert estado["cumple_requisito"] is False
    assert estado["niveles_pendientes"] == [1, 2, 3, 4, 5, 6]
    assert estado["progreso"] == 0


@pytest.mark.parametrize(
    "campo", ["nombre", "semestre", "estatus", "creditos_cursados", "creditos_aprobados"]
)
def test_actualizar_estudiante_rechaza_nulos(db, fabrica, campo):
    estudiante = fabrica.estudiante()

    with pytest.raises(EsquemaInvalido):
        actualizar_estudiante(db, estudiante.id, EstudianteUpdate.model_validate({campo: None}))

    db.refresh(estudiante)
    assert estudiante.creditos_cursados == 0
    assert estudiante.semestre == 1


def test_actualizar_estudiante_limpia_campos_opcionales(db, fabrica):
    estudiante = fabrica.estudiante(apellido_materno="López")

    actualizar_estudiante(db, estudiante.id, EstudianteUpdate(apellido_materno=None))

    assert estudiante.apellido_materno is None
