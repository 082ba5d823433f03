from sistema_escolar.core.inscripciones import crear_inscripcion
from sistema_escolar.core.purga import ORDEN_PURGA, purgar_base_de_datos
from sistema_escolar.core.seeder import seed_database
from sistema_escolar.models import Estudiante, Grupo, Usuario
from sistema_escolar.schemas.inscripcion import InscripcionCreate


def test_seeder_es_idempotente(db):
    creados = seed_database(db, anio=2025)

    assert creados["estudiantes"] == 3
    assert creados["docentes"] == 3
    assert creados["grupos"] == 9
    assert creados["usuarios"] == 7

    otra_vez = seed_database(db, anio=2025)
    assert otra_vez == {"usuarios": 0, "estudiantes": 0, "docentes": 0, "grupos": 0}

    matriculas = sorted(m for (m,) in db.query(Estudiante.matricula))
    assert matriculas == ["2025-000001", "2025-000002", "2025-000003"]


def test_purga_conserva_solo_admin(db):
    seed_database(db, anio=2025)
    estudiante = db.query(Estudiante).first()
    grupo = db.query(Grupo).filter(Grupo.nivel_ingles.is_(None)).first()
    crear_inscripcion(db, InscripcionCreate(estudiante_id=estudiante.id, grupo_id=grupo.id))

    conteos = purgar_base_de_datos(db)

    assert conteos["enrollments"] == 1
    assert conteos["enrollment_history"] == 1
    assert conteos["students"] == 3
    assert conteos["users"] == 6

    usuarios = db.query(Usuario).all()
    assert [u.username for u in usuarios] == ["admin"]
    for modelo in ORDEN_PURGA:
        assert db.query(modelo).count() == 0


def test_purga_sin_datos(db):
    conteos = purgar_base_de_datos(db)

    assert all(filas == 0 for filas in conteos.values())
