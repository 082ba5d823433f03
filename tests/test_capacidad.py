import threading

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from sistema_escolar.config.database import Base, build_engine
from sistema_escolar.core import capacidad
from sistema_escolar.core.exceptions import CapacityExceededError, NotFoundError
from sistema_escolar.models import Grupo, Materia, PeriodoExamen


def test_reservar_incrementa_cupo(db, fabrica):
    grupo = fabrica.grupo(cupo_maximo=2)

    ticket = capacidad.reservar(db, Grupo, grupo.id)
    db.commit()

    assert ticket.cupo_actual == 1
    assert ticket.cupo_maximo == 2
    assert grupo.cupo_actual == 1


def test_reservar_sin_cupo_falla_cerrado(db, fabrica):
    grupo = fabrica.grupo(cupo_maximo=1)
    capacidad.reservar(db, Grupo, grupo.id)
    db.commit()

    with pytest.raises(CapacityExceededError) as exc:
        capacidad.reservar(db, Grupo, grupo.id)

    assert exc.value.detalles["tiene_cupo"] is False
    assert exc.value.detalles["cupos_disponibles"] == 0
    db.rollback()
    db.refresh(grupo)
    assert grupo.cupo_actual == 1


def test_liberar_en_cero_no_hace_nada(db, fabrica):
    grupo = fabrica.grupo()

    assert capacidad.liberar(db, Grupo, grupo.id) is False
    db.commit()
    db.refresh(grupo)
    assert grupo.cupo_actual == 0


def test_liberar_devuelve_lugar(db, fabrica):
    periodo = fabrica.periodo_examen(cupo_maximo=3)
    capacidad.reservar(db, PeriodoExamen, periodo.id)
    capacidad.reservar(db, PeriodoExamen, periodo.id)

    assert capacidad.liberar(db, PeriodoExamen, periodo.id) is True
    db.commit()
    assert periodo.cupo_actual == 1


def test_objetivo_inexistente(db):
    with pytest.raises(NotFoundError):
        capacidad.reservar(db, Grupo, "no-existe")


def test_reservas_simultaneas_admiten_solo_una(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'cupos.db'}")
    Base.metadata.create_all(bind=engine)
    Sesion = sessionmaker(bind=engine)

    with Sesion() as db:
        materia = Materia(clave="INF110", nombre="Programación", creditos=5)
        db.add(materia)
        db.flush()
        grupo = Grupo(
            nombre="A",
            periodo="2025-1",
            materia_id=materia.id,
            cupo_minimo=1,
            cupo_maximo=10,
            cupo_actual=9,
        )
        db.add(grupo)
        db.commit()
        grupo_id = grupo.id

    barrera = threading.Barrier(2)
    exitos, rechazos = [], []

    def intentar():
        with Sesion() as db:
            barrera.wait()
            try:
                capacidad.reservar(db, Grupo, grupo_id)
                db.commit()
                exitos.append(1)
            except (CapacityExceededError, OperationalError):
                db.rollback()
                rechazos.append(1)

    hilos = [threading.Thread(target=intentar) for _ in range(2)]
    for hilo in hilos:
        hilo.start()
    for hilo in hilos:
        hilo.join()

    with Sesion() as db:
        final = db.get(Grupo, grupo_id)
        assert final.cupo_actual == 10

    assert len(exitos) == 1
    assert len(rechazos) == 1
    engine.dispose()
