"""Libro de cupos: reserva y liberación atómica para grupos y períodos de examen."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Type, Union

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from sistema_escolar.core.exceptions import CapacityExceededError, NotFoundError
from sistema_escolar.models.grupo import Grupo
from sistema_escolar.models.periodo_examen import PeriodoExamen

logger = logging.getLogger(__name__)

ObjetivoCupo = Union[Type[Grupo], Type[PeriodoExamen]]

NOMBRES = {Grupo: "grupo", PeriodoExamen: "período de examen"}


@dataclass(frozen=True)
class Ticket:
    objetivo: str
    objetivo_id: str
    cupo_actual: int
    cupo_maximo: int
    emitido: datetime


def _leer(db: Session, modelo: ObjetivoCupo, objetivo_id: str):
    fila = (
        db.query(modelo.cupo_actual, modelo.cupo_maximo)
        .filter(modelo.id == objetivo_id)
        .first()
    )
    if fila is None:
        raise NotFoundError(f"No existe {NOMBRES[modelo]} con id '{objetivo_id}'")
    return fila


def reservar(db: Session, modelo: ObjetivoCupo, objetivo_id: str) -> Ticket:
    """Ocupar un lugar del objetivo o fallar cerrado.

    El incremento y la verificación van en una sola sentencia UPDATE
    condicionada a ``cupo_actual < cupo_maximo``; la fila queda bloqueada
    hasta el commit, de modo que dos reservas simultáneas nunca rebasan el
    máximo.
    """
    resultado = db.execute(
        update(modelo)
        .where(modelo.id == objetivo_id, modelo.cupo_actual < modelo.cupo_maximo)
        .values(cupo_actual=modelo.cupo_actual + 1)
        .execution_options(synchronize_session=False)
    )

    cupo_actual, cupo_maximo = _leer(db, modelo, objetivo_id)

    if resultado.rowcount != 1:
        logger.info("Cupo agotado en %s %s (%d/%d)", NOMBRES[modelo], objetivo_id, cupo_actual, cupo_maximo)
        raise CapacityExceededError(
            f"No hay cupo disponible en el {NOMBRES[modelo]}",
            {
                "tiene_cupo": False,
                "cupo_actual": cupo_actual,
                "cupo_maximo": cupo_maximo,
                "cupos_disponibles": max(cupo_maximo - cupo_actual, 0),
            },
        )

    _sincronizar(db, modelo, objetivo_id, cupo_actual)
    return Ticket(
        objetivo=modelo.__tablename__,
        objetivo_id=objetivo_id,
        cupo_actual=cupo_actual,
        cupo_maximo=cupo_maximo,
        emitido=datetime.utcnow(),
    )


def liberar(db: Session, modelo: ObjetivoCupo, objetivo_id: str) -> bool:
    """Devolver un lugar. En cero no hace nada y regresa False."""
    resultado = db.execute(
        update(modelo)
        .where(modelo.id == objetivo_id, modelo.cupo_actual > 0)
        .values(cupo_actual=modelo.cupo_actual - 1)
        .execution_options(synchronize_session=False)
    )

    cupo_actual, _ = _leer(db, modelo, objetivo_id)
    _sincronizar(db, modelo, objetivo_id, cupo_actual)
    return resultado.rowcount == 1


def _sincronizar(db: Session, modelo: ObjetivoCupo, objetivo_id: str, cupo_actual: int):
    # Mantener coherente la instancia ya cargada en la sesión
    instancia = db.identity_map.get(db.identity_key(modelo, objetivo_id))
    if instancia is not None:
        set_committed_value(instancia, "cupo_actual", cupo_actual)
