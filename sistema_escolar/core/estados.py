"""Máquina de estados de inscripciones, cursos especiales y registros de examen."""

from typing import Dict, FrozenSet, Optional

from sistema_escolar.core.exceptions import InvalidTransitionError, ValidationError
from sistema_escolar.models.enums import EstatusInscripcion as E

TRANSICIONES: Dict[E, FrozenSet[E]] = {
    E.PENDIENTE_PAGO: frozenset({E.INSCRITO, E.CANCELADO}),
    E.INSCRITO: frozenset({E.EN_CURSO, E.BAJA, E.CANCELADO}),
    E.EN_CURSO: frozenset({E.APROBADO, E.REPROBADO, E.BAJA, E.CANCELADO}),
    E.APROBADO: frozenset(),
    E.REPROBADO: frozenset(),
    E.BAJA: frozenset(),
    E.CANCELADO: frozenset(),
}

TERMINALES = frozenset(e for e, destinos in TRANSICIONES.items() if not destinos)

# Estados que conservan el lugar ocupado en el grupo o período
RETIENEN_CUPO = frozenset({E.INSCRITO, E.EN_CURSO, E.APROBADO})


def es_terminal(estatus: E) -> bool:
    return estatus in TERMINALES


def libera_cupo(estatus: E) -> bool:
    """Entrar a un terminal distinto de APROBADO devuelve el lugar"""
    return es_terminal(estatus) and estatus != E.APROBADO


def esta_aprobado(calificacion: Optional[float], aprobatoria: float) -> bool:
    return calificacion is not None and calificacion >= aprobatoria


def validar_calificacion(calificacion: Optional[float], campo: str = "calificacion"):
    if calificacion is None:
        return
    if calificacion < 0 or calificacion > 100:
        raise ValidationError(f"La {campo} debe estar entre 0 y 100")


def validar_transicion(
    actual: E,
    nuevo: E,
    calificacion: Optional[float] = None,
    aprobatoria: float = 70.0,
) -> None:
    if nuevo == actual:
        raise InvalidTransitionError(f"El registro ya tiene estatus {actual.value}")

    if nuevo not in TRANSICIONES[actual]:
        raise InvalidTransitionError(
            f"Transición no permitida: {actual.value} → {nuevo.value}",
            {
                "estatus_actual": actual.value,
                "permitidos": sorted(e.value for e in TRANSICIONES[actual]),
            },
        )

    if nuevo == E.APROBADO and not esta_aprobado(calificacion, aprobatoria):
        raise InvalidTransitionError(
            "Para aprobar se requiere una calificación final aprobatoria",
            {"calificacion_final": calificacion, "aprobatoria": aprobatoria},
        )

    if nuevo == E.REPROBADO and esta_aprobado(calificacion, aprobatoria):
        raise InvalidTransitionError(
            "La calificación final es aprobatoria; no se puede reprobar",
            {"calificacion_final": calificacion, "aprobatoria": aprobatoria},
        )


def ruta_hacia(actual: E, destino: E) -> list:
    """Pasos necesarios para llegar a un estado final con calificación.

    Un registro INSCRITO pasa por EN_CURSO antes de APROBADO/REPROBADO.
    """
    if actual == E.INSCRITO and destino in (E.APROBADO, E.REPROBADO):
        return [E.EN_CURSO, destino]
    return [destino]
