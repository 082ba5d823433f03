"""Excepciones del dominio escolar.

Cada excepción conoce el código HTTP con el que se reporta; los manejadores
registrados en ``sistema_escolar.main`` las convierten al sobre ``{"error": ...}``.
"""

from typing import Any, Dict, Optional


class SistemaEscolarError(Exception):
    """Excepción base para errores del sistema escolar"""

    status_code = 400

    def __init__(self, mensaje: str, detalles: Optional[Dict[str, Any]] = None):
        super().__init__(mensaje)
        self.mensaje = mensaje
        self.detalles = detalles or {}

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"error": self.mensaje}
        if self.detalles:
            data["detalles"] = self.detalles
        return data


class ValidationError(SistemaEscolarError):
    """Entrada mal formada o incompleta (matrícula, CURP, calificación...)"""

    status_code = 422


class NotFoundError(SistemaEscolarError):
    status_code = 404


class PermissionDeniedError(SistemaEscolarError):
    status_code = 403


class CapacityExceededError(SistemaEscolarError):
    """Se lanza cuando el cupo del grupo o período está completo"""

    status_code = 409


class EligibilityError(SistemaEscolarError):
    """El evaluador de elegibilidad negó la solicitud"""

    status_code = 409

    def __init__(self, decision):
        super().__init__(
            decision.mensaje,
            {"motivo": decision.motivo, "condiciones": dict(decision.condiciones)},
        )
        self.decision = decision


class DuplicateRecordError(SistemaEscolarError):
    """Ya existe un registro con la misma clave única (usuario, clave...)"""

    status_code = 409


class DuplicateEnrollmentError(DuplicateRecordError):
    pass


class InvalidTransitionError(SistemaEscolarError):
    """Cambio de estatus no permitido por la máquina de estados"""

    status_code = 409


class ReferentialIntegrityError(SistemaEscolarError):
    """La operación dejaría registros huérfanos"""

    status_code = 409


class TransactionAbortError(SistemaEscolarError):
    status_code = 500

    def __init__(self, mensaje: str = "La operación no pudo completarse"):
        super().__init__(mensaje)
