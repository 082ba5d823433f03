"""Generación de matrículas y códigos de registro."""

import re
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from sistema_escolar.core.exceptions import ValidationError
from sistema_escolar.models.curso_especial import CursoEspecial
from sistema_escolar.models.estudiante import Estudiante
from sistema_escolar.models.inscripcion import Inscripcion
from sistema_escolar.models.periodo_examen import InscripcionExamen

MATRICULA_RE = re.compile(r"^(\d{4})-(\d{6})$")
CURP_RE = re.compile(r"^[A-Z]{4}[0-9]{6}[HM][A-Z]{5}[0-9A-Z][0-9]$", re.IGNORECASE)
PERIODO_RE = re.compile(r"^\d{4}-[12]$")

PREFIJOS = {
    Inscripcion: "INS",
    CursoEspecial: "CUR",
    InscripcionExamen: "EXA",
}


def formatear_matricula(anio: int, secuencia: int) -> str:
    return f"{anio}-{secuencia:06d}"


def _secuencia(valor: Optional[str], separador: str = "-") -> int:
    if not valor:
        return 0
    return int(valor.rsplit(separador, 1)[1])


def siguiente_matricula(db: Session, anio: Optional[int] = None) -> str:
    """Matrícula siguiente para el año: la mayor existente más uno.

    Los valores tienen ancho fijo, así que el máximo lexicográfico es también
    el numérico. Dos altas simultáneas pueden calcular el mismo valor; la
    restricción única de ``matricula`` hace fallar a la segunda.
    """
    anio = anio or datetime.utcnow().year
    ultima = (
        db.query(func.max(Estudiante.matricula))
        .filter(Estudiante.matricula.like(f"{anio}-%"))
        .scalar()
    )
    return formatear_matricula(anio, _secuencia(ultima) + 1)


def siguiente_codigo(db: Session, modelo) -> str:
    """Código secuencial ``PREFIJO-00000001`` para inscripciones, cursos y exámenes"""
    prefijo = PREFIJOS[modelo]
    ultimo = (
        db.query(func.max(modelo.codigo))
        .filter(modelo.codigo.like(f"{prefijo}-%"))
        .scalar()
    )
    return f"{prefijo}-{_secuencia(ultimo) + 1:08d}"


def validar_matricula(matricula: str) -> str:
    if not MATRICULA_RE.match(matricula or ""):
        raise ValidationError(
            f"Matrícula inválida '{matricula}': se espera el formato AAAA-NNNNNN"
        )
    return matricula


def validar_curp(curp: Optional[str]) -> Optional[str]:
    if curp is None or curp == "":
        return None
    if not CURP_RE.match(curp):
        raise ValidationError(f"CURP inválida '{curp}'")
    return curp.upper()


def validar_periodo(periodo: str) -> str:
    if not PERIODO_RE.match(periodo or ""):
        raise ValidationError(
            f"Período inválido '{periodo}': se espera el formato AAAA-1 o AAAA-2"
        )
    return periodo
