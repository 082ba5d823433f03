"""Verificación de variables de entorno requeridas por el backend."""

import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Pattern


@dataclass(frozen=True)
class ReglaVariable:
    nombre: str
    descripcion: str
    requerida: bool = True
    patron: Optional[Pattern] = None
    longitud_minima: Optional[int] = None


REGLAS: List[ReglaVariable] = [
    ReglaVariable(
        "DATABASE_URL",
        "Cadena de conexión: dialecto[+driver]://usuario[:contraseña]@host:puerto/base",
        patron=re.compile(r"^[a-z0-9]+(\+[a-z0-9]+)?://(?:[^:@/]+(?::[^@]*)?@)[^:/]+:\d+/.+$"),
    ),
    ReglaVariable(
        "SECRET_KEY",
        "Clave para firmar JWT (al menos 32 caracteres)",
        longitud_minima=32,
    ),
    ReglaVariable("PORT", "Puerto del servidor", patron=re.compile(r"^\d+$")),
    ReglaVariable(
        "FRONTEND_URL",
        "URL del frontend para CORS",
        patron=re.compile(r"^https?://.+"),
    ),
]


@dataclass
class ResultadoVerificacion:
    errores: Dict[str, str] = field(default_factory=dict)
    advertencias: Dict[str, str] = field(default_factory=dict)
    validas: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errores


def enmascarar(nombre: str, valor: str) -> str:
    if nombre == "DATABASE_URL":
        return re.sub(r":([^:@/]+)@", ":****@", valor)
    if nombre == "SECRET_KEY":
        return valor[:10] + "..."
    return valor


def verificar_entorno(
    entorno: Mapping[str, str] = None, reglas: List[ReglaVariable] = None
) -> ResultadoVerificacion:
    entorno = os.environ if entorno is None else entorno
    resultado = ResultadoVerificacion()

    for regla in reglas or REGLAS:
        valor = entorno.get(regla.nombre)
        if not valor:
            if regla.requerida:
                resultado.errores[regla.nombre] = f"Falta (requerida). {regla.descripcion}"
            else:
                resultado.advertencias[regla.nombre] = "Falta (opcional)"
            continue

        if regla.patron is not None and not regla.patron.match(valor):
            resultado.errores[regla.nombre] = f"Formato inválido. Esperado: {regla.descripcion}"
            continue

        if regla.longitud_minima and len(valor) < regla.longitud_minima:
            resultado.advertencias[regla.nombre] = (
                f"Muy corta (mínimo {regla.longitud_minima} caracteres, actual {len(valor)})"
            )
            continue

        resultado.validas[regla.nombre] = enmascarar(regla.nombre, valor)

    return resultado
