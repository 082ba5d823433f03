"""Evaluador de elegibilidad.

Funciones puras: reciben instantáneas del estudiante y del objetivo y regresan
una ``Decision``. Todas las condiciones se evalúan por separado y se reportan en
``Decision.condiciones`` para que quien llama pueda explicar la negativa.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sistema_escolar.models.enums import (
    ESTATUS_INACTIVOS,
    EstatusEstudiante,
    EstatusInscripcion,
    EstatusPeriodoExamen,
)

PERMITIDO = "PERMITIDO"
REQUISITO_CUMPLIDO = "REQUISITO_CUMPLIDO"
DIAGNOSTICO_REQUERIDO = "DIAGNOSTICO_REQUERIDO"
NIVEL_DISTINTO = "NIVEL_DISTINTO"
NIVEL_GRUPO_DISTINTO = "NIVEL_GRUPO_DISTINTO"
YA_INSCRITO_NIVEL = "YA_INSCRITO_NIVEL"
YA_INSCRITO_GRUPO = "YA_INSCRITO_GRUPO"
ESTUDIANTE_NO_ACTIVO = "ESTUDIANTE_NO_ACTIVO"
GRUPO_NO_VIGENTE = "GRUPO_NO_VIGENTE"
PERIODO_NO_DISPONIBLE = "PERIODO_NO_DISPONIBLE"

NIVELES_INGLES = (1, 2, 3, 4, 5, 6)
PROMEDIO_MINIMO_INGLES = 70.0

MENSAJES_ESTATUS_ACTIVO = {
    EstatusInscripcion.INSCRITO: "Ya estás inscrito",
    EstatusInscripcion.EN_CURSO: "Ya estás cursando",
    EstatusInscripcion.PENDIENTE_PAGO: "Ya tienes una solicitud pendiente de pago",
    EstatusInscripcion.APROBADO: "Ya completaste",
}


@dataclass(frozen=True)
class RegistroIngles:
    """Inscripción o curso de inglés existente del estudiante"""

    nivel: Optional[int]
    grupo_id: Optional[str]
    estatus: EstatusInscripcion

    @property
    def activo(self) -> bool:
        return self.estatus not in ESTATUS_INACTIVOS


@dataclass(frozen=True)
class SnapshotEstudiante:
    estudiante_id: str
    estatus: EstatusEstudiante = EstatusEstudiante.ACTIVO
    nivel_ingles_actual: Optional[int] = None
    promedio_ingles: Optional[float] = None
    registros_ingles: Tuple[RegistroIngles, ...] = ()
    grupos_activos: Tuple[str, ...] = ()

    @property
    def niveles_aprobados(self) -> List[int]:
        return sorted(
            {
                r.nivel
                for r in self.registros_ingles
                if r.estatus == EstatusInscripcion.APROBADO and r.nivel in NIVELES_INGLES
            }
        )


@dataclass(frozen=True)
class ObjetivoGrupo:
    grupo_id: str
    nivel_ingles: Optional[int] = None
    eliminado: bool = False


@dataclass(frozen=True)
class Decision:
    permitido: bool
    motivo: str
    mensaje: str
    condiciones: Dict[str, bool] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.permitido


@dataclass(frozen=True)
class EstadoRequisitoIngles:
    cumple_requisito: bool
    promedio: Optional[float]
    niveles_completados: List[int]
    niveles_pendientes: List[int]
    progreso: int
    razon_no_cumple: Optional[str] = None


@dataclass(frozen=True)
class DisponibilidadPeriodo:
    esta_abierto: bool
    no_eliminado: bool
    en_periodo_inscripcion: bool
    tiene_cupo: bool
    cupos_disponibles: int

    @property
    def esta_disponible(self) -> bool:
        return (
            self.esta_abierto
            and self.no_eliminado
            and self.en_periodo_inscripcion
            and self.tiene_cupo
        )

    @property
    def condiciones(self) -> Dict[str, bool]:
        return {
            "esta_abierto": self.esta_abierto,
            "no_eliminado": self.no_eliminado,
            "en_periodo_inscripcion": self.en_periodo_inscripcion,
            "tiene_cupo": self.tiene_cupo,
        }

    def como_decision(self) -> Decision:
        if self.esta_disponible:
            return Decision(True, PERMITIDO, "Período disponible", self.condiciones)
        fallidas = [nombre for nombre, ok in self.condiciones.items() if not ok]
        return Decision(
            False,
            PERIODO_NO_DISPONIBLE,
            "El período de examen no está disponible: " + ", ".join(fallidas),
            self.condiciones,
        )


def _formato(promedio: Optional[float]) -> str:
    return f"{promedio:.2f}" if promedio is not None else "N/A"


def estado_requisito_ingles(
    niveles_aprobados: Iterable[int],
    promedio: Optional[float],
    minimo: float = PROMEDIO_MINIMO_INGLES,
) -> EstadoRequisitoIngles:
    completados = sorted({n for n in niveles_aprobados if n in NIVELES_INGLES})
    pendientes = [n for n in NIVELES_INGLES if n not in completados]
    progreso = round(len(completados) / len(NIVELES_INGLES) * 100)

    promedio_suficiente = promedio is not None and promedio >= minimo
    todos_los_niveles = not pendientes
    cumple = promedio_suficiente and todos_los_niveles

    razon = None
    if not cumple:
        if not promedio_suficiente and not todos_los_niveles:
            razon = f"Promedio insuficiente ({_formato(promedio)}%) y faltan {len(pendientes)} nivel(es)"
        elif not promedio_suficiente:
            razon = f"Promedio insuficiente: {_formato(promedio)}% (requiere ≥{minimo:g}%)"
        else:
            razon = f"Faltan {len(pendientes)} nivel(es): {', '.join(map(str, pendientes))}"

    return EstadoRequisitoIngles(
        cumple_requisito=cumple,
        promedio=promedio,
        niveles_completados=completados,
        niveles_pendientes=pendientes,
        progreso=progreso,
        razon_no_cumple=razon,
    )


def nivel_por_calificacion(calificacion: float) -> int:
    """Nivel de inglés asignado según la calificación del examen diagnóstico"""
    if calificacion >= 91:
        return 6
    if calificacion >= 81:
        return 5
    if calificacion >= 71:
        return 4
    if calificacion >= 56:
        return 3
    if calificacion >= 41:
        return 2
    return 1


def evaluar_curso_ingles(
    estudiante: SnapshotEstudiante,
    nivel_solicitado: int,
    grupo: Optional[ObjetivoGrupo] = None,
    minimo: float = PROMEDIO_MINIMO_INGLES,
) -> Decision:
    """Decidir si el estudiante puede inscribirse a un curso de inglés.

    Precedencia de motivos: requisito cumplido, diagnóstico requerido, nivel
    distinto al actual, nivel del grupo distinto, registro activo en el mismo
    nivel y, al final, registro activo en el mismo grupo.
    """
    requisito = estado_requisito_ingles(
        estudiante.niveles_aprobados, estudiante.promedio_ingles, minimo
    )
    nivel_definido = estudiante.nivel_ingles_actual is not None
    nivel_actual = estudiante.nivel_ingles_actual or 1

    activos = [r for r in estudiante.registros_ingles if r.activo]
    activo_en_nivel = next((r for r in activos if r.nivel == nivel_solicitado), None)
    activo_en_grupo = (
        next((r for r in activos if r.grupo_id == grupo.grupo_id), None)
        if grupo is not None
        else None
    )

    condiciones = {
        "requisito_pendiente": not requisito.cumple_requisito,
        "nivel_permitido_sin_diagnostico": nivel_definido or nivel_solicitado == 1,
        "nivel_coincide": nivel_solicitado == nivel_actual,
        "nivel_grupo_coincide": grupo is None
        or grupo.nivel_ingles is None
        or grupo.nivel_ingles == nivel_solicitado,
        "sin_registro_activo_en_nivel": activo_en_nivel is None,
        "sin_registro_activo_en_grupo": activo_en_grupo is None,
    }

    def negar(motivo: str, mensaje: str) -> Decision:
        return Decision(False, motivo, mensaje, condiciones)

    if not condiciones["requisito_pendiente"]:
        return negar(
            REQUISITO_CUMPLIDO,
            "Ya has cumplido con todos los requisitos de inglés. Has completado "
            "todos los niveles (1-6) con un promedio aprobatorio.",
        )

    if not condiciones["nivel_permitido_sin_diagnostico"]:
        return negar(
            DIAGNOSTICO_REQUERIDO,
            "Debes realizar el examen de diagnóstico antes de inscribirte a un "
            "curso de inglés de nivel superior a 1.",
        )

    if not condiciones["nivel_coincide"]:
        direccion = "inferior" if nivel_solicitado < nivel_actual else "superior"
        return negar(
            NIVEL_DISTINTO,
            f"No puedes inscribirte a un nivel {direccion} ({nivel_solicitado}). "
            f"Debes inscribirte en tu nivel actual {nivel_actual}.",
        )

    if not condiciones["nivel_grupo_coincide"]:
        return negar(
            NIVEL_GRUPO_DISTINTO,
            f"El grupo es de nivel {grupo.nivel_ingles} y solicitaste el nivel "
            f"{nivel_solicitado}.",
        )

    if activo_en_nivel is not None:
        prefijo = MENSAJES_ESTATUS_ACTIVO.get(
            activo_en_nivel.estatus, "Ya tienes una solicitud activa"
        )
        return negar(
            YA_INSCRITO_NIVEL,
            f"{prefijo} en el nivel {nivel_solicitado} de inglés. "
            "No puedes inscribirte nuevamente.",
        )

    if activo_en_grupo is not None:
        return negar(
            YA_INSCRITO_GRUPO,
            "Ya estás inscrito en este curso. No puedes inscribirte dos veces al mismo curso.",
        )

    return Decision(
        True, PERMITIDO, f"Puede inscribirse al nivel {nivel_solicitado}", condiciones
    )


def evaluar_inscripcion_grupo(
    estudiante: SnapshotEstudiante, grupo: ObjetivoGrupo
) -> Decision:
    condiciones = {
        "estudiante_activo": estudiante.estatus == EstatusEstudiante.ACTIVO,
        "grupo_vigente": not grupo.eliminado,
        "sin_inscripcion_en_grupo": grupo.grupo_id not in estudiante.grupos_activos,
    }

    if not condiciones["estudiante_activo"]:
        return Decision(
            False,
            ESTUDIANTE_NO_ACTIVO,
            f"El estudiante tiene estatus {estudiante.estatus.value}",
            condiciones,
        )
    if not condiciones["grupo_vigente"]:
        return Decision(False, GRUPO_NO_VIGENTE, "El grupo fue eliminado", condiciones)
    if not condiciones["sin_inscripcion_en_grupo"]:
        return Decision(
            False,
            YA_INSCRITO_GRUPO,
            "El estudiante ya está inscrito en este grupo",
            condiciones,
        )
    return Decision(True, PERMITIDO, "Puede inscribirse al grupo", condiciones)


def evaluar_periodo_examen(periodo, ahora: datetime) -> DisponibilidadPeriodo:
    """Evaluar las cuatro condiciones de disponibilidad de un período.

    ``periodo`` puede ser el modelo ORM o cualquier objeto con los mismos
    atributos.
    """
    return DisponibilidadPeriodo(
        esta_abierto=periodo.estatus == EstatusPeriodoExamen.ABIERTO,
        no_eliminado=periodo.deleted_at is None,
        en_periodo_inscripcion=periodo.fecha_inscripcion_inicio
        <= ahora
        <= periodo.fecha_inscripcion_fin,
        tiene_cupo=periodo.cupo_actual < periodo.cupo_maximo,
        cupos_disponibles=max(periodo.cupo_maximo - periodo.cupo_actual, 0),
    )
