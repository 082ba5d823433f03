"""Reportes de solo lectura para diagnóstico operativo."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from sistema_escolar.config.settings import settings
from sistema_escolar.core import elegibilidad
from sistema_escolar.core.estudiantes import construir_snapshot, estado_ingles, obtener_estudiante
from sistema_escolar.models.base import ahora
from sistema_escolar.models.curso_especial import CursoEspecial
from sistema_escolar.models.enums import TipoCurso
from sistema_escolar.models.grupo import Grupo
from sistema_escolar.models.inscripcion import Inscripcion
from sistema_escolar.models.periodo_examen import InscripcionExamen, PeriodoExamen


def diagnostico_periodos(db: Session, momento: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Todos los períodos, incluidos los eliminados, con cada condición evaluada"""
    momento = momento or ahora()
    registros = dict(
        db.query(InscripcionExamen.periodo_id, func.count(InscripcionExamen.id))
        .filter(InscripcionExamen.deleted_at.is_(None))
        .group_by(InscripcionExamen.periodo_id)
        .all()
    )

    reporte = []
    for periodo in db.query(PeriodoExamen).order_by(PeriodoExamen.created_at.asc()):
        disponibilidad = elegibilidad.evaluar_periodo_examen(periodo, momento)
        reporte.append(
            {
                "id": periodo.id,
                "nombre": periodo.nombre,
                "estatus": periodo.estatus.value,
                "fecha_inscripcion_inicio": periodo.fecha_inscripcion_inicio,
                "fecha_inscripcion_fin": periodo.fecha_inscripcion_fin,
                "cupo_actual": periodo.cupo_actual,
                "cupo_maximo": periodo.cupo_maximo,
                "cupos_disponibles": disponibilidad.cupos_disponibles,
                "registros": registros.get(periodo.id, 0),
                "condiciones": disponibilidad.condiciones,
                "esta_disponible": disponibilidad.esta_disponible,
            }
        )
    return reporte


def resumen_cupos(db: Session, periodo: Optional[str] = None) -> List[Dict[str, Any]]:
    """Cupo de cada grupo contra los registros que realmente ocupan lugar.

    ``consistente`` es falso cuando ``cupo_actual`` no coincide con el número
    de inscripciones y cursos que conservan su lugar.
    """
    ocupados_inscripciones = dict(
        db.query(Inscripcion.grupo_id, func.count(Inscripcion.id))
        .filter(Inscripcion.cupo_reservado.is_(True))
        .group_by(Inscripcion.grupo_id)
        .all()
    )
    ocupados_cursos = dict(
        db.query(CursoEspecial.grupo_id, func.count(CursoEspecial.id))
        .filter(CursoEspecial.cupo_reservado.is_(True), CursoEspecial.grupo_id.isnot(None))
        .group_by(CursoEspecial.grupo_id)
        .all()
    )

    query = db.query(Grupo).filter(Grupo.deleted_at.is_(None))
    if periodo:
        query = query.filter(Grupo.periodo == periodo)

    reporte = []
    for grupo in query.order_by(Grupo.periodo.desc(), Grupo.nombre.asc()):
        ocupados = ocupados_inscripciones.get(grupo.id, 0) + ocupados_cursos.get(grupo.id, 0)
        reporte.append(
            {
                "id": grupo.id,
                "nombre": grupo.nombre,
                "periodo": grupo.periodo,
                "nivel_ingles": grupo.nivel_ingles,
                "cupo_minimo": grupo.cupo_minimo,
                "cupo_actual": grupo.cupo_actual,
                "cupo_maximo": grupo.cupo_maximo,
                "cupos_disponibles": grupo.cupos_disponibles,
                "lugares_ocupados": ocupados,
                "consistente": ocupados == grupo.cupo_actual,
            }
        )
    return reporte


def diagnostico_ingles(db: Session, estudiante_id: str) -> Dict[str, Any]:
    """Registros de inglés del estudiante y la decisión para cada nivel"""
    estudiante = obtener_estudiante(db, estudiante_id)
    snapshot = construir_snapshot(db, estudiante)

    cursos = (
        db.query(CursoEspecial)
        .filter(
            CursoEspecial.estudiante_id == estudiante.id,
            CursoEspecial.tipo_curso == TipoCurso.INGLES,
            CursoEspecial.deleted_at.is_(None),
        )
        .order_by(CursoEspecial.nivel_ingles.asc())
        .all()
    )

    decisiones = {}
    for nivel in elegibilidad.NIVELES_INGLES:
        decision = elegibilidad.evaluar_curso_ingles(
            snapshot, nivel, minimo=settings.calificacion_aprobatoria
        )
        decisiones[nivel] = {
            "permitido": decision.permitido,
            "motivo": decision.motivo,
            "mensaje": decision.mensaje,
        }

    return {
        "estudiante": {
            "id": estudiante.id,
            "matricula": estudiante.matricula,
            "nombre": estudiante.nombre_completo,
        },
        "estado": estado_ingles(db, estudiante.id),
        "registros": [
            {
                "nivel": r.nivel,
                "grupo_id": r.grupo_id,
                "estatus": r.estatus.value,
                "activo": r.activo,
            }
            for r in snapshot.registros_ingles
        ],
        "cursos_especiales": [
            {
                "codigo": c.codigo,
                "nivel": c.nivel_ingles,
                "estatus": c.estatus.value,
                "calificacion": c.calificacion,
                "completado_por_diagnostico": c.completado_por_diagnostico,
                "patron_diagnostico": c.es_patron_diagnostico,
            }
            for c in cursos
        ],
        "registros_activos": sum(1 for r in snapshot.registros_ingles if r.activo),
        "decisiones": decisiones,
    }
