"""Purga completa de datos conservando al usuario administrador."""

import logging
from typing import Dict

from sqlalchemy import delete
from sqlalchemy.orm import Session

from sistema_escolar.core.transacciones import unidad_de_trabajo
from sistema_escolar.models.carrera import Carrera
from sistema_escolar.models.curso_especial import CursoEspecial
from sistema_escolar.models.docente import Docente
from sistema_escolar.models.estudiante import Estudiante
from sistema_escolar.models.grupo import Grupo
from sistema_escolar.models.inscripcion import HistorialInscripcion, Inscripcion
from sistema_escolar.models.materia import Materia, Prerrequisito
from sistema_escolar.models.periodo import PeriodoAcademico
from sistema_escolar.models.periodo_examen import InscripcionExamen, PeriodoExamen
from sistema_escolar.models.usuario import Usuario

logger = logging.getLogger(__name__)

USUARIO_PROTEGIDO = "admin"

# Hijos antes que padres
ORDEN_PURGA = (
    HistorialInscripcion,
    InscripcionExamen,
    CursoEspecial,
    Inscripcion,
    Grupo,
    Prerrequisito,
    Materia,
    PeriodoAcademico,
    PeriodoExamen,
    Estudiante,
    Docente,
    Carrera,
)


def purgar_base_de_datos(db: Session) -> Dict[str, int]:
    """Borrar todos los registros en orden de llaves foráneas.

    Todo ocurre en una sola transacción. El filtro del usuario protegido va
    dentro del propio DELETE, no en una lectura previa.
    """
    conteos: Dict[str, int] = {}
    with unidad_de_trabajo(db, "purga"):
        for modelo in ORDEN_PURGA:
            resultado = db.execute(delete(modelo).execution_options(synchronize_session=False))
            conteos[modelo.__tablename__] = resultado.rowcount
            logger.info("Purga: %d filas de %s", resultado.rowcount, modelo.__tablename__)

        resultado = db.execute(
            delete(Usuario)
            .where(Usuario.username != USUARIO_PROTEGIDO)
            .execution_options(synchronize_session=False)
        )
        conteos[Usuario.__tablename__] = resultado.rowcount
        logger.info("Purga: %d filas de %s", resultado.rowcount, Usuario.__tablename__)

    db.expunge_all()
    return conteos
