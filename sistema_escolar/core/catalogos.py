"""Carreras, materias y grupos."""

import logging

from sqlalchemy.orm import Session

from sistema_escolar.core.codigos import validar_periodo
from sistema_escolar.core.estudiantes import obtener_docente
from sistema_escolar.core.exceptions import (
    DuplicateRecordError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
)
from sistema_escolar.core.transacciones import unidad_de_trabajo
from sistema_escolar.crud.grupo import grupo as crud_grupo
from sistema_escolar.models.base import ahora
from sistema_escolar.models.carrera import Carrera
from sistema_escolar.models.curso_especial import CursoEspecial
from sistema_escolar.models.enums import ESTATUS_INACTIVOS
from sistema_escolar.models.grupo import Grupo
from sistema_escolar.models.materia import Materia, Prerrequisito
from sistema_escolar.schemas.carrera import CarreraCreate
from sistema_escolar.schemas.grupo import GrupoCreate, GrupoUpdate
from sistema_escolar.schemas.materia import MateriaCreate, MateriaUpdate

logger = logging.getLogger(__name__)


def obtener_materia(db: Session, materia_id: str) -> Materia:
    materia = (
        db.query(Materia)
        .filter(Materia.id == materia_id, Materia.deleted_at.is_(None))
        .first()
    )
    if materia is None:
        raise NotFoundError(f"Materia con ID {materia_id} no encontrada")
    return materia


def crear_materia(db: Session, datos: MateriaCreate) -> Materia:
    with unidad_de_trabajo(db, "crear_materia"):
        if db.query(Materia).filter(Materia.clave == datos.clave).first():
            raise DuplicateRecordError(f"Ya existe una materia con clave '{datos.clave}'")

        materia = Materia(**datos.model_dump(exclude={"prerrequisitos"}))
        db.add(materia)
        db.flush()

        for prerrequisito_id in dict.fromkeys(datos.prerrequisitos):
            obtener_materia(db, prerrequisito_id)
            if prerrequisito_id == materia.id:
                raise ValidationError("Una materia no puede ser su propio prerrequisito")
            db.add(Prerrequisito(materia_id=materia.id, prerrequisito_id=prerrequisito_id))
        db.flush()
    return materia


def actualizar_materia(db: Session, materia_id: str, datos: MateriaUpdate) -> Materia:
    with unidad_de_trabajo(db, "actualizar_materia"):
        materia = obtener_materia(db, materia_id)
        for campo, valor in datos.model_dump(exclude_unset=True).items():
            setattr(materia, campo, valor)
    return materia


def eliminar_materia(db: Session, materia_id: str) -> Materia:
    with unidad_de_trabajo(db, "eliminar_materia"):
        materia = obtener_materia(db, materia_id)
        grupos = len(crud_grupo.get_by_materia(db, materia.id))
        if grupos:
            raise ReferentialIntegrityError(
                "No se puede eliminar la materia: tiene grupos activos",
                {"grupos_activos": grupos},
            )
        materia.deleted_at = ahora()
    return materia


def obtener_grupo(db: Session, grupo_id: str) -> Grupo:
    grupo = crud_grupo.get_with_relations(db, grupo_id)
    if grupo is None:
        raise NotFoundError(f"Grupo con ID {grupo_id} no encontrado")
    return grupo


def crear_grupo(db: Session, datos: GrupoCreate) -> Grupo:
    validar_periodo(datos.periodo)
    with unidad_de_trabajo(db, "crear_grupo"):
        obtener_materia(db, datos.materia_id)
        if datos.docente_id is not None:
            obtener_docente(db, datos.docente_id)
        grupo = crud_grupo.create(db, obj_in={**datos.model_dump(), "cupo_actual": 0})
    logger.info("Grupo %s creado para el período %s", grupo.nombre, grupo.periodo)
    return grupo


def actualizar_grupo(db: Session, grupo_id: str, datos: GrupoUpdate) -> Grupo:
    with unidad_de_trabajo(db, "actualizar_grupo"):
        grupo = obtener_grupo(db, grupo_id)
        cambios = datos.model_dump(exclude_unset=True)

        cupo_maximo = cambios.get("cupo_maximo", grupo.cupo_maximo)
        cupo_minimo = cambios.get("cupo_minimo", grupo.cupo_minimo)
        if cupo_maximo < grupo.cupo_actual:
            raise ValidationError(
                "El cupo máximo no puede ser menor al número de inscritos",
                {"cupo_actual": grupo.cupo_actual, "cupo_maximo": cupo_maximo},
            )
        if cupo_minimo > cupo_maximo:
            raise ValidationError("cupo_minimo no puede ser mayor que cupo_maximo")
        if cambios.get("docente_id") is not None:
            obtener_docente(db, cambios["docente_id"])

        crud_grupo.update(db, db_obj=grupo, obj_in=cambios)
    return grupo


def eliminar_grupo(db: Session, grupo_id: str) -> Grupo:
    with unidad_de_trabajo(db, "eliminar_grupo"):
        grupo = obtener_grupo(db, grupo_id)
        inscripciones = crud_grupo.contar_inscripciones_activas(db, grupo.id)
        cursos = (
            db.query(CursoEspecial)
            .filter(
                CursoEspecial.grupo_id == grupo.id,
                CursoEspecial.deleted_at.is_(None),
                CursoEspecial.estatus.notin_(ESTATUS_INACTIVOS),
            )
            .count()
        )
        if inscripciones or cursos:
            raise ReferentialIntegrityError(
                "No se puede eliminar el grupo: tiene inscripciones activas",
                {"inscripciones_activas": inscripciones, "cursos_activos": cursos},
            )
        crud_grupo.soft_delete(db, db_obj=grupo)
    return grupo


def crear_carrera(db: Session, datos: CarreraCreate) -> Carrera:
    with unidad_de_trabajo(db, "crear_carrera"):
        if db.query(Carrera).filter(Carrera.clave == datos.clave).first():
            raise DuplicateRecordError(f"Ya existe una carrera con clave '{datos.clave}'")
        carrera = Carrera(**datos.model_dump())
        db.add(carrera)
        db.flush()
    return carrera
