"""Altas de estudiantes y docentes, y estado académico de inglés."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from sistema_escolar.config.settings import settings
from sistema_escolar.core import elegibilidad
from sistema_escolar.core.codigos import siguiente_matricula, validar_curp
from sistema_escolar.core.exceptions import (
    DuplicateRecordError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
)
from sistema_escolar.core.security import get_password_hash
from sistema_escolar.core.transacciones import unidad_de_trabajo
from sistema_escolar.crud.estudiante import estudiante as crud_estudiante
from sistema_escolar.models.base import ahora
from sistema_escolar.models.carrera import Carrera
from sistema_escolar.models.curso_especial import CursoEspecial
from sistema_escolar.models.docente import Docente
from sistema_escolar.models.enums import (
    ESTATUS_INACTIVOS,
    EstatusInscripcion,
    RolUsuario,
    TipoCurso,
)
from sistema_escolar.models.estudiante import Estudiante
from sistema_escolar.models.grupo import Grupo
from sistema_escolar.models.inscripcion import Inscripcion
from sistema_escolar.models.usuario import Usuario
from sistema_escolar.schemas.docente import DocenteCreate, DocenteUpdate
from sistema_escolar.schemas.estudiante import EstudianteCreate, EstudianteUpdate

logger = logging.getLogger(__name__)


def crear_usuario(
    db: Session, username: str, password: str, rol: RolUsuario, email: Optional[str] = None
) -> Usuario:
    existente = db.query(Usuario).filter(Usuario.username == username).first()
    if existente:
        raise DuplicateRecordError(f"El usuario '{username}' ya existe")

    usuario = Usuario(
        username=username,
        password_hash=get_password_hash(password),
        rol=rol,
        email=email,
    )
    db.add(usuario)
    db.flush()
    return usuario


def obtener_estudiante(db: Session, estudiante_id: str) -> Estudiante:
    estudiante = crud_estudiante.get_with_relations(db, estudiante_id)
    if estudiante is None:
        raise NotFoundError(f"Estudiante con ID {estudiante_id} no encontrado")
    return estudiante


def _validar_carrera(db: Session, carrera_id: Optional[str]):
    if carrera_id is None:
        return
    carrera = (
        db.query(Carrera)
        .filter(Carrera.id == carrera_id, Carrera.deleted_at.is_(None))
        .first()
    )
    if carrera is None:
        raise NotFoundError(f"Carrera con ID {carrera_id} no encontrada")


def crear_estudiante(
    db: Session, datos: EstudianteCreate, anio: Optional[int] = None
) -> Estudiante:
    """Crear usuario y estudiante en una sola unidad.

    La matrícula se calcula dentro de la misma transacción; si otra alta
    concurrente tomó el mismo valor, la restricción única aborta esta unidad
    completa y no queda ningún usuario huérfano.
    """
    curp = validar_curp(datos.curp)

    with unidad_de_trabajo(db, "crear_estudiante"):
        _validar_carrera(db, datos.carrera_id)
        usuario = crear_usuario(
            db, datos.username, datos.password, RolUsuario.STUDENT, datos.email
        )
        estudiante = Estudiante(
            usuario_id=usuario.id,
            matricula=siguiente_matricula(db, anio),
            nombre=datos.nombre,
            apellido_paterno=datos.apellido_paterno,
            apellido_materno=datos.apellido_materno,
            curp=curp,
            carrera_id=datos.carrera_id,
            semestre=datos.semestre,
            nivel_ingles_actual=datos.nivel_ingles_actual,
        )
        db.add(estudiante)
        db.flush()

    logger.info("Estudiante %s creado (usuario %s)", estudiante.matricula, usuario.username)
    return estudiante


def actualizar_estudiante(
    db: Session, estudiante_id: str, datos: EstudianteUpdate
) -> Estudiante:
    with unidad_de_trabajo(db, "actualizar_estudiante"):
        estudiante = obtener_estudiante(db, estudiante_id)
        cambios = datos.model_dump(exclude_unset=True)

        if "curp" in cambios:
            cambios["curp"] = validar_curp(cambios["curp"])
        if "carrera_id" in cambios:
            _validar_carrera(db, cambios["carrera_id"])

        cursados = cambios.get("creditos_cursados", estudiante.creditos_cursados)
        aprobados = cambios.get("creditos_aprobados", estudiante.creditos_aprobados)
        if aprobados > cursados:
            raise ValidationError(
                "Los créditos aprobados no pueden superar a los cursados",
                {"creditos_cursados": cursados, "creditos_aprobados": aprobados},
            )

        crud_estudiante.update(db, db_obj=estudiante, obj_in=cambios)
    return estudiante


def eliminar_estudiante(db: Session, estudiante_id: str) -> Estudiante:
    with unidad_de_trabajo(db, "eliminar_estudiante"):
        estudiante = obtener_estudiante(db, estudiante_id)
        activas = (
            db.query(Inscripcion)
            .filter(
                Inscripcion.estudiante_id == estudiante.id,
                Inscripcion.deleted_at.is_(None),
                Inscripcion.estatus.notin_(ESTATUS_INACTIVOS),
                Inscripcion.estatus != EstatusInscripcion.APROBADO,
            )
            .count()
        )
        if activas:
            raise ReferentialIntegrityError(
                "El estudiante tiene inscripciones activas",
                {"inscripciones_activas": activas},
            )
        crud_estudiante.soft_delete(db, db_obj=estudiante)
        estudiante.usuario.activo = False
    return estudiante


def obtener_docente(db: Session, docente_id: str) -> Docente:
    docente = (
        db.query(Docente)
        .filter(Docente.id == docente_id, Docente.deleted_at.is_(None))
        .first()
    )
    if docente is None:
        raise NotFoundError(f"Docente con ID {docente_id} no encontrado")
    return docente


def crear_docente(db: Session, datos: DocenteCreate) -> Docente:
    with unidad_de_trabajo(db, "crear_docente"):
        usuario = crear_usuario(
            db, datos.username, datos.password, RolUsuario.TEACHER, datos.email
        )
        docente = Docente(
            usuario_id=usuario.id,
            nombre=datos.nombre,
            apellido_paterno=datos.apellido_paterno,
            apellido_materno=datos.apellido_materno,
            departamento=datos.departamento,
        )
        db.add(docente)
        db.flush()
    return docente


def actualizar_docente(db: Session, docente_id: str, datos: DocenteUpdate) -> Docente:
    with unidad_de_trabajo(db, "actualizar_docente"):
        docente = obtener_docente(db, docente_id)
        for campo, valor in datos.model_dump(exclude_unset=True).items():
            setattr(docente, campo, valor)
    return docente


def eliminar_docente(db: Session, docente_id: str) -> Docente:
    with unidad_de_trabajo(db, "eliminar_docente"):
        docente = obtener_docente(db, docente_id)
        grupos = (
            db.query(Grupo)
            .filter(Grupo.docente_id == docente.id, Grupo.deleted_at.is_(None))
            .count()
        )
        if grupos:
            raise ReferentialIntegrityError(
                "El docente tiene grupos asignados", {"grupos": grupos}
            )
        docente.deleted_at = ahora()
        docente.usuario.activo = False
    return docente


# --- Inglés ---------------------------------------------------------------


def _registros_ingles(db: Session, estudiante_id: str):
    """Cursos especiales de inglés e inscripciones a grupos con nivel de inglés"""
    cursos = (
        db.query(CursoEspecial)
        .filter(
            CursoEspecial.estudiante_id == estudiante_id,
            CursoEspecial.tipo_curso == TipoCurso.INGLES,
            CursoEspecial.deleted_at.is_(None),
        )
        .all()
    )
    inscripciones = (
        db.query(Inscripcion, Grupo.nivel_ingles)
        .join(Grupo, Grupo.id == Inscripcion.grupo_id)
        .filter(
            Inscripcion.estudiante_id == estudiante_id,
            Inscripcion.deleted_at.is_(None),
            Grupo.nivel_ingles.isnot(None),
        )
        .all()
    )

    registros = []
    for curso in cursos:
        registros.append(
            (
                elegibilidad.RegistroIngles(curso.nivel_ingles, curso.grupo_id, curso.estatus),
                curso.calificacion,
            )
        )
    for inscripcion, nivel in inscripciones:
        registros.append(
            (
                elegibilidad.RegistroIngles(nivel, inscripcion.grupo_id, inscripcion.estatus),
                inscripcion.calificacion_final,
            )
        )
    return registros


def construir_snapshot(db: Session, estudiante: Estudiante) -> elegibilidad.SnapshotEstudiante:
    registros = tuple(r for r, _ in _registros_ingles(db, estudiante.id))
    grupos_activos = (
        db.query(Inscripcion.grupo_id)
        .filter(
            Inscripcion.estudiante_id == estudiante.id,
            Inscripcion.deleted_at.is_(None),
            Inscripcion.estatus.notin_(ESTATUS_INACTIVOS),
        )
        .all()
    )
    return elegibilidad.SnapshotEstudiante(
        estudiante_id=estudiante.id,
        estatus=estudiante.estatus,
        nivel_ingles_actual=estudiante.nivel_ingles_actual,
        promedio_ingles=estudiante.promedio_ingles,
        registros_ingles=registros,
        grupos_activos=tuple(g for (g,) in grupos_activos),
    )


def recalcular_ingles(db: Session, estudiante: Estudiante) -> elegibilidad.EstadoRequisitoIngles:
    """Recalcular promedio, nivel certificado y requisito de inglés.

    No hace commit; se ejecuta dentro de la unidad que modificó los registros.
    """
    aprobados = [
        (registro, calificacion)
        for registro, calificacion in _registros_ingles(db, estudiante.id)
        if registro.estatus == EstatusInscripcion.APROBADO
    ]
    calificaciones = [c for _, c in aprobados if c is not None]
    promedio = (
        round(sum(calificaciones) / len(calificaciones), 2) if calificaciones else None
    )
    niveles = [r.nivel for r, _ in aprobados if r.nivel is not None]

    estado = elegibilidad.estado_requisito_ingles(
        niveles, promedio, settings.calificacion_aprobatoria
    )
    estudiante.promedio_ingles = promedio
    estudiante.nivel_ingles_certificado = max(estado.niveles_completados, default=None)
    estudiante.cumple_requisito_ingles = estado.cumple_requisito
    db.flush()
    return estado


def avanzar_nivel_ingles(db: Session, estudiante: Estudiante, nivel_aprobado: int):
    """Aprobar el nivel actual mueve al estudiante al siguiente (máximo 6)"""
    actual = estudiante.nivel_ingles_actual or 1
    if nivel_aprobado == actual:
        estudiante.nivel_ingles_actual = min(actual + 1, settings.niveles_ingles)
        logger.info(
            "Estudiante %s avanza al nivel %d de inglés",
            estudiante.matricula,
            estudiante.nivel_ingles_actual,
        )
    recalcular_ingles(db, estudiante)


def estado_ingles(db: Session, estudiante_id: str) -> dict:
    estudiante = obtener_estudiante(db, estudiante_id)
    snapshot = construir_snapshot(db, estudiante)
    estado = elegibilidad.estado_requisito_ingles(
        snapshot.niveles_aprobados,
        estudiante.promedio_ingles,
        settings.calificacion_aprobatoria,
    )
    return {
        "estudiante_id": estudiante.id,
        "nivel_ingles_actual": estudiante.nivel_ingles_actual,
        "nivel_ingles_certificado": estudiante.nivel_ingles_certificado,
        "promedio_ingles": estudiante.promedio_ingles,
        "cumple_requisito": estado.cumple_requisito,
        "niveles_completados": estado.niveles_completados,
        "niveles_pendientes": estado.niveles_pendientes,
        "progreso": estado.progreso,
        "razon_no_cumple": estado.razon_no_cumple,
    }
