"""Datos iniciales. Se puede ejecutar varias veces: busca antes de crear."""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session

from sistema_escolar.core.codigos import siguiente_matricula
from sistema_escolar.core.security import get_password_hash
from sistema_escolar.core.transacciones import unidad_de_trabajo
from sistema_escolar.models.carrera import Carrera
from sistema_escolar.models.docente import Docente
from sistema_escolar.models.enums import EstatusPeriodoExamen, Modalidad, RolUsuario
from sistema_escolar.models.estudiante import Estudiante
from sistema_escolar.models.grupo import Grupo
from sistema_escolar.models.materia import Materia, Prerrequisito
from sistema_escolar.models.periodo import PeriodoAcademico
from sistema_escolar.models.periodo_examen import PeriodoExamen
from sistema_escolar.models.usuario import Usuario

logger = logging.getLogger(__name__)

PASSWORD_DEFAULT = "123456"

CARRERAS = [
    {"clave": "ISC", "nombre": "Ingeniería en Sistemas Computacionales"},
    {"clave": "IIND", "nombre": "Ingeniería Industrial"},
]

MATERIAS = [
    {"clave": "MAT101", "nombre": "Cálculo Diferencial", "creditos": 5},
    {"clave": "MAT102", "nombre": "Cálculo Integral", "creditos": 5, "requiere": "MAT101"},
    {"clave": "INF110", "nombre": "Fundamentos de Programación", "creditos": 5},
    {"clave": "INF120", "nombre": "Programación Orientada a Objetos", "creditos": 5, "requiere": "INF110"},
    {"clave": "INF210", "nombre": "Estructura de Datos", "creditos": 5, "requiere": "INF120"},
    {"clave": "ING", "nombre": "Inglés", "creditos": 0, "tipo": "IDIOMA"},
]

DOCENTES = [
    {"username": "docente1", "nombre": "María", "apellido_paterno": "González", "departamento": "Ciencias Básicas"},
    {"username": "docente2", "nombre": "Roberto", "apellido_paterno": "Hernández", "departamento": "Sistemas"},
    {"username": "docente3", "nombre": "Laura", "apellido_paterno": "Martínez", "departamento": "Idiomas"},
]

ESTUDIANTES = [
    {"username": "estudiante1", "nombre": "Ana", "apellido_paterno": "López", "semestre": 1},
    {"username": "estudiante2", "nombre": "Carlos", "apellido_paterno": "Ramírez", "semestre": 3, "nivel_ingles_actual": 2},
    {"username": "estudiante3", "nombre": "Sofía", "apellido_paterno": "Torres", "semestre": 5, "nivel_ingles_actual": 4},
]


def _usuario(db: Session, username: str, password: str, rol: RolUsuario, email: Optional[str] = None) -> Usuario:
    usuario = db.query(Usuario).filter(Usuario.username == username).first()
    if usuario is None:
        usuario = Usuario(
            username=username,
            password_hash=get_password_hash(password),
            rol=rol,
            email=email,
        )
        db.add(usuario)
        db.flush()
        logger.info("👤 Usuario %s creado", username)
    return usuario


def _por_clave(db: Session, modelo, clave: str, **datos):
    instancia = db.query(modelo).filter(modelo.clave == clave).first()
    if instancia is None:
        instancia = modelo(clave=clave, **datos)
        db.add(instancia)
        db.flush()
    return instancia


def seed_database(db: Session, anio: int = None) -> Dict[str, int]:
    """Crear usuario admin, catálogos, docentes, estudiantes, grupos y un período de examen"""
    anio = anio or datetime.utcnow().year
    periodo_codigo = f"{anio}-{1 if datetime.utcnow().month <= 6 else 2}"
    creados = {"usuarios": 0, "estudiantes": 0, "docentes": 0, "grupos": 0}

    with unidad_de_trabajo(db, "seed"):
        usuarios_antes = db.query(Usuario).count()
        _usuario(db, "admin", "admin123", RolUsuario.ADMIN, "admin@escuela.edu.mx")

        carreras = {c["clave"]: _por_clave(db, Carrera, c["clave"], nombre=c["nombre"]) for c in CARRERAS}

        materias = {}
        for datos in MATERIAS:
            materias[datos["clave"]] = _por_clave(
                db,
                Materia,
                datos["clave"],
                nombre=datos["nombre"],
                creditos=datos["creditos"],
                tipo=datos.get("tipo", "OBLIGATORIA"),
            )
        for datos in MATERIAS:
            if "requiere" not in datos:
                continue
            materia = materias[datos["clave"]]
            requerida = materias[datos["requiere"]]
            existe = (
                db.query(Prerrequisito)
                .filter(
                    Prerrequisito.materia_id == materia.id,
                    Prerrequisito.prerrequisito_id == requerida.id,
                )
                .first()
            )
            if existe is None:
                db.add(Prerrequisito(materia_id=materia.id, prerrequisito_id=requerida.id))

        if db.query(PeriodoAcademico).filter(PeriodoAcademico.codigo == periodo_codigo).first() is None:
            db.add(
                PeriodoAcademico(
                    codigo=periodo_codigo,
                    nombre=f"Período {periodo_codigo}",
                    fecha_inicio=date(anio, 1 if periodo_codigo.endswith("1") else 8, 1),
                )
            )

        docentes = []
        for datos in DOCENTES:
            usuario = _usuario(db, datos["username"], PASSWORD_DEFAULT, RolUsuario.TEACHER)
            docente = usuario.docente
            if docente is None:
                docente = Docente(
                    usuario_id=usuario.id,
                    nombre=datos["nombre"],
                    apellido_paterno=datos["apellido_paterno"],
                    departamento=datos["departamento"],
                )
                db.add(docente)
                db.flush()
                creados["docentes"] += 1
            docentes.append(docente)

        for datos in ESTUDIANTES:
            usuario = _usuario(db, datos["username"], PASSWORD_DEFAULT, RolUsuario.STUDENT)
            if usuario.estudiante is None:
                db.add(
                    Estudiante(
                        usuario_id=usuario.id,
                        matricula=siguiente_matricula(db, anio),
                        nombre=datos["nombre"],
                        apellido_paterno=datos["apellido_paterno"],
                        carrera_id=carreras["ISC"].id,
                        semestre=datos["semestre"],
                        nivel_ingles_actual=datos.get("nivel_ingles_actual"),
                    )
                )
                db.flush()
                creados["estudiantes"] += 1

        grupos = [
            {"nombre": "A", "materia": "INF110", "docente": docentes[1]},
            {"nombre": "A", "materia": "MAT101", "docente": docentes[0]},
            {"nombre": "B", "materia": "MAT101", "docente": docentes[0], "modalidad": Modalidad.EN_LINEA},
        ] + [
            {"nombre": f"ING-{nivel}", "materia": "ING", "docente": docentes[2], "nivel_ingles": nivel}
            for nivel in range(1, 7)
        ]
        for datos in grupos:
            materia = materias[datos["materia"]]
            existe = (
                db.query(Grupo)
                .filter(
                    Grupo.nombre == datos["nombre"],
                    Grupo.materia_id == materia.id,
                    Grupo.periodo == periodo_codigo,
                )
                .first()
            )
            if existe is None:
                db.add(
                    Grupo(
                        nombre=datos["nombre"],
                        periodo=periodo_codigo,
                        materia_id=materia.id,
                        docente_id=datos["docente"].id,
                        cupo_minimo=5,
                        cupo_maximo=25 if datos.get("nivel_ingles") else 30,
                        cupo_actual=0,
                        modalidad=datos.get("modalidad", Modalidad.PRESENCIAL),
                        nivel_ingles=datos.get("nivel_ingles"),
                    )
                )
                creados["grupos"] += 1

        nombre_examen = f"Examen diagnóstico de inglés {periodo_codigo}"
        if db.query(PeriodoExamen).filter(PeriodoExamen.nombre == nombre_examen).first() is None:
            hoy = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
            db.add(
                PeriodoExamen(
                    nombre=nombre_examen,
                    fecha_inscripcion_inicio=hoy,
                    fecha_inscripcion_fin=hoy + timedelta(days=14),
                    fecha_inicio=hoy + timedelta(days=21),
                    fecha_fin=hoy + timedelta(days=22),
                    cupo_maximo=100,
                    cupo_actual=0,
                    estatus=EstatusPeriodoExamen.ABIERTO,
                )
            )

        db.flush()
        creados["usuarios"] = db.query(Usuario).count() - usuarios_antes

    logger.info("✅ Seeding completado: %s", creados)
    return creados
