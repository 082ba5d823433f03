import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "clave-de-pruebas-con-mas-de-32-caracteres")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from sistema_escolar.config.database import Base, SessionLocal, configure_engine, get_db
from sistema_escolar.core.estudiantes import crear_docente, crear_estudiante, crear_usuario
from sistema_escolar.core.security import create_access_token
from sistema_escolar.models import Grupo, Materia, PeriodoExamen
from sistema_escolar.models.enums import EstatusPeriodoExamen, RolUsuario
from sistema_escolar.schemas.docente import DocenteCreate
from sistema_escolar.schemas.estudiante import EstudianteCreate


@pytest.fixture
def engine():
    engine = configure_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


class Fabrica:
    """Crea registros mínimos para las pruebas"""

    def __init__(self, db):
        self.db = db
        self._n = 0

    def _siguiente(self) -> int:
        self._n += 1
        return self._n

    def estudiante(self, nivel_ingles=None, anio=None, **extra):
        n = self._siguiente()
        datos = {
            "username": f"alumno{n}",
            "password": "123456",
            "nombre": f"Alumno{n}",
            "apellido_paterno": "Prueba",
            "nivel_ingles_actual": nivel_ingles,
        }
        datos.update(extra)
        return crear_estudiante(self.db, EstudianteCreate(**datos), anio=anio)

    def docente(self):
        n = self._siguiente()
        return crear_docente(
            self.db,
            DocenteCreate(
                username=f"docente{n}",
                password="123456",
                nombre=f"Docente{n}",
                apellido_paterno="Prueba",
            ),
        )

    def materia(self, clave=None, creditos=5):
        materia = Materia(
            clave=clave or f"MAT{self._siguiente():03d}",
            nombre="Materia de prueba",
            creditos=creditos,
        )
        self.db.add(materia)
        self.db.commit()
        return materia

    def grupo(self, cupo_maximo=30, nivel_ingles=None, docente=None, materia=None):
        grupo = Grupo(
            nombre=f"G{self._siguiente()}",
            periodo="2025-1",
            materia_id=(materia or self.materia()).id,
            docente_id=docente.id if docente is not None else None,
            cupo_minimo=1,
            cupo_maximo=cupo_maximo,
            cupo_actual=0,
            nivel_ingles=nivel_ingles,
        )
        self.db.add(grupo)
        self.db.commit()
        return grupo

    def periodo_examen(
        self,
        inicio_inscripcion=None,
        fin_inscripcion=None,
        cupo_maximo=100,
        estatus=EstatusPeriodoExamen.ABIERTO,
        requiere_pago=False,
    ):
        ahora = datetime.utcnow()
        inicio_inscripcion = inicio_inscripcion or ahora - timedelta(days=1)
        fin_inscripcion = fin_inscripcion or ahora + timedelta(days=7)
        periodo = PeriodoExamen(
            nombre=f"Diagnóstico {self._siguiente()}",
            fecha_inscripcion_inicio=inicio_inscripcion,
            fecha_inscripcion_fin=fin_inscripcion,
            fecha_inicio=fin_inscripcion + timedelta(days=1),
            fecha_fin=fin_inscripcion + timedelta(days=2),
            cupo_maximo=cupo_maximo,
            cupo_actual=0,
            estatus=estatus,
            requiere_pago=requiere_pago,
        )
        self.db.add(periodo)
        self.db.commit()
        return periodo


@pytest.fixture
def fabrica(db):
    return Fabrica(db)


@pytest.fixture
def admin(db):
    usuario = crear_usuario(db, "admin", "admin123", RolUsuario.ADMIN)
    db.commit()
    return usuario


@pytest.fixture
def client(db):
    from sistema_escolar.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers_de():
    def _headers(usuario) -> dict:
        return {"Authorization": f"Bearer {create_access_token(subject=usuario.id)}"}

    return _headers


@pytest.fixture
def admin_headers(admin, headers_de):
    return headers_de(admin)
