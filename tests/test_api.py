from datetime import datetime

from sistema_escolar.core.estudiantes import crear_usuario
from sistema_escolar.models.enums import RolUsuario

API = "/api/v1"


def test_login_y_usuario_actual(client, admin):
    respuesta = client.post(f"{API}/auth/login", json={"username": "admin", "password": "admin123"})
    assert respuesta.status_code == 200
    token = respuesta.json()
    assert token["rol"] == "ADMIN"

    yo = client.get(
        f"{API}/auth/me", headers={"Authorization": f"Bearer {token['access_token']}"}
    )
    assert yo.status_code == 200
    assert yo.json()["username"] == "admin"


def test_login_incorrecto(client, admin):
    respuesta = client.post(f"{API}/auth/login", json={"username": "admin", "password": "otra"})

    assert respuesta.status_code == 401
    assert respuesta.json() == {"error": "Usuario o contraseña incorrectos"}


def test_token_invalido_o_ausente(client):
    invalido = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer basura"})
    assert invalido.status_code == 401

    sin_token = client.get(f"{API}/auth/me")
    assert sin_token.status_code in (401, 403)
    assert "error" in sin_token.json()


def test_alta_y_listado_de_estudiantes(client, admin_headers):
    respuesta = client.post(
        f"{API}/estudiantes/",
        headers=admin_headers,
        json={
            "username": "nuevo",
            "password": "123456",
            "nombre": "Nuevo",
            "apellido_paterno": "Ingreso",
            "curp": "gomj000101hdfrrna1",
        },
    )
    assert respuesta.status_code == 201
    creado = respuesta.json()
    assert creado["matricula"].endswith("-000001")
    assert creado["curp"] == "GOMJ000101HDFRRNA1"
    assert creado["nombre_completo"] == "Nuevo Ingreso"

    listado = client.get(f"{API}/estudiantes/", headers=admin_headers, params={"limit": 5})
    assert listado.status_code == 200
    cuerpo = listado.json()
    assert cuerpo["pagination"] == {"page": 1, "limit": 5, "total": 1, "totalPages": 1}
    assert [e["id"] for e in cuerpo["items"]] == [creado["id"]]


def test_sobres_de_error(client, admin_headers):
    no_existe = client.get(f"{API}/estudiantes/no-existe", headers=admin_headers)
    assert no_existe.status_code == 404
    assert set(no_existe.json()) == {"error"}

    campo_extra = client.post(
        f"{API}/estudiantes/",
        headers=admin_headers,
        json={
            "username": "x" * 5,
            "password": "123456",
            "nombre": "A",
            "apellido_paterno": "B",
            "sobrante": True,
        },
    )
    assert campo_extra.status_code == 422
    cuerpo = campo_extra.json()
    assert cuerpo["error"] == "Datos de entrada inválidos"
    assert any(d["campo"].endswith("sobrante") for d in cuerpo["detalles"])

    orden = client.get(f"{API}/estudiantes/", headers=admin_headers, params={"sortBy": "password"})
    assert orden.status_code == 422
    assert "matricula" in orden.json()["detalles"]["permitidos"]


def test_inscripcion_por_api(client, admin_headers, fabrica):
    grupo = fabrica.grupo(cupo_maximo=1)
    primero = fabrica.estudiante()
    segundo = fabrica.estudiante()

    creada = client.post(
        f"{API}/inscripciones/",
        headers=admin_headers,
        json={"estudiante_id": primero.id, "grupo_id": grupo.id},
    )
    assert creada.status_code == 201
    assert creada.json()["estatus"] == "INSCRITO"

    llena = client.post(
        f"{API}/inscripciones/",
        headers=admin_headers,
        json={"estudiante_id": segundo.id, "grupo_id": grupo.id},
    )
    assert llena.status_code == 409
    assert llena.json()["detalles"]["cupo_maximo"] == 1


def test_nivel_de_ingles_negado_por_api(client, admin_headers, fabrica):
    estudiante = fabrica.estudiante(nivel_ingles=2)
    grupo = fabrica.grupo(nivel_ingles=3)

    respuesta = client.post(
        f"{API}/inscripciones/",
        headers=admin_headers,
        json={"estudiante_id": estudiante.id, "grupo_id": grupo.id},
    )

    assert respuesta.status_code == 409
    assert respuesta.json()["detalles"]["motivo"] == "NIVEL_DISTINTO"


def test_estudiante_no_accede_a_rutas_de_admin(client, fabrica, headers_de):
    estudiante = fabrica.estudiante()

    respuesta = client.get(f"{API}/estudiantes/", headers=headers_de(estudiante.usuario))
    assert respuesta.status_code == 403

    propio = client.get(f"{API}/estudiantes/me", headers=headers_de(estudiante.usuario))
    assert propio.status_code == 200
    assert propio.json()["matricula"] == estudiante.matricula


def test_docente_no_ve_grupos_ajenos(client, fabrica, headers_de):
    propio = fabrica.docente()
    ajeno = fabrica.docente()
    grupo = fabrica.grupo(docente=ajeno)

    respuesta = client.get(
        f"{API}/inscripciones/grupo/{grupo.id}", headers=headers_de(propio.usuario)
    )

    assert respuesta.status_code == 403


def test_estudiante_se_registra_al_examen(client, fabrica, headers_de):
    estudiante = fabrica.estudiante()
    periodo = fabrica.periodo_examen()

    disponibles = client.get(
        f"{API}/periodos-examen/disponibles", headers=headers_de(estudiante.usuario)
    )
    assert [p["id"] for p in disponibles.json()] == [periodo.id]
    assert disponibles.json()[0]["esta_disponible"] is True

    respuesta = client.post(
        f"{API}/periodos-examen/{periodo.id}/inscribirse",
        headers=headers_de(estudiante.usuario),
        json={},
    )
    assert respuesta.status_code == 201
    assert respuesta.json()["estudiante_id"] == estudiante.id

    ajeno = client.post(
        f"{API}/periodos-examen/{periodo.id}/inscribirse",
        headers=headers_de(estudiante.usuario),
        json={"estudiante_id": fabrica.estudiante().id},
    )
    assert ajeno.status_code == 403


def test_carreras_con_conteo(client, admin_headers, fabrica):
    creada = client.post(
        f"{API}/carreras/",
        headers=admin_headers,
        json={"clave": "ISC", "nombre": "Ingeniería en Sistemas"},
    )
    assert creada.status_code == 201
    carrera_id = creada.json()["id"]
    fabrica.estudiante(carrera_id=carrera_id)

    repetida = client.post(
        f"{API}/carreras/", headers=admin_headers, json={"clave": "ISC", "nombre": "Otra"}
    )
    assert repetida.status_code == 409

    listado = client.get(f"{API}/carreras/", headers=admin_headers, params={"search": "sistemas"})
    (carrera,) = listado.json()["items"]
    assert carrera["estudiantes_count"] == 1


def test_usuario_inactivo_no_inicia_sesion(client, db):
    usuario = crear_usuario(db, "baja", "123456", RolUsuario.STUDENT)
    usuario.activo = False
    db.commit()

    respuesta = client.post(f"{API}/auth/login", json={"username": "baja", "password": "123456"})

    assert respuesta.status_code == 401


def test_health(client):
    respuesta = client.get("/health")

    assert respuesta.status_code == 200
    assert respuesta.json()["status"] == "healthy"


def test_nulo_en_contadores_es_422(client, admin_headers, fabrica):
    grupo = fabrica.grupo()
    creada = client.post(
        f"{API}/inscripciones/",
        headers=admin_headers,
        json={"estudiante_id": fabrica.estudiante().id, "grupo_id": grupo.id},
    ).json()

    respuesta = client.put(
        f"{API}/inscripciones/{creada['id']}/calificaciones",
        headers=admin_headers,
        json={"asistencias": None},
    )

    assert respuesta.status_code == 422
    assert any(d["campo"].endswith("asistencias") for d in respuesta.json()["detalles"])


def test_periodo_con_fecha_utc_por_api(client, admin_headers, fabrica):
    periodo = fabrica.periodo_examen()
    cierre = periodo.fecha_inscripcion_fin.replace(microsecond=0)

    respuesta = client.put(
        f"{API}/periodos-examen/{periodo.id}",
        headers=admin_headers,
        json={"fecha_inscripcion_fin": cierre.isoformat() + "Z"},
    )

    assert respuesta.status_code == 200
    assert respuesta.json()["fecha_inscripcion_fin"] == cierre.isoformat()


def test_busqueda_global(client, admin_headers, fabrica, db):
    valeria = fabrica.estudiante(nombre="Valeria")
    valentina = fabrica.estudiante(nombre="Valentina")
    fabrica.docente()
    fabrica.grupo()

    todo = client.get(
        f"{API}/busqueda/", headers=admin_headers, params={"q": "prueba", "limite": 1}
    )
    assert todo.status_code == 200
    cuerpo = todo.json()
    assert [len(cuerpo[t]) for t in ("estudiantes", "docentes", "materias", "grupos")] == [
        1,
        1,
        1,
        1,
    ]
    assert cuerpo["total"] == 4

    nombres = client.get(f"{API}/busqueda/", headers=admin_headers, params={"q": "vale"})
    assert sorted(e["id"] for e in nombres.json()["estudiantes"]) == sorted(
        [valeria.id, valentina.id]
    )
    assert nombres.json()["total"] == 2

    valentina.deleted_at = datetime.utcnow()
    db.commit()
    filtrada = client.get(
        f"{API}/busqueda/",
        headers=admin_headers,
        params={"q": "vale", "tipos": ["estudiantes", "materias"]},
    )
    assert [e["id"] for e in filtrada.json()["estudiantes"]] == [valeria.id]
    assert filtrada.json()["docentes"] == []


def test_busqueda_valida_termino_y_rol(client, admin_headers, fabrica, headers_de):
    corta = client.get(f"{API}/busqueda/", headers=admin_headers, params={"q": "a"})
    assert corta.status_code == 422

    estudiante = fabrica.estudiante()
    ajena = client.get(
        f"{API}/busqueda/", headers=headers_de(estudiante.usuario), params={"q": "prueba"}
    )
    assert ajena.status_code == 403
