import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from sistema_escolar.api.v1.router import api_router
from sistema_escolar.config.database import SessionLocal, close_db, configure_engine, init_db
from sistema_escolar.config.logging_config import configure_logging
from sistema_escolar.config.settings import settings
from sistema_escolar.core.exceptions import SistemaEscolarError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Inicializar logging y base de datos; liberar conexiones al terminar"""
    configure_logging()
    logger.info("🚀 Iniciando Sistema Escolar (%s)...", settings.environment)
    configure_engine()
    init_db()
    logger.info("🎉 Sistema listo!")
    yield
    close_db()


app = FastAPI(
    title="Sistema Escolar API",
    description="""
    ## Sistema Escolar 🎓

    - 📝 **Inscripciones** con control de cupo atómico
    - 🗣️ **Inglés**: niveles 1-6, examen diagnóstico y cursos especiales
    - 📅 **Períodos de examen** con desglose de disponibilidad
    - 📊 **Reportes** de diagnóstico operativo

    ### **Credenciales de Prueba:**
    - admin / admin123
    - estudiante1 / 123456
    - docente1 / 123456
    """,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SistemaEscolarError)
def sistema_escolar_error_handler(request: Request, exc: SistemaEscolarError):
    if exc.status_code >= 500:
        logger.error("Error en %s %s: %s", request.method, request.url.path, exc.mensaje)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(HTTPException)
def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
def request_validation_error_handler(request: Request, exc: RequestValidationError):
    detalles = [
        {"campo": ".".join(str(p) for p in e["loc"]), "mensaje": e["msg"]}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={"error": "Datos de entrada inválidos", "detalles": detalles},
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/", tags=["🏠 General"])
def root():
    return {
        "message": "Sistema Escolar API v1.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health", tags=["🏠 General"])
def health_check():
    """Verificación de salud: responde degradado si la base no contesta"""
    health_data = {
        "status": "healthy",
        "service": "sistema-escolar",
        "version": "1.0.0",
        "environment": settings.environment,
    }
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        health_data["database"] = "ok"
    except Exception as e:
        logger.warning("Health check sin base de datos: %s", e)
        health_data.update({"status": "degraded", "database": "error"})
    return health_data
