import logging
import time
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.pool import StaticPool

from .settings import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# Se enlaza al engine en configure_engine(); el punto de entrada decide cuándo.
SessionLocal = sessionmaker(autocommit=False, autoflush=True, expire_on_commit=False)

_engine: Engine = None


def build_engine(url: str, echo: bool = False) -> Engine:
    """Crear el motor de base de datos según el dialecto"""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)

    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        connect_args={"options": "-c default_transaction_isolation=read_committed"},
    )


def configure_engine(url: Optional[str] = None) -> Engine:
    """Crear el motor y enlazar la fábrica de sesiones"""
    global _engine
    _engine = build_engine(url or settings.database_url_sync, echo=settings.debug)
    SessionLocal.configure(bind=_engine)
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        return configure_engine()
    return _engine


def get_db() -> Generator[Session, None, None]:
    """Obtener una sesión de base de datos con manejo de errores adecuado"""
    get_engine()
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def test_connection(max_retries: int = 5, delay: float = 2.0) -> bool:
    for attempt in range(max_retries):
        try:
            with SessionLocal(bind=get_engine()) as session:
                session.execute(text("SELECT 1"))
                logger.info("Conexión a base de datos exitosa (intento %d)", attempt + 1)
                return True
        except Exception as e:
            logger.warning("Intento %d de conexión fallido: %s", attempt + 1, e)
            if attempt < max_retries - 1:
                time.sleep(delay)
    logger.error("Todos los intentos de conexión fallaron")
    return False


def init_db() -> None:
    from sistema_escolar import models  # noqa: F401  registra las tablas

    if not test_connection():
        raise RuntimeError("La base de datos no está disponible")

    Base.metadata.create_all(bind=get_engine())
    logger.info("Tablas inicializadas")


def close_db() -> None:
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Conexiones de base de datos cerradas")
