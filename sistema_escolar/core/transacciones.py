import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sistema_escolar.core.exceptions import SistemaEscolarError, TransactionAbortError

logger = logging.getLogger(__name__)


@contextmanager
def unidad_de_trabajo(db: Session, nombre: str = "operacion") -> Iterator[Session]:
    """Ejecutar un bloque de escrituras como una sola unidad todo-o-nada.

    Hace commit al salir sin errores. Ante cualquier error revierte todas las
    escrituras del bloque; los errores de dominio se propagan tal cual y los
    errores del almacén se reportan como un único ``TransactionAbortError``.
    """
    try:
        yield db
        db.commit()
    except SistemaEscolarError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Transacción '%s' revertida: %s", nombre, e)
        raise TransactionAbortError() from e
    except BaseException:
        db.rollback()
        raise
