import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String

from sistema_escolar.config.database import Base


def generar_uuid() -> str:
    return str(uuid.uuid4())


def ahora() -> datetime:
    return datetime.utcnow()


class BaseModel(Base):
    __abstract__ = True

    id = Column(String(36), primary_key=True, default=generar_uuid)
    created_at = Column(DateTime, default=ahora, nullable=False)
    updated_at = Column(DateTime, default=ahora, onupdate=ahora, nullable=False)


class SoftDeleteMixin:
    deleted_at = Column(DateTime, nullable=True, index=True)

    @property
    def eliminado(self) -> bool:
        return self.deleted_at is not None
