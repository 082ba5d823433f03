from sqlalchemy import Boolean, Column, Enum, String
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import RolUsuario


class Usuario(BaseModel):
    __tablename__ = "users"

    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    rol = Column(Enum(RolUsuario, native_enum=False), nullable=False)
    email = Column(String(120), nullable=True)
    activo = Column(Boolean, default=True, nullable=False)

    # Relationships
    estudiante = relationship("Estudiante", back_populates="usuario", uselist=False)
    docente = relationship("Docente", back_populates="usuario", uselist=False)
