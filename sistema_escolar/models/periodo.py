from sqlalchemy import Column, Date, String

from .base import BaseModel


class PeriodoAcademico(BaseModel):
    __tablename__ = "academic_periods"

    codigo = Column(String(10), unique=True, nullable=False, index=True)
    nombre = Column(String(100), nullable=False)
    fecha_inicio = Column(Date, nullable=True)
    fecha_fin = Column(Date, nullable=True)
