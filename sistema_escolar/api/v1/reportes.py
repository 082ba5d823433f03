from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sistema_escolar.api.deps import require_admin
from sistema_escolar.config.database import get_db
from sistema_escolar.core import reportes

router = APIRouter()


@router.get("/periodos-examen")
def reporte_periodos(
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    """Diagnóstico de cada período de examen con sus condiciones"""
    return {"periodos": reportes.diagnostico_periodos(db)}


@router.get("/cupos")
def reporte_cupos(
    periodo: Optional[str] = Query(None, pattern=r"^\d{4}-[12]$"),
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return {"grupos": reportes.resumen_cupos(db, periodo)}


@router.get("/ingles/{estudiante_id}")
def reporte_ingles(
    estudiante_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(require_admin),
):
    return reportes.diagnostico_ingles(db, estudiante_id)
