"""Paginación por página/límite para los listados de la API."""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Query
from sqlalchemy.orm import Query as SAQuery

from sistema_escolar.config.settings import settings
from sistema_escolar.core.exceptions import ValidationError


@dataclass
class ParametrosPaginacion:
    page: int = 1
    limit: int = settings.default_page_size
    sort_by: Optional[str] = None
    sort_order: str = "asc"


def parametros_paginacion(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    sortBy: Optional[str] = Query(None),
    sortOrder: str = Query("asc", pattern="^(asc|desc)$"),
) -> ParametrosPaginacion:
    """Dependencia de FastAPI con los parámetros comunes de listado"""
    return ParametrosPaginacion(page=page, limit=limit, sort_by=sortBy, sort_order=sortOrder)


class Paginador:
    """Aplica orden, desplazamiento y límite a una consulta y arma los metadatos"""

    def __init__(self, default_page_size: int = None, max_page_size: int = None):
        self.default_page_size = default_page_size or settings.default_page_size
        self.max_page_size = max_page_size or settings.max_page_size

    def paginar(
        self,
        query: SAQuery,
        params: ParametrosPaginacion,
        campos_orden: Dict[str, Any],
        orden_default=None,
    ) -> Tuple[List[Any], Dict[str, int]]:
        limit = min(params.limit or self.default_page_size, self.max_page_size)
        page = max(params.page, 1)

        if params.sort_by:
            columna = campos_orden.get(params.sort_by)
            if columna is None:
                raise ValidationError(
                    f"No se puede ordenar por '{params.sort_by}'",
                    {"permitidos": sorted(campos_orden)},
                )
            query = query.order_by(
                columna.desc() if params.sort_order == "desc" else columna.asc()
            )
        elif orden_default is not None:
            query = query.order_by(orden_default)

        total = query.order_by(None).count()
        items = query.offset((page - 1) * limit).limit(limit).all()

        return items, {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit) if total else 0,
        }


paginador = Paginador()


def respuesta_paginada(items: List[Any], pagination: Dict[str, int]) -> Dict[str, Any]:
    return {"items": items, "pagination": pagination}
