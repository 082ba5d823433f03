from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from sistema_escolar.crud.base import CRUDBase
from sistema_escolar.models.enums import ESTATUS_INACTIVOS
from sistema_escolar.models.grupo import Grupo
from sistema_escolar.models.inscripcion import Inscripcion
from sistema_escolar.schemas.grupo import GrupoCreate, GrupoUpdate


class CRUDGrupo(CRUDBase[Grupo, GrupoCreate, GrupoUpdate]):
    def get_with_relations(self, db: Session, id: str) -> Optional[Grupo]:
        return (
            self._vigentes(db)
            .options(joinedload(Grupo.materia), joinedload(Grupo.docente))
            .filter(Grupo.id == id)
            .first()
        )

    def get_by_materia(self, db: Session, materia_id: str) -> List[Grupo]:
        return self._vigentes(db).filter(Grupo.materia_id == materia_id).all()

    def contar_inscripciones_activas(self, db: Session, grupo_id: str) -> int:
        return (
            db.query(Inscripcion)
            .filter(
                Inscripcion.grupo_id == grupo_id,
                Inscripcion.deleted_at.is_(None),
                Inscripcion.estatus.notin_(ESTATUS_INACTIVOS),
            )
            .count()
        )


grupo = CRUDGrupo(Grupo)
