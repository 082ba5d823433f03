from typing import Optional

from sqlalchemy.orm import Session, joinedload

from sistema_escolar.crud.base import CRUDBase
from sistema_escolar.models.estudiante import Estudiante
from sistema_escolar.schemas.estudiante import EstudianteCreate, EstudianteUpdate


class CRUDEstudiante(CRUDBase[Estudiante, EstudianteCreate, EstudianteUpdate]):
    def get_by_usuario(self, db: Session, *, usuario_id: str) -> Optional[Estudiante]:
        return self._vigentes(db).filter(Estudiante.usuario_id == usuario_id).first()

    def get_with_relations(self, db: Session, id: str) -> Optional[Estudiante]:
        return (
            self._vigentes(db)
            .options(
                joinedload(Estudiante.usuario),
                joinedload(Estudiante.carrera),
            )
            .filter(Estudiante.id == id)
            .first()
        )


estudiante = CRUDEstudiante(Estudiante)
