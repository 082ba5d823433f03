from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from sistema_escolar.crud.base import CRUDBase
from sistema_escolar.models.estudiante import Estudiante
from sistema_escolar.models.grupo import Grupo
from sistema_escolar.models.inscripcion import HistorialInscripcion, Inscripcion
from sistema_escolar.schemas.inscripcion import InscripcionCreate, InscripcionCalificaciones


class CRUDInscripcion(CRUDBase[Inscripcion, InscripcionCreate, InscripcionCalificaciones]):
    def get_with_relations(self, db: Session, id: str) -> Optional[Inscripcion]:
        return (
            self._vigentes(db)
            .options(
                joinedload(Inscripcion.estudiante),
                joinedload(Inscripcion.grupo).joinedload(Grupo.materia),
                joinedload(Inscripcion.grupo).joinedload(Grupo.docente),
            )
            .filter(Inscripcion.id == id)
            .first()
        )

    def get_by_estudiante_grupo(
        self, db: Session, estudiante_id: str, grupo_id: str
    ) -> Optional[Inscripcion]:
        # Incluye eliminadas: el par (estudiante, grupo) es único en la tabla
        return (
            db.query(Inscripcion)
            .filter(
                Inscripcion.estudiante_id == estudiante_id,
                Inscripcion.grupo_id == grupo_id,
            )
            .first()
        )

    def get_by_estudiante(self, db: Session, estudiante_id: str) -> List[Inscripcion]:
        return (
            self._vigentes(db)
            .options(joinedload(Inscripcion.grupo))
            .filter(Inscripcion.estudiante_id == estudiante_id)
            .all()
        )

    def get_by_grupo(self, db: Session, grupo_id: str) -> List[Inscripcion]:
        return (
            self._vigentes(db)
            .options(joinedload(Inscripcion.estudiante))
            .filter(Inscripcion.grupo_id == grupo_id)
            .join(Estudiante, Estudiante.id == Inscripcion.estudiante_id)
            .order_by(Estudiante.apellido_paterno.asc(), Estudiante.nombre.asc())
            .all()
        )

    def registrar_historial(
        self,
        db: Session,
        inscripcion: Inscripcion,
        accion: str,
        *,
        campo: Optional[str] = None,
        valor_anterior=None,
        valor_nuevo=None,
        descripcion: Optional[str] = None,
        realizado_por: Optional[str] = None,
    ) -> HistorialInscripcion:
        entrada = HistorialInscripcion(
            inscripcion_id=inscripcion.id,
            accion=accion,
            campo=campo,
            valor_anterior=None if valor_anterior is None else str(valor_anterior),
            valor_nuevo=None if valor_nuevo is None else str(valor_nuevo),
            descripcion=descripcion,
            realizado_por=realizado_por,
        )
        db.add(entrada)
        db.flush()
        return entrada


inscripcion = CRUDInscripcion(Inscripcion)
