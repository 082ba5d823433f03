from datetime import datetime
from typing import Any, Dict, Generic, Optional, Type, TypeVar, Union

from pydantic import BaseModel as SchemaBase
from sqlalchemy.orm import Session

from sistema_escolar.models.base import BaseModel

ModelType = TypeVar("ModelType", bound=BaseModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=SchemaBase)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=SchemaBase)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Operaciones básicas sobre un modelo.

    Los métodos hacen ``flush`` pero nunca ``commit``: el commit lo decide la
    unidad de trabajo que envuelve la operación.
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def _vigentes(self, db: Session):
        query = db.query(self.model)
        if hasattr(self.model, "deleted_at"):
            query = query.filter(self.model.deleted_at.is_(None))
        return query

    def get(self, db: Session, id: str, *, incluir_eliminados: bool = False) -> Optional[ModelType]:
        query = db.query(self.model) if incluir_eliminados else self._vigentes(db)
        return query.filter(self.model.id == id).first()

    def create(self, db: Session, *, obj_in: Union[CreateSchemaType, Dict[str, Any]]) -> ModelType:
        data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump()
        db_obj = self.model(**data)
        db.add(db_obj)
        db.flush()
        return db_obj

    def update(
        self,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]],
    ) -> ModelType:
        data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for field, value in data.items():
            setattr(db_obj, field, value)
        db.add(db_obj)
        db.flush()
        return db_obj

    def soft_delete(self, db: Session, *, db_obj: ModelType) -> ModelType:
        db_obj.deleted_at = datetime.utcnow()
        db.add(db_obj)
        db.flush()
        return db_obj
