"""
Base repository interface for data access layer.
This follows the Repository pattern to separate business logic from data access.
"""

from typing import Generic, TypeVar, Optional, List, Type
from uuid import UUID
from sqlalchemy.orm import Session
from abc import ABC

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType], ABC):
    """
    Base repository providing common CRUD operations.
    All repositories should inherit from this class.
    """

    def __init__(self, db: Session, model: Type[ModelType]):
        self.db = db
        self.model = model

    def get_by_id(self, entity_id: UUID) -> Optional[ModelType]:
        """Get entity by primary key"""
        return self.db.get(self.model, entity_id)

    def get_all(self, skip: int = 0, limit: int = 100) -> List[ModelType]:
        """Get all entities with pagination"""
        return self.db.query(self.model).offset(skip).limit(limit).all()

    def create(self, entity: ModelType) -> ModelType:
        """Create new entity"""
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def update(self, entity: ModelType) -> ModelType:
        """Update existing entity"""
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def delete_entity(self, entity: ModelType) -> None:
        self.db.delete(entity)
        self.db.commit()

    def delete(self, entity_id: UUID) -> bool:
        """Delete entity by ID"""
        entity = self.get_by_id(entity_id)
        if entity:
            self.delete_entity(entity)
            return True
        return False

    def exists(self, entity_id: UUID) -> bool:
        """Check if entity exists"""
        return self.get_by_id(entity_id) is not None


class TenantRepository(BaseRepository[ModelType]):
    """
    Repository for rows owned by a dietitian.

    Every lookup goes through ``dietitian_id`` so one tenant can never read or
    modify another tenant's rows, whatever id the caller supplies.
    """

    def get_for_dietitian(self, dietitian_id: UUID, entity_id: UUID) -> Optional[ModelType]:
        return (
            self.db.query(self.model)
            .filter(self.model.id == entity_id, self.model.dietitian_id == dietitian_id)
            .first()
        )

    def query_for_dietitian(self, dietitian_id: UUID):
        return self.db.query(self.model).filter(self.model.dietitian_id == dietitian_id)

    def count_for_dietitian(self, dietitian_id: UUID) -> int:
        return self.query_for_dietitian(dietitian_id).count()
