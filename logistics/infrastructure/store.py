"""
Keyed record store on top of the shared ``records`` table.

Each entity collection gets its own ``RecordStore`` bound to a namespace.
Values are pydantic models stored as JSON documents; ``values()`` returns
them ordered by key.
"""

from typing import Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from logistics.domain.errors import StorageFault, ValidationError
from .db import Record

V = TypeVar("V", bound=BaseModel)


class RecordStore(Generic[V]):
    def __init__(self, session_factory: sessionmaker, namespace: str, model: Type[V]):
        if not namespace:
            raise ValueError("namespace must not be empty")
        self.session_factory = session_factory
        self.namespace = namespace
        self.model = model

    def _check_key(self, key: str):
        if not key:
            raise ValidationError(f"Invalid key for {self.namespace}: key must not be empty")

    def insert(self, key: str, value: V) -> None:
        """Write ``value`` at ``key``, replacing whatever was there."""
        self._check_key(key)
        try:
            with self.session_factory.begin() as session:
                session.merge(Record(namespace=self.namespace, key=key, value=value.model_dump(mode="json")))
        except SQLAlchemyError as e:
            raise StorageFault(f"Failed to insert {self.namespace}:{key}: {e}") from e

    def get(self, key: str) -> Optional[V]:
        self._check_key(key)
        try:
            with self.session_factory() as session:
                record = session.get(Record, (self.namespace, key))
                return self.model.model_validate(record.value) if record else None
        except SQLAlchemyError as e:
            raise StorageFault(f"Failed to read {self.namespace}:{key}: {e}") from e

    def contains(self, key: str) -> bool:
        return self.get(key) is not None

    def remove(self, key: str) -> Optional[V]:
        """Delete ``key`` and return the value it held, or None if absent."""
        self._check_key(key)
        try:
            with self.session_factory.begin() as session:
                record = session.get(Record, (self.namespace, key))
                if record is None:
                    return None
                value = self.model.model_validate(record.value)
                session.delete(record)
                return value
        except SQLAlchemyError as e:
            raise StorageFault(f"Failed to remove {self.namespace}:{key}: {e}") from e

    def values(self) -> List[V]:
        try:
            with self.session_factory() as session:
                rows = session.scalars(
                    select(Record).where(Record.namespace == self.namespace).order_by(Record.key)
                ).all()
                return [self.model.model_validate(r.value) for r in rows]
        except SQLAlchemyError as e:
            raise StorageFault(f"Failed to list {self.namespace}: {e}") from e

    def __len__(self) -> int:
        try:
            with self.session_factory() as session:
                return session.scalar(
                    select(func.count()).select_from(Record).where(Record.namespace == self.namespace)
                )
        except SQLAlchemyError as e:
            raise StorageFault(f"Failed to count {self.namespace}: {e}") from e
