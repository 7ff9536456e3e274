# Overview: Structured backend on Flask-SQLAlchemy; translates Query objects
# into SQLAlchemy criteria over the ORM models.

from __future__ import annotations

import threading
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import UserRow, CategoryRow, ItemRow, TransactionRow
from .base import StorageBackend, StorageIntegrityError
from .query import (
    DESC,
    Condition,
    Contains,
    Eq,
    FieldLte,
    Gte,
    Lte,
    Ne,
    Query,
)

MODELS = {
    "users": UserRow,
    "categories": CategoryRow,
    "items": ItemRow,
    "transactions": TransactionRow,
}


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlBackend(StorageBackend):
    """
    Requires an active Flask application context (db.session is app-scoped).

    Atomic depth is tracked per thread, matching the thread-scoped session.
    """
    name = "sql"

    def __init__(self):
        self._local = threading.local()

    @property
    def session(self):
        return db.session

    @property
    def _depth(self) -> int:
        return getattr(self._local, "depth", 0)

    @_depth.setter
    def _depth(self, value: int) -> None:
        self._local.depth = value

    def _model(self, collection: str):
        self._require_collection(collection)
        return MODELS[collection]

    def create_schema(self) -> None:
        # create_all checks for existing tables first
        db.create_all()

    def drop_schema(self) -> None:
        self.session.rollback()
        db.drop_all()

    @contextmanager
    def atomic(self):
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if self._depth == 0:
                self.session.rollback()
            raise
        else:
            self._depth -= 1
            if self._depth == 0:
                self._commit_now()

    def _commit_now(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise StorageIntegrityError(str(exc.orig)) from exc

    def _flush(self) -> None:
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            raise StorageIntegrityError(str(exc.orig)) from exc
        if self._depth == 0:
            self._commit_now()

    def insert(self, collection: str, row: dict) -> None:
        model = self._model(collection)
        self.session.add(model(**row))
        self._flush()

    def update(self, collection: str, record_id: str, changes: dict) -> int:
        model = self._model(collection)
        obj = self.session.get(model, record_id)
        if obj is None:
            return 0
        for key, value in changes.items():
            setattr(obj, key, value)
        self._flush()
        return 1

    def delete(self, collection: str, record_id: str) -> int:
        model = self._model(collection)
        obj = self.session.get(model, record_id)
        if obj is None:
            return 0
        self.session.delete(obj)
        self._flush()
        return 1

    def delete_where(self, collection: str, query: Query) -> int:
        model = self._model(collection)
        doomed = self._select(model, query.unpaged()).all()
        for obj in doomed:
            self.session.delete(obj)
        self._flush()
        return len(doomed)

    def query(self, collection: str, query: Query) -> list[dict]:
        model = self._model(collection)
        return [obj.to_dict() for obj in self._select(model, query).all()]

    def count(self, collection: str, query: Query) -> int:
        model = self._model(collection)
        return self._select(model, Query(where=query.where)).count()

    def _select(self, model, query: Query):
        q = self.session.query(model)
        for cond in query.where:
            q = q.filter(self._compile(model, cond))
        for field, direction in query.order_by:
            col = getattr(model, field)
            q = q.order_by(col.desc() if direction == DESC else col.asc())
        if query.offset:
            q = q.offset(query.offset)
        if query.limit is not None:
            q = q.limit(query.limit)
        return q

    def _compile(self, model, cond: Condition):
        col = getattr(model, cond.field)
        if isinstance(cond, Eq):
            return col.is_(None) if cond.value is None else col == cond.value
        if isinstance(cond, Ne):
            return col.isnot(None) if cond.value is None else col != cond.value
        if isinstance(cond, Gte):
            return col >= cond.value
        if isinstance(cond, Lte):
            return col <= cond.value
        if isinstance(cond, Contains):
            return col.ilike(f"%{_escape_like(cond.text)}%", escape="\\")
        if isinstance(cond, FieldLte):
            return col <= getattr(model, cond.other)
        raise ValueError(f"unsupported condition: {type(cond).__name__}")


__all__ = ["SqlBackend", "MODELS"]
