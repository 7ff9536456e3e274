# Overview: Storage port and the factory that picks a backend from app config.

from .base import COLLECTIONS, StorageBackend, StorageIntegrityError
from .query import ASC, DESC, Contains, Eq, FieldLte, Gte, Lte, Ne, Query


def make_backend(app) -> StorageBackend:
    """Build the backend named by STORAGE_BACKEND ("sql" or "document")."""
    kind = (app.config.get("STORAGE_BACKEND") or "sql").strip().lower()
    if kind == "sql":
        from .sql import SqlBackend
        return SqlBackend()
    if kind == "document":
        from .document import DocumentBackend
        return DocumentBackend(app.config.get("DOCUMENT_STORE_PATH") or None)
    raise ValueError(f"Unknown STORAGE_BACKEND: {kind!r}")


__all__ = [
    "COLLECTIONS",
    "StorageBackend",
    "StorageIntegrityError",
    "make_backend",
    "Query",
    "ASC",
    "DESC",
    "Eq",
    "Ne",
    "Gte",
    "Lte",
    "Contains",
    "FieldLte",
]
