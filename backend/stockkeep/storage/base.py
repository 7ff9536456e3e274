# Overview: Storage port shared by the structured and document backends.

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional

from .query import Query, Eq

"""
Storage Port Invariants (authoritative)

- Four collections: users, categories, items, transactions.
- Every row is a flat dict of JSON-safe values keyed by its string "id".
- Filtering, ordering and paging semantics are defined by storage.query;
  adapters interpret Query objects and never invent query rules of their own.
- Outside atomic(), each write is durable when the call returns.
- Inside atomic(), writes become durable together when the outermost block
  exits cleanly, and are all discarded if it exits with an exception.
"""

COLLECTIONS = ("users", "categories", "items", "transactions")


class StorageIntegrityError(Exception):
    """A write violated a collection constraint (unique key, CHECK rule)."""


class StorageBackend(ABC):
    name: str = "abstract"

    def _require_collection(self, collection: str) -> None:
        if collection not in COLLECTIONS:
            raise ValueError(f"unknown collection: {collection}")

    @abstractmethod
    def create_schema(self) -> None:
        """Create all collections. Safe to call repeatedly."""

    @abstractmethod
    def drop_schema(self) -> None:
        """Destroy all collections and their rows."""

    @abstractmethod
    def insert(self, collection: str, row: dict) -> None:
        ...

    @abstractmethod
    def update(self, collection: str, record_id: str, changes: dict) -> int:
        """Merge changes into one row. Returns rows affected (0 or 1)."""

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> int:
        ...

    @abstractmethod
    def delete_where(self, collection: str, query: Query) -> int:
        ...

    @abstractmethod
    def query(self, collection: str, query: Query) -> list[dict]:
        ...

    @abstractmethod
    def count(self, collection: str, query: Query) -> int:
        ...

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Group writes into one all-or-nothing unit. Nests."""

    def get(self, collection: str, record_id: str) -> Optional[dict]:
        return self.first(collection, Query(where=(Eq("id", record_id),)))

    def first(self, collection: str, query: Query) -> Optional[dict]:
        rows = self.query(collection, query.first_only())
        return rows[0] if rows else None

    def exists(self, collection: str, query: Query) -> bool:
        return self.first(collection, query) is not None
