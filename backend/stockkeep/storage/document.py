# Overview: Document backend; one JSON array per collection, kept in memory and
# optionally mirrored to a directory on disk.

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from typing import Optional

from .base import COLLECTIONS, StorageBackend, StorageIntegrityError
from .query import DESC, Query

logger = logging.getLogger(__name__)

_ROLES = {"staff", "manager", "owner"}
_TRANSACTION_TYPES = {"add", "remove", "item_delete"}


class DocumentBackend(StorageBackend):
    """
    Flat key-value rendition of the four collections.

    The SQL schema's CHECK and UNIQUE rules have no native equivalent here,
    so they are re-checked on every insert and update (_check_constraints).
    Atomic units snapshot the in-memory collections and restore them if the
    block raises; dirty collections reach disk only when the outermost
    block commits (temp file + os.replace, so a crash never leaves a torn
    document).
    """
    name = "document"

    def __init__(self, path: Optional[str] = None):
        self.path = path or None
        self._data: dict[str, dict[str, dict]] = {}
        self._lock = threading.RLock()
        self._depth = 0
        self._snapshot: Optional[dict] = None
        self._dirty: set[str] = set()
        if self.path:
            self._load_existing()

    # -- persistence --

    def _file_for(self, collection: str) -> str:
        return os.path.join(self.path, f"{collection}.json")

    def _load_existing(self) -> None:
        if not os.path.isdir(self.path):
            return
        for collection in COLLECTIONS:
            filename = self._file_for(collection)
            if not os.path.exists(filename):
                continue
            with open(filename, "r", encoding="utf-8") as fh:
                rows = json.load(fh)
            self._data[collection] = {row["id"]: row for row in rows}
            logger.debug("Loaded %d %s rows from %s", len(rows), collection, filename)

    def _write_collection(self, collection: str) -> None:
        if not self.path:
            return
        os.makedirs(self.path, exist_ok=True)
        rows = list(self._data.get(collection, {}).values())
        fd, tmp_name = tempfile.mkstemp(prefix=f".{collection}.", suffix=".tmp", dir=self.path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(rows, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self._file_for(collection))
        except Exception:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise

    def _mark_dirty(self, collection: str) -> None:
        self._dirty.add(collection)
        if self._depth == 0:
            self._flush_dirty()

    def _flush_dirty(self) -> None:
        for collection in sorted(self._dirty):
            self._write_collection(collection)
        self._dirty.clear()

    def _commit_dirty(self) -> None:
        """
        Flush the outermost unit. If any document fails to write, memory
        goes back to the unit's snapshot and documents already written for
        this unit are rewritten from it, then the error propagates.
        """
        pending = sorted(self._dirty)
        self._dirty.clear()
        written = []
        try:
            for collection in pending:
                self._write_collection(collection)
                written.append(collection)
        except Exception:
            self._data = self._snapshot
            for collection in written:
                try:
                    self._write_collection(collection)
                except OSError:
                    logger.exception("Could not restore %s document after failed commit", collection)
            raise

    # -- schema --

    def create_schema(self) -> None:
        with self._lock:
            for collection in COLLECTIONS:
                if collection not in self._data:
                    self._data[collection] = {}
                    self._mark_dirty(collection)

    def drop_schema(self) -> None:
        with self._lock:
            self._data.clear()
            self._dirty.clear()
            if self.path:
                for collection in COLLECTIONS:
                    filename = self._file_for(collection)
                    if os.path.exists(filename):
                        os.remove(filename)

    def _table(self, collection: str) -> dict[str, dict]:
        self._require_collection(collection)
        try:
            return self._data[collection]
        except KeyError:
            raise RuntimeError(f"collection {collection!r} does not exist; run create_schema()") from None

    # -- atomic units --

    @contextmanager
    def atomic(self):
        with self._lock:
            if self._depth == 0:
                self._snapshot = copy.deepcopy(self._data)
            self._depth += 1
            try:
                yield self
            except Exception:
                self._depth -= 1
                if self._depth == 0:
                    self._data = self._snapshot
                    self._snapshot = None
                    self._dirty.clear()
                raise
            else:
                self._depth -= 1
                if self._depth == 0:
                    try:
                        self._commit_dirty()
                    finally:
                        self._snapshot = None

    # -- constraints --

    def _check_constraints(self, collection: str, row: dict) -> None:
        table = self._data[collection]
        if collection == "users":
            if row.get("role") not in _ROLES:
                raise StorageIntegrityError(f"invalid role: {row.get('role')!r}")
            for other in table.values():
                if other["id"] != row["id"] and other["username"] == row["username"]:
                    raise StorageIntegrityError("UNIQUE constraint failed: users.username")
        elif collection == "categories":
            if row.get("is_active"):
                for other in table.values():
                    if (
                        other["id"] != row["id"]
                        and other.get("is_active")
                        and other["name"] == row["name"]
                    ):
                        raise StorageIntegrityError("UNIQUE constraint failed: categories.name")
        elif collection == "items":
            if row.get("quantity", 0) < 0:
                raise StorageIntegrityError("CHECK constraint failed: quantity >= 0")
            if row.get("low_stock_threshold", 0) < 0:
                raise StorageIntegrityError("CHECK constraint failed: low_stock_threshold >= 0")
        elif collection == "transactions":
            if row.get("transaction_type") not in _TRANSACTION_TYPES:
                raise StorageIntegrityError(
                    f"invalid transaction type: {row.get('transaction_type')!r}"
                )
            for other in table.values():
                if other["id"] != row["id"] and other["sequence"] == row["sequence"]:
                    raise StorageIntegrityError("UNIQUE constraint failed: transactions.sequence")

    # -- writes --

    def insert(self, collection: str, row: dict) -> None:
        with self._lock:
            table = self._table(collection)
            if row["id"] in table:
                raise StorageIntegrityError(f"UNIQUE constraint failed: {collection}.id")
            stored = copy.deepcopy(row)
            self._check_constraints(collection, stored)
            table[stored["id"]] = stored
            self._mark_dirty(collection)

    def update(self, collection: str, record_id: str, changes: dict) -> int:
        with self._lock:
            table = self._table(collection)
            current = table.get(record_id)
            if current is None:
                return 0
            merged = {**current, **copy.deepcopy(changes)}
            self._check_constraints(collection, merged)
            table[record_id] = merged
            self._mark_dirty(collection)
            return 1

    def delete(self, collection: str, record_id: str) -> int:
        with self._lock:
            table = self._table(collection)
            if table.pop(record_id, None) is None:
                return 0
            self._mark_dirty(collection)
            return 1

    def delete_where(self, collection: str, query: Query) -> int:
        with self._lock:
            table = self._table(collection)
            doomed = [rid for rid, row in table.items() if query.matches(row)]
            for rid in doomed:
                del table[rid]
            if doomed:
                self._mark_dirty(collection)
            return len(doomed)

    # -- reads --

    def query(self, collection: str, query: Query) -> list[dict]:
        with self._lock:
            rows = [row for row in self._table(collection).values() if query.matches(row)]
            rows = _sorted(rows, query.order_by)
            start = query.offset or 0
            end = start + query.limit if query.limit is not None else None
            return [copy.deepcopy(row) for row in rows[start:end]]

    def count(self, collection: str, query: Query) -> int:
        with self._lock:
            return sum(1 for row in self._table(collection).values() if query.matches(row))


def _sorted(rows: list[dict], order_by) -> list[dict]:
    """
    Multi-key stable sort. NULLs sort first ascending, last descending,
    matching SQLite's ordering of NULL.
    """
    for field, direction in reversed(tuple(order_by)):
        rows.sort(
            key=lambda r: (r.get(field) is not None, r.get(field)),
            reverse=(direction == DESC),
        )
    return rows
