# Overview: Backend-neutral query description built by the stores and
# interpreted by each storage adapter.

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

ASC = "asc"
DESC = "desc"

# SQLite LIKE folds ASCII letters only; Contains folds the same set
_ASCII_FOLD = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")


def ascii_fold(text: str) -> str:
    return text.translate(_ASCII_FOLD)


@dataclass(frozen=True)
class Condition:
    field: str

    def matches(self, row: dict) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class Eq(Condition):
    value: Any

    def matches(self, row: dict) -> bool:
        return row.get(self.field) == self.value


@dataclass(frozen=True)
class Ne(Condition):
    value: Any

    def matches(self, row: dict) -> bool:
        return row.get(self.field) != self.value


@dataclass(frozen=True)
class Gte(Condition):
    value: Any

    def matches(self, row: dict) -> bool:
        current = row.get(self.field)
        return current is not None and current >= self.value


@dataclass(frozen=True)
class Lte(Condition):
    value: Any

    def matches(self, row: dict) -> bool:
        current = row.get(self.field)
        return current is not None and current <= self.value


@dataclass(frozen=True)
class Contains(Condition):
    """Substring match, case-insensitive for ASCII letters (A-Z) only."""
    text: str

    def matches(self, row: dict) -> bool:
        current = row.get(self.field)
        return current is not None and ascii_fold(self.text) in ascii_fold(str(current))


@dataclass(frozen=True)
class FieldLte(Condition):
    """Compares two fields of the same row: row[field] <= row[other]."""
    other: str

    def matches(self, row: dict) -> bool:
        left, right = row.get(self.field), row.get(self.other)
        return left is not None and right is not None and left <= right


@dataclass(frozen=True)
class Query:
    where: tuple = ()
    order_by: tuple = ()
    limit: Optional[int] = None
    offset: Optional[int] = None

    def matches(self, row: dict) -> bool:
        return all(cond.matches(row) for cond in self.where)

    def unpaged(self) -> "Query":
        return replace(self, limit=None, offset=None)

    def first_only(self) -> "Query":
        return replace(self, limit=1, offset=None)
