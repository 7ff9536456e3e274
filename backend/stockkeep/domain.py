# Overview: Backend-neutral record types shared by every store and the API layer.

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .time_utils import to_utc_z


INITIAL_STOCK_NOTE = "Initial stock when creating item"
ITEM_DELETED_NOTE = "Item deleted from inventory"


class Role(str, Enum):
    """User roles, totally ordered by privilege: staff < manager < owner."""
    STAFF = "staff"
    MANAGER = "manager"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        return _ROLE_ORDER.index(self)

    def outranks(self, other: "Role") -> bool:
        return self.rank > Role(other).rank


_ROLE_ORDER = (Role.STAFF, Role.MANAGER, Role.OWNER)


class TransactionType(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    ITEM_DELETE = "item_delete"


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


@dataclass
class User:
    id: str
    username: str
    pin_hash: str
    name: str
    role: Role
    created_at: int
    updated_at: int
    last_login_at: Optional[int] = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: dict) -> "User":
        return cls(
            id=row["id"],
            username=row["username"],
            pin_hash=row["pin_hash"],
            name=row["name"],
            role=Role(row["role"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            last_login_at=row.get("last_login_at"),
            is_active=bool(row["is_active"]),
        )

    def to_dict(self) -> dict:
        # pin_hash never leaves the store
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "role": self.role.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "last_login_at": self.last_login_at,
            "last_login_at_iso": to_utc_z(self.last_login_at),
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class Actor:
    """Who performed a mutation; copied by value into every ledger entry."""
    id: str
    name: str
    role: Role

    def __post_init__(self):
        object.__setattr__(self, "role", Role(self.role))

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, name=user.name, role=user.role)


@dataclass
class Category:
    id: str
    name: str
    created_at: int
    updated_at: int
    created_by: str
    description: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: dict) -> "Category":
        return cls(
            id=row["id"],
            name=row["name"],
            description=row.get("description"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            created_by=row["created_by"],
            is_active=bool(row["is_active"]),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "created_by": self.created_by,
            "is_active": self.is_active,
        }


@dataclass
class Item:
    id: str
    name: str
    category: str
    quantity: int
    low_stock_threshold: int
    date_added: int
    created_by: str
    updated_at: int
    description: Optional[str] = None
    last_stock_added: Optional[int] = None
    last_stock_removed: Optional[int] = None
    is_active: bool = True

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold

    @classmethod
    def from_row(cls, row: dict) -> "Item":
        return cls(
            id=row["id"],
            name=row["name"],
            category=row["category"],
            quantity=row["quantity"],
            description=row.get("description"),
            low_stock_threshold=row["low_stock_threshold"],
            date_added=row["date_added"],
            last_stock_added=row.get("last_stock_added"),
            last_stock_removed=row.get("last_stock_removed"),
            created_by=row["created_by"],
            updated_at=row["updated_at"],
            is_active=bool(row["is_active"]),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "quantity": self.quantity,
            "description": self.description,
            "low_stock_threshold": self.low_stock_threshold,
            "is_low_stock": self.is_low_stock,
            "date_added": self.date_added,
            "last_stock_added": self.last_stock_added,
            "last_stock_removed": self.last_stock_removed,
            "created_by": self.created_by,
            "updated_at": self.updated_at,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class Transaction:
    """
    One immutable ledger entry.

    item_name, user_name and user_role are value snapshots taken when the
    entry was written; they are never joined back to live records.
    """
    id: str
    item_id: str
    item_name: str
    quantity_change: int
    user_id: str
    user_name: str
    user_role: Role
    timestamp: int
    transaction_type: TransactionType
    sequence: int
    notes: Optional[str] = None

    @property
    def is_initial_stock(self) -> bool:
        return self.notes == INITIAL_STOCK_NOTE

    @classmethod
    def from_row(cls, row: dict) -> "Transaction":
        return cls(
            id=row["id"],
            item_id=row["item_id"],
            item_name=row["item_name"],
            quantity_change=row["quantity_change"],
            user_id=row["user_id"],
            user_name=row["user_name"],
            user_role=Role(row["user_role"]),
            timestamp=row["timestamp"],
            transaction_type=TransactionType(row["transaction_type"]),
            sequence=row["sequence"],
            notes=row.get("notes"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity_change": self.quantity_change,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "user_role": self.user_role.value,
            "timestamp": self.timestamp,
            "timestamp_iso": to_utc_z(self.timestamp),
            "transaction_type": self.transaction_type.value,
            "sequence": self.sequence,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class TransactionFilter:
    """All set criteria are AND-combined; date bounds are inclusive epoch ms."""
    start_date: Optional[int] = None
    end_date: Optional[int] = None
    user_id: Optional[str] = None
    item_id: Optional[str] = None
    type: Optional[TransactionType] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


@dataclass(frozen=True)
class UserActivity:
    user_id: str = ""
    user_name: str = ""
    transaction_count: int = 0


@dataclass(frozen=True)
class ItemActivity:
    item_id: str = ""
    item_name: str = ""
    transaction_count: int = 0


@dataclass(frozen=True)
class TransactionStats:
    total_transactions: int = 0
    stock_added: int = 0
    stock_removed: int = 0
    most_active_user: UserActivity = field(default_factory=UserActivity)
    most_tracked_item: ItemActivity = field(default_factory=ItemActivity)

    def to_dict(self) -> dict:
        return {
            "total_transactions": self.total_transactions,
            "stock_added": self.stock_added,
            "stock_removed": self.stock_removed,
            "most_active_user": {
                "user_id": self.most_active_user.user_id,
                "user_name": self.most_active_user.user_name,
                "transaction_count": self.most_active_user.transaction_count,
            },
            "most_tracked_item": {
                "item_id": self.most_tracked_item.item_id,
                "item_name": self.most_tracked_item.item_name,
                "transaction_count": self.most_tracked_item.transaction_count,
            },
        }
