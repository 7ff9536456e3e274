from __future__ import annotations

from sqlalchemy import text

from ..extensions import db


class CategoryRow(db.Model):
    """
    Named grouping referenced by items through name equality.

    NAME UNIQUENESS: unique among ACTIVE categories only (partial index), so
    a soft-deleted "Snacks" does not block creating a new "Snacks".
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_name", "name"),
        db.Index(
            "uq_categories_active_name",
            "name",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.BigInteger, nullable=False)
    updated_at = db.Column(db.BigInteger, nullable=False)
    created_by = db.Column(db.String(64), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<CategoryRow id={self.id} name={self.name!r} active={self.is_active}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "created_by": self.created_by,
            "is_active": bool(self.is_active),
        }


class ItemRow(db.Model):
    """
    Current-state inventory record.

    quantity is the only mutable stock field and is written exclusively by
    the stock mutation protocol, always paired with a ledger entry.
    category holds the category NAME (denormalized), not a foreign key.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
        db.CheckConstraint("low_stock_threshold >= 0", name="ck_items_threshold_non_negative"),
        db.Index("ix_items_category", "category"),
        db.Index("ix_items_name", "name"),
        db.Index("ix_items_active_quantity", "is_active", "quantity"),
    )

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    description = db.Column(db.Text, nullable=True)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=10)

    date_added = db.Column(db.BigInteger, nullable=False)
    last_stock_added = db.Column(db.BigInteger, nullable=True)
    last_stock_removed = db.Column(db.BigInteger, nullable=True)

    created_by = db.Column(db.String(64), nullable=False)
    updated_at = db.Column(db.BigInteger, nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<ItemRow id={self.id} name={self.name!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "quantity": self.quantity,
            "description": self.description,
            "low_stock_threshold": self.low_stock_threshold,
            "date_added": self.date_added,
            "last_stock_added": self.last_stock_added,
            "last_stock_removed": self.last_stock_removed,
            "created_by": self.created_by,
            "updated_at": self.updated_at,
            "is_active": bool(self.is_active),
        }


class TransactionRow(db.Model):
    """
    Append-only ledger entry.

    item_id / user_id are plain references (no foreign keys): items are
    hard-deleted while their history must stay queryable.
    sequence is ledger-assigned and strictly increasing; it orders entries
    written within the same millisecond.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.CheckConstraint(
            "transaction_type IN ('add', 'remove', 'item_delete')",
            name="ck_transactions_type",
        ),
        db.UniqueConstraint("sequence", name="uq_transactions_sequence"),
        db.Index("ix_transactions_timestamp", "timestamp"),
        db.Index("ix_transactions_item_id", "item_id"),
        db.Index("ix_transactions_user_id", "user_id"),
        db.Index("ix_transactions_item_timestamp", "item_id", "timestamp"),
    )

    id = db.Column(db.String(64), primary_key=True)

    item_id = db.Column(db.String(64), nullable=False)
    item_name = db.Column(db.String(255), nullable=False)

    quantity_change = db.Column(db.Integer, nullable=False)

    user_id = db.Column(db.String(64), nullable=False)
    user_name = db.Column(db.String(120), nullable=False)
    user_role = db.Column(db.String(16), nullable=False)

    timestamp = db.Column(db.BigInteger, nullable=False)
    sequence = db.Column(db.Integer, nullable=False)

    transaction_type = db.Column(db.String(16), nullable=False)
    notes = db.Column(db.String(500), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity_change": self.quantity_change,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "user_role": self.user_role,
            "timestamp": self.timestamp,
            "sequence": self.sequence,
            "transaction_type": self.transaction_type,
            "notes": self.notes,
        }
