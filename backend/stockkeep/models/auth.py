from __future__ import annotations

from ..extensions import db


class UserRow(db.Model):
    """
    User accounts for PIN authentication and attribution.

    Users are soft-deleted (is_active=false) by default. Ledger entries keep
    their own name/role snapshots, so no foreign key points back here and a
    hard delete never orphans history.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        db.CheckConstraint("role IN ('staff', 'manager', 'owner')", name="ck_users_role"),
        db.Index("ix_users_created_at", "created_at"),
    )

    id = db.Column(db.String(64), primary_key=True)

    # Exact, case-sensitive match
    username = db.Column(db.String(64), nullable=False, index=True)

    # bcrypt digest of the PIN, never the raw PIN
    pin_hash = db.Column(db.String(255), nullable=False)

    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(16), nullable=False)

    # Epoch milliseconds
    created_at = db.Column(db.BigInteger, nullable=False)
    updated_at = db.Column(db.BigInteger, nullable=False)
    last_login_at = db.Column(db.BigInteger, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<UserRow id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "pin_hash": self.pin_hash,
            "name": self.name,
            "role": self.role,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "last_login_at": self.last_login_at,
            "is_active": bool(self.is_active),
        }
