# Overview: Service-layer operations for users; identity records and PIN login.

"""
Identity Store

USERNAME UNIQUENESS: global and exact (case-sensitive), including inactive
users, so a deactivated account can be reactivated without a clash.

Reads (find_by_*, get_all) see active users only. authenticate never says
whether the username or the PIN was wrong.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..domain import Role, User, new_id
from ..storage import DESC, Eq, Query, StorageBackend, StorageIntegrityError
from ..time_utils import now_ms
from ..validation import (
    DuplicateUsernameError,
    ValidationError,
    require_text,
)
from .auth_service import hash_pin, verify_pin

logger = logging.getLogger(__name__)

COLLECTION = "users"
ACTIVE = Eq("is_active", True)
UPDATABLE_FIELDS = {"name", "pin_hash", "role", "is_active"}


def _coerce_role(role) -> Role:
    try:
        return Role(role)
    except ValueError:
        raise ValidationError(f"Invalid role: {role!r}") from None


class IdentityStore:
    def __init__(
        self,
        backend: StorageBackend,
        clock: Callable[[], int] = now_ms,
        pin_rounds: int = 12,
    ):
        self.backend = backend
        self.clock = clock
        self.pin_rounds = pin_rounds

    def create(self, username: str, pin_hash: str, name: str, role) -> User:
        username = require_text(username, "username", max_length=64)
        name = require_text(name, "name", max_length=120)
        role = _coerce_role(role)
        if not pin_hash:
            raise ValidationError("pin_hash is required")

        if self.backend.exists(COLLECTION, Query(where=(Eq("username", username),))):
            raise DuplicateUsernameError(f"Username '{username}' already exists")

        now = self.clock()
        row = {
            "id": new_id("user"),
            "username": username,
            "pin_hash": pin_hash,
            "name": name,
            "role": role.value,
            "created_at": now,
            "updated_at": now,
            "last_login_at": None,
            "is_active": True,
        }
        try:
            self.backend.insert(COLLECTION, row)
        except StorageIntegrityError as exc:
            raise DuplicateUsernameError(f"Username '{username}' already exists") from exc
        logger.info("Created %s user %s", role.value, username)
        return User.from_row(row)

    def register(self, username: str, pin: str, name: str, role) -> User:
        """Hash the raw PIN, then create."""
        return self.create(username, hash_pin(pin, rounds=self.pin_rounds), name, role)

    def find_by_username(self, username: str) -> Optional[User]:
        row = self.backend.first(COLLECTION, Query(where=(Eq("username", username), ACTIVE)))
        return User.from_row(row) if row else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        row = self.backend.first(COLLECTION, Query(where=(Eq("id", user_id), ACTIVE)))
        return User.from_row(row) if row else None

    def authenticate(self, username: str, pin: str) -> Optional[User]:
        user = self.find_by_username(username) if username else None
        if user is None or not verify_pin(pin, user.pin_hash):
            return None
        now = self.clock()
        self.backend.update(COLLECTION, user.id, {"last_login_at": now})
        user.last_login_at = now
        return user

    def update(self, user_id: str, **changes) -> Optional[User]:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")
        if self.backend.get(COLLECTION, user_id) is None:
            return None

        patch = {}
        if "name" in changes:
            patch["name"] = require_text(changes["name"], "name", max_length=120)
        if "pin_hash" in changes:
            if not changes["pin_hash"]:
                raise ValidationError("pin_hash cannot be blank")
            patch["pin_hash"] = changes["pin_hash"]
        if "role" in changes:
            patch["role"] = _coerce_role(changes["role"]).value
        if "is_active" in changes:
            if not isinstance(changes["is_active"], bool):
                raise ValidationError("is_active must be true or false")
            patch["is_active"] = changes["is_active"]

        patch["updated_at"] = self.clock()
        self.backend.update(COLLECTION, user_id, patch)
        return User.from_row(self.backend.get(COLLECTION, user_id))

    def deactivate(self, user_id: str) -> bool:
        """Soft delete. A second call is a no-op returning False."""
        row = self.backend.get(COLLECTION, user_id)
        if row is None or not row["is_active"]:
            return False
        self.backend.update(COLLECTION, user_id, {"is_active": False, "updated_at": self.clock()})
        return True

    def delete(self, user_id: str) -> bool:
        """Hard delete. Ledger snapshots of the user are untouched."""
        return self.backend.delete(COLLECTION, user_id) > 0

    def get_all(self) -> list[User]:
        rows = self.backend.query(COLLECTION, Query(where=(ACTIVE,), order_by=(("created_at", DESC),)))
        return [User.from_row(r) for r in rows]

    def get_raw(self, user_id: str) -> Optional[User]:
        """Any user by id, active or not (admin views)."""
        row = self.backend.get(COLLECTION, user_id)
        return User.from_row(row) if row else None
