# Overview: Service-layer operations for categories; named groupings of items.

"""
Category Store

NAME UNIQUENESS: among active categories only. A soft-deleted category
keeps its row, and its name becomes available again.

DELETE: soft-deactivates. Refused with CategoryInUseError while any active
item still carries the category name.
"""

from __future__ import annotations

from typing import Callable, Optional

from ..domain import Category, new_id
from ..models import CategoryRow
from ..storage import ASC, Eq, Ne, Query, StorageBackend, StorageIntegrityError
from ..time_utils import now_ms
from ..validation import (
    CategoryInUseError,
    CategoryNotFoundError,
    DuplicateCategoryError,
    ModelValidationPolicy,
    validate_payload,
)
from .item_service import ItemStore

COLLECTION = "categories"
ACTIVE = Eq("is_active", True)

CATEGORY_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)

CATEGORY_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
)


class CategoryStore:
    def __init__(self, backend: StorageBackend, items: ItemStore, clock: Callable[[], int] = now_ms):
        self.backend = backend
        self.items = items
        self.clock = clock

    def _name_taken(self, name: str, exclude_id: Optional[str] = None) -> bool:
        conditions = [ACTIVE, Eq("name", name)]
        if exclude_id:
            conditions.append(Ne("id", exclude_id))
        return self.backend.exists(COLLECTION, Query(where=tuple(conditions)))

    def create(self, name: str, created_by: str, description: Optional[str] = None) -> Category:
        clean = validate_payload(
            model=CategoryRow,
            payload={"name": name, "description": description},
            policy=CATEGORY_CREATE_POLICY,
            partial=False,
        )
        if self._name_taken(clean["name"]):
            raise DuplicateCategoryError(f"Category '{clean['name']}' already exists")

        now = self.clock()
        row = {
            "id": new_id("cat"),
            "name": clean["name"],
            "description": clean.get("description") or None,
            "created_at": now,
            "updated_at": now,
            "created_by": created_by,
            "is_active": True,
        }
        try:
            self.backend.insert(COLLECTION, row)
        except StorageIntegrityError as exc:
            raise DuplicateCategoryError(f"Category '{clean['name']}' already exists") from exc
        return Category.from_row(row)

    def find_by_name(self, name: str) -> Optional[Category]:
        row = self.backend.first(COLLECTION, Query(where=(Eq("name", name), ACTIVE)))
        return Category.from_row(row) if row else None

    def find_by_id(self, category_id: str) -> Optional[Category]:
        row = self.backend.first(COLLECTION, Query(where=(Eq("id", category_id), ACTIVE)))
        return Category.from_row(row) if row else None

    def update(self, category_id: str, **changes) -> Category:
        """
        Edit name / description of an active category.

        Renaming does not rewrite items that carry the old name; they keep
        it, as category is a denormalized name on the item.
        """
        current = self.find_by_id(category_id)
        if current is None:
            raise CategoryNotFoundError("Category not found")

        clean = validate_payload(
            model=CategoryRow, payload=changes, policy=CATEGORY_UPDATE_POLICY, partial=True
        )
        if "name" in clean and clean["name"] != current.name:
            if self._name_taken(clean["name"], exclude_id=category_id):
                raise DuplicateCategoryError(f"Category '{clean['name']}' already exists")
        if "description" in clean:
            clean["description"] = clean["description"] or None

        clean["updated_at"] = self.clock()
        try:
            self.backend.update(COLLECTION, category_id, clean)
        except StorageIntegrityError as exc:
            raise DuplicateCategoryError(f"Category '{clean.get('name')}' already exists") from exc
        return Category.from_row(self.backend.get(COLLECTION, category_id))

    def delete(self, category_id: str) -> bool:
        """
        Soft-deactivate. Returns False when the category is already
        inactive, raises CategoryNotFoundError when the id is unknown.
        """
        row = self.backend.get(COLLECTION, category_id)
        if row is None:
            raise CategoryNotFoundError("Category not found")
        if not row["is_active"]:
            return False
        if self.items.has_active_items_in_category(row["name"]):
            raise CategoryInUseError(
                f"Category '{row['name']}' is in use by active items and cannot be deleted"
            )
        self.backend.update(COLLECTION, category_id, {"is_active": False, "updated_at": self.clock()})
        return True

    def get_all(self) -> list[Category]:
        rows = self.backend.query(COLLECTION, Query(where=(ACTIVE,), order_by=(("name", ASC),)))
        return [Category.from_row(r) for r in rows]

    def get_names(self) -> list[str]:
        return [c.name for c in self.get_all()]
