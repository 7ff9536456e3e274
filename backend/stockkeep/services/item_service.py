# Overview: Service-layer operations for items; current-state stock records.

"""
Item Store

CRITICAL: quantity is never edited directly. It changes only through
update_quantity, which the stock mutation protocol (stock_service) always
pairs with a ledger entry inside one atomic unit. update() rejects any
attempt to set quantity.

Reads return active items only; get_all orders by name, low stock by
quantity ascending.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..domain import ITEM_DELETED_NOTE, Actor, Item, TransactionType, new_id
from ..models import ItemRow
from ..storage import ASC, Contains, Eq, FieldLte, Query, StorageBackend
from ..time_utils import now_ms
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    require_non_negative_int,
    validate_payload,
)
from .ledger_service import TransactionLedger

logger = logging.getLogger(__name__)

COLLECTION = "items"
ACTIVE = Eq("is_active", True)
BY_NAME = (("name", ASC),)
DEFAULT_LOW_STOCK_THRESHOLD = 10

ITEM_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "quantity", "description", "low_stock_threshold"},
    required_on_create={"name", "category"},
)

ITEM_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "category", "low_stock_threshold", "is_active"},
)


class ItemStore:
    def __init__(
        self,
        backend: StorageBackend,
        ledger: TransactionLedger,
        clock: Callable[[], int] = now_ms,
    ):
        self.backend = backend
        self.ledger = ledger
        self.clock = clock

    def _active(self, *conditions, order_by=BY_NAME) -> list[Item]:
        query = Query(where=(ACTIVE, *conditions), order_by=order_by)
        return [Item.from_row(r) for r in self.backend.query(COLLECTION, query)]

    def create(self, data: dict, created_by: str) -> Item:
        """
        Create an item with its starting quantity. Writes NO ledger entry;
        StockService.create_item_with_initial_stock adds that.
        """
        clean = validate_payload(model=ItemRow, payload=data, policy=ITEM_CREATE_POLICY, partial=False)
        quantity = require_non_negative_int(clean.get("quantity") or 0, "quantity")
        threshold = clean.get("low_stock_threshold")
        threshold = (
            DEFAULT_LOW_STOCK_THRESHOLD
            if threshold is None
            else require_non_negative_int(threshold, "low_stock_threshold")
        )

        now = self.clock()
        row = {
            "id": new_id("item"),
            "name": clean["name"],
            "category": clean["category"],
            "quantity": quantity,
            "description": clean.get("description") or None,
            "low_stock_threshold": threshold,
            "date_added": now,
            "last_stock_added": None,
            "last_stock_removed": None,
            "created_by": created_by,
            "updated_at": now,
            "is_active": True,
        }
        self.backend.insert(COLLECTION, row)
        return Item.from_row(row)

    def find_by_id(self, item_id: str) -> Optional[Item]:
        row = self.backend.first(COLLECTION, Query(where=(Eq("id", item_id), ACTIVE)))
        return Item.from_row(row) if row else None

    def get_all(self) -> list[Item]:
        return self._active()

    def get_by_category(self, category: str) -> list[Item]:
        return self._active(Eq("category", category))

    def search_by_name(self, term: str) -> list[Item]:
        term = (term or "").strip()
        if not term:
            return self._active()
        return self._active(Contains("name", term))

    def get_low_stock_items(self) -> list[Item]:
        return self._active(
            FieldLte("quantity", "low_stock_threshold"),
            order_by=(("quantity", ASC), ("name", ASC)),
        )

    def update_quantity(self, item_id: str, new_quantity: int, signed_delta: int) -> Optional[Item]:
        """
        Set the stored quantity and stamp last_stock_added / last_stock_removed
        according to the sign of the delta.

        Callers outside stock_service must also write the matching ledger
        entry; this method alone would break reconstructability.
        """
        if new_quantity < 0:
            raise ValidationError("quantity must be >= 0")
        now = self.clock()
        changes = {"quantity": new_quantity, "updated_at": now}
        if signed_delta > 0:
            changes["last_stock_added"] = now
        elif signed_delta < 0:
            changes["last_stock_removed"] = now
        if not self.backend.update(COLLECTION, item_id, changes):
            return None
        row = self.backend.get(COLLECTION, item_id)
        return Item.from_row(row) if row else None

    def update(self, item_id: str, **changes) -> Optional[Item]:
        """Metadata edit. Returns None when the item does not exist."""
        if "quantity" in changes:
            raise ValidationError("quantity can only change through stock adjustments")
        clean = validate_payload(model=ItemRow, payload=changes, policy=ITEM_UPDATE_POLICY, partial=True)
        if "low_stock_threshold" in clean:
            clean["low_stock_threshold"] = require_non_negative_int(
                clean["low_stock_threshold"], "low_stock_threshold"
            )
        if "description" in clean:
            clean["description"] = clean["description"] or None

        if self.backend.get(COLLECTION, item_id) is None:
            return None
        clean["updated_at"] = self.clock()
        self.backend.update(COLLECTION, item_id, clean)
        return Item.from_row(self.backend.get(COLLECTION, item_id))

    def deactivate(self, item_id: str) -> bool:
        """Soft delete. A second call is a no-op returning False."""
        row = self.backend.get(COLLECTION, item_id)
        if row is None or not row["is_active"]:
            return False
        self.backend.update(COLLECTION, item_id, {"is_active": False, "updated_at": self.clock()})
        return True

    def delete_with_audit(
        self,
        item_id: str,
        actor: Actor,
        purge_history: bool = False,
        keep_deletion_marker: bool = True,
    ) -> Optional[tuple[Item, int]]:
        """
        Hard delete with audit trail. Returns (deleted item, purged entry
        count), or None when no active item has that id.

        ATOMIC: the item_delete entry, the optional purge and the row
        removal commit together; any failure rolls all of them back and
        re-raises.
        """
        item = self.find_by_id(item_id)
        if item is None:
            return None

        purged = 0
        with self.backend.atomic():
            if purge_history:
                purged = self.ledger.purge_item(item.id, keep_deletion_marker=True)
            marker = self.ledger.create(
                item_id=item.id,
                item_name=item.name,
                quantity_change=0,
                actor=actor,
                transaction_type=TransactionType.ITEM_DELETE,
                notes=ITEM_DELETED_NOTE,
            )
            if purge_history and not keep_deletion_marker:
                purged += self.ledger.purge_item(item.id, keep_deletion_marker=False)
            self.backend.delete(COLLECTION, item.id)

        logger.info(
            "Item %s (%s) deleted by %s; marker %s, %d entries purged",
            item.id, item.name, actor.id, marker.id, purged,
        )
        return item, purged

    def delete(self, item_id: str, actor: Actor, purge_history: bool = False) -> bool:
        return self.delete_with_audit(item_id, actor, purge_history=purge_history) is not None

    def get_categories(self) -> list[str]:
        return sorted({item.category for item in self._active()})

    def has_active_items_in_category(self, name: str) -> bool:
        return self.backend.exists(COLLECTION, Query(where=(ACTIVE, Eq("category", name))))
