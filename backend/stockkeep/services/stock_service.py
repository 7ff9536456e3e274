# Overview: Service-layer operations for stock mutations; every quantity change
# and its ledger entry commit as one unit.

"""
Stock Mutation Protocol (authoritative)

Invariants:
- quantity >= 0 for every item at all times.
- Each successful adjust_stock writes exactly one ledger entry whose
  quantity_change equals the requested signed quantity.
- For any live item: quantity == sum(ledger quantity_change for item).
  Items created with initial stock satisfy this through the
  "Initial stock when creating item" entry.

Failure semantics:
- Validation (missing item, zero quantity, insufficient stock) happens
  BEFORE any write.
- The quantity update and the ledger append run inside backend.atomic();
  if either fails, neither persists.
- Events are published only after the atomic unit has committed.

Initial stock (create_item_with_initial_stock):
- Default is best-effort: the item commits on its own, and a failure to
  write the initial ledger entry is logged, not raised.
- With strict=True both writes share one atomic unit.
"""

from __future__ import annotations

import logging
from typing import Optional

from .. import events
from ..domain import INITIAL_STOCK_NOTE, Actor, Item, TransactionType
from ..storage import StorageBackend
from ..validation import (
    MAX_QUANTITY,
    InsufficientStockError,
    ItemNotFoundError,
    ValidationError,
    coerce_int,
)
from .item_service import ItemStore
from .ledger_service import TransactionLedger

logger = logging.getLogger(__name__)


class StockService:
    def __init__(
        self,
        backend: StorageBackend,
        items: ItemStore,
        ledger: TransactionLedger,
        strict_initial_stock: bool = False,
    ):
        self.backend = backend
        self.items = items
        self.ledger = ledger
        self.strict_initial_stock = strict_initial_stock

    def adjust_stock(
        self,
        item_id: str,
        signed_quantity: int,
        actor: Actor,
        notes: Optional[str] = None,
    ) -> Item:
        """
        Apply a signed stock change. Positive adds, negative removes.

        Raises:
            ItemNotFoundError: no active item with that id
            ValidationError: quantity is zero, not an integer, or would push
                stock past MAX_QUANTITY
            InsufficientStockError: removal would go below zero
        """
        signed_quantity = coerce_int(signed_quantity, "quantity")
        if signed_quantity == 0:
            raise ValidationError("quantity must be non-zero")
        if abs(signed_quantity) > MAX_QUANTITY:
            raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")

        item = self.items.find_by_id(item_id)
        if item is None:
            raise ItemNotFoundError("Item not found")

        new_quantity = item.quantity + signed_quantity
        if new_quantity < 0:
            raise InsufficientStockError(item.id, item.quantity, abs(signed_quantity))
        if new_quantity > MAX_QUANTITY:
            raise ValidationError(
                f"Adding {signed_quantity} units would exceed the maximum quantity of {MAX_QUANTITY}"
            )

        transaction_type = TransactionType.ADD if signed_quantity > 0 else TransactionType.REMOVE
        with self.backend.atomic():
            updated = self.items.update_quantity(item.id, new_quantity, signed_quantity)
            if updated is None:
                raise ItemNotFoundError("Item not found")
            entry = self.ledger.create(
                item_id=item.id,
                item_name=item.name,
                quantity_change=signed_quantity,
                actor=actor,
                transaction_type=transaction_type,
                notes=notes,
            )

        logger.info(
            "Stock %s %+d -> %d by %s (%s)",
            item.id, signed_quantity, new_quantity, actor.id, entry.id,
        )
        events.publish(events.transaction_created, self, transaction=entry)
        events.publish(events.stock_changed, self, item=updated, quantity_change=signed_quantity)
        return updated

    def add_stock(self, item_id: str, quantity: int, actor: Actor, notes: Optional[str] = None) -> Item:
        quantity = coerce_int(quantity, "quantity")
        if quantity <= 0:
            raise ValidationError("quantity must be greater than zero")
        return self.adjust_stock(item_id, quantity, actor, notes)

    def remove_stock(self, item_id: str, quantity: int, actor: Actor, notes: Optional[str] = None) -> Item:
        quantity = coerce_int(quantity, "quantity")
        if quantity <= 0:
            raise ValidationError("quantity must be greater than zero")
        return self.adjust_stock(item_id, -quantity, actor, notes)

    def create_item_with_initial_stock(
        self,
        data: dict,
        actor: Actor,
        strict: Optional[bool] = None,
    ) -> Item:
        strict = self.strict_initial_stock if strict is None else strict
        if strict:
            with self.backend.atomic():
                item = self.items.create(data, actor.id)
                entry = self._record_initial_stock(item, actor)
        else:
            item = self.items.create(data, actor.id)
            try:
                entry = self._record_initial_stock(item, actor)
            except Exception:
                # Item already committed; history gap is reported by audit_item
                logger.exception("Failed to record initial stock for item %s", item.id)
                entry = None

        events.publish(events.item_created, self, item=item)
        if entry is not None:
            events.publish(events.transaction_created, self, transaction=entry)
        return item

    def _record_initial_stock(self, item: Item, actor: Actor):
        if item.quantity <= 0:
            return None
        return self.ledger.create(
            item_id=item.id,
            item_name=item.name,
            quantity_change=item.quantity,
            actor=actor,
            transaction_type=TransactionType.ADD,
            notes=INITIAL_STOCK_NOTE,
        )

    def delete_item_with_audit(
        self,
        item_id: str,
        actor: Actor,
        purge_history: bool = False,
        keep_deletion_marker: bool = True,
    ) -> bool:
        """
        Active -> PendingDelete -> Deleted. Returns False when no active item
        has that id; re-raises (after rollback) on any failure.
        """
        result = self.items.delete_with_audit(
            item_id,
            actor,
            purge_history=purge_history,
            keep_deletion_marker=keep_deletion_marker,
        )
        if result is None:
            return False
        item, purged = result
        events.publish(events.item_deleted, self, item=item, actor=actor, purged=purged)
        return True

    def reconstruct_quantity(self, item_id: str) -> int:
        return self.ledger.sum_quantity_changes(item_id)

    def audit_item(self, item_id: str) -> dict:
        item = self.items.find_by_id(item_id)
        if item is None:
            raise ItemNotFoundError("Item not found")
        reconstructed = self.reconstruct_quantity(item.id)
        return {
            "item_id": item.id,
            "item_name": item.name,
            "stored_quantity": item.quantity,
            "reconstructed_quantity": reconstructed,
            "difference": item.quantity - reconstructed,
            "consistent": item.quantity == reconstructed,
        }

    def audit_all(self) -> list[dict]:
        return [self.audit_item(item.id) for item in self.items.get_all()]
