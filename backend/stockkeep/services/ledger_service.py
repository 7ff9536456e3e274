# Overview: Service-layer operations for the transaction ledger; append-only
# history of every stock mutation.

"""
Transaction Ledger Invariants (authoritative)

- Entries are immutable once written; there is no update path.
- id, timestamp and sequence are assigned here, never by callers.
- sequence is strictly increasing across the whole ledger, so entries that
  share a millisecond still have a total order.
- Reads order by timestamp DESC, then sequence DESC (newest first).
- quantity_change sign matches the type: add > 0, remove < 0,
  item_delete == 0.
- Removal (delete / purge_item) exists only for the deletion protocol and
  operator purges; normal operation never removes history.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Callable, Optional

from ..domain import (
    Actor,
    ItemActivity,
    Transaction,
    TransactionFilter,
    TransactionStats,
    TransactionType,
    UserActivity,
    new_id,
)
from ..storage import DESC, Eq, Gte, Lte, Ne, Query, StorageBackend
from ..time_utils import now_ms
from ..validation import ValidationError, coerce_int, optional_text

logger = logging.getLogger(__name__)

COLLECTION = "transactions"
NEWEST_FIRST = (("timestamp", DESC), ("sequence", DESC))
MAX_NOTES_LENGTH = 500


def _check_sign(transaction_type: TransactionType, quantity_change: int) -> None:
    if transaction_type == TransactionType.ADD and quantity_change <= 0:
        raise ValidationError("add entries require a positive quantity_change")
    if transaction_type == TransactionType.REMOVE and quantity_change >= 0:
        raise ValidationError("remove entries require a negative quantity_change")
    if transaction_type == TransactionType.ITEM_DELETE and quantity_change != 0:
        raise ValidationError("item_delete entries require quantity_change == 0")


def _filter_conditions(flt: TransactionFilter) -> tuple:
    conditions = []
    if flt.start_date is not None:
        conditions.append(Gte("timestamp", flt.start_date))
    if flt.end_date is not None:
        conditions.append(Lte("timestamp", flt.end_date))
    if flt.user_id:
        conditions.append(Eq("user_id", flt.user_id))
    if flt.item_id:
        conditions.append(Eq("item_id", flt.item_id))
    if flt.type:
        conditions.append(Eq("transaction_type", TransactionType(flt.type).value))
    return tuple(conditions)


class TransactionLedger:
    def __init__(self, backend: StorageBackend, clock: Callable[[], int] = now_ms):
        self.backend = backend
        self.clock = clock

    def _next_sequence(self) -> int:
        last = self.backend.first(
            COLLECTION, Query(order_by=(("sequence", DESC),))
        )
        return (last["sequence"] + 1) if last else 1

    def create(
        self,
        *,
        item_id: str,
        item_name: str,
        quantity_change: int,
        actor: Actor,
        transaction_type: TransactionType,
        notes: Optional[str] = None,
    ) -> Transaction:
        """
        Append one entry. The actor is copied by value (id, name, role) so
        later renames or deletions of the user never rewrite history.
        """
        transaction_type = TransactionType(transaction_type)
        quantity_change = coerce_int(quantity_change, "quantity_change")
        _check_sign(transaction_type, quantity_change)
        notes = optional_text(notes)
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError(f"notes exceeds max length {MAX_NOTES_LENGTH}")

        row = {
            "id": new_id("txn"),
            "item_id": item_id,
            "item_name": item_name,
            "quantity_change": quantity_change,
            "user_id": actor.id,
            "user_name": actor.name,
            "user_role": actor.role.value,
            "timestamp": self.clock(),
            "sequence": self._next_sequence(),
            "transaction_type": transaction_type.value,
            "notes": notes,
        }
        self.backend.insert(COLLECTION, row)
        logger.debug(
            "Ledger append %s %s %+d for item %s",
            row["id"], transaction_type.value, quantity_change, item_id,
        )
        return Transaction.from_row(row)

    def find_by_id(self, transaction_id: str) -> Optional[Transaction]:
        row = self.backend.get(COLLECTION, transaction_id)
        return Transaction.from_row(row) if row else None

    def get_all(self, flt: Optional[TransactionFilter] = None) -> list[Transaction]:
        flt = flt or TransactionFilter()
        query = Query(
            where=_filter_conditions(flt),
            order_by=NEWEST_FIRST,
            limit=flt.limit,
            offset=flt.offset,
        )
        return [Transaction.from_row(r) for r in self.backend.query(COLLECTION, query)]

    def count(self, flt: Optional[TransactionFilter] = None) -> int:
        flt = flt or TransactionFilter()
        return self.backend.count(COLLECTION, Query(where=_filter_conditions(flt)))

    def get_by_item_id(self, item_id: str, limit: Optional[int] = 20) -> list[Transaction]:
        return self.get_all(TransactionFilter(item_id=item_id, limit=limit))

    def get_by_user_id(self, user_id: str, limit: Optional[int] = 50) -> list[Transaction]:
        return self.get_all(TransactionFilter(user_id=user_id, limit=limit))

    def get_by_date_range(self, start: int, end: int) -> list[Transaction]:
        return self.get_all(TransactionFilter(start_date=start, end_date=end))

    def get_by_type(self, transaction_type, limit: Optional[int] = None) -> list[Transaction]:
        return self.get_all(TransactionFilter(type=TransactionType(transaction_type), limit=limit))

    def get_recent(self, limit: int = 50) -> list[Transaction]:
        return self.get_all(TransactionFilter(limit=limit))

    def get_stats(self, flt: Optional[TransactionFilter] = None) -> TransactionStats:
        """
        Aggregate over every entry matching the filter's criteria (paging
        is ignored).

        TIES: the most active user / most tracked item is the one seen
        first while walking entries newest first. Counter preserves first
        insertion order among equal counts, which gives exactly that.
        """
        flt = flt or TransactionFilter()
        rows = self.backend.query(
            COLLECTION, Query(where=_filter_conditions(flt), order_by=NEWEST_FIRST)
        )
        if not rows:
            return TransactionStats()

        stock_added = 0
        stock_removed = 0
        user_counts: Counter = Counter()
        item_counts: Counter = Counter()
        user_names: dict[str, str] = {}
        item_names: dict[str, str] = {}

        for row in rows:
            change = row["quantity_change"]
            if row["transaction_type"] == TransactionType.ADD.value:
                stock_added += change
            elif row["transaction_type"] == TransactionType.REMOVE.value:
                stock_removed += abs(change)
            user_counts[row["user_id"]] += 1
            item_counts[row["item_id"]] += 1
            user_names.setdefault(row["user_id"], row["user_name"])
            item_names.setdefault(row["item_id"], row["item_name"])

        top_user, user_total = user_counts.most_common(1)[0]
        top_item, item_total = item_counts.most_common(1)[0]
        return TransactionStats(
            total_transactions=len(rows),
            stock_added=stock_added,
            stock_removed=stock_removed,
            most_active_user=UserActivity(top_user, user_names[top_user], user_total),
            most_tracked_item=ItemActivity(top_item, item_names[top_item], item_total),
        )

    def sum_quantity_changes(self, item_id: str) -> int:
        rows = self.backend.query(COLLECTION, Query(where=(Eq("item_id", item_id),)))
        return sum(r["quantity_change"] for r in rows)

    def delete(self, transaction_id: str) -> bool:
        return self.backend.delete(COLLECTION, transaction_id) > 0

    def purge_item(self, item_id: str, keep_deletion_marker: bool = True) -> int:
        conditions = [Eq("item_id", item_id)]
        if keep_deletion_marker:
            conditions.append(Ne("transaction_type", TransactionType.ITEM_DELETE.value))
        removed = self.backend.delete_where(COLLECTION, Query(where=tuple(conditions)))
        logger.info("Purged %d ledger entries for item %s", removed, item_id)
        return removed
