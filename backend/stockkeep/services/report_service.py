# Overview: Service-layer operations for reports; CSV rendering of ledger reads.

from __future__ import annotations

import csv
import io
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from ..domain import Transaction, TransactionStats, TransactionType
from ..time_utils import now_ms, to_utc_z

TRANSACTION_HEADERS = [
    "Item Name",
    "Quantity Change",
    "User Name",
    "User Role",
    "Transaction Type",
    "Timestamp",
    "Notes",
]


def display_action(transaction: Transaction) -> str:
    if transaction.transaction_type == TransactionType.ITEM_DELETE:
        return "Deleted"
    if transaction.is_initial_stock:
        return "New Item"
    if transaction.transaction_type == TransactionType.ADD:
        return "Added"
    return "Removed"


def format_transaction(transaction: Transaction) -> dict:
    """Transaction dict plus the human-facing action label and quantity text."""
    data = transaction.to_dict()
    data["action"] = display_action(transaction)
    change = transaction.quantity_change
    data["quantity_display"] = f"+{change}" if change > 0 else str(change)
    return data


def _format_timestamp(ms: int, date_format: str) -> str:
    iso = to_utc_z(ms)
    if date_format == "short":
        return iso.split("T")[0]
    return iso


def _rows_to_csv(rows: Iterable[list]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue()


def export_transactions_csv(
    transactions: Iterable[Transaction],
    include_headers: bool = True,
    date_format: str = "short",
) -> str:
    """
    One row per entry in the order given.

    date_format "short" writes YYYY-MM-DD, "long" the full UTC ISO timestamp.
    """
    if date_format not in ("short", "long"):
        raise ValueError("date_format must be 'short' or 'long'")
    rows = [TRANSACTION_HEADERS] if include_headers else []
    for t in transactions:
        rows.append([
            t.item_name,
            str(t.quantity_change),
            t.user_name,
            t.user_role.value,
            t.transaction_type.value,
            _format_timestamp(t.timestamp, date_format),
            t.notes or "",
        ])
    return _rows_to_csv(rows)


def generate_report_csv(
    stats: TransactionStats,
    title: str,
    filters: str,
    clock: Optional[Callable[[], int]] = None,
) -> str:
    generated = datetime.fromtimestamp((clock or now_ms)() / 1000, tz=timezone.utc)
    rows = [
        ["Report Information", "Title", title],
        ["Report Information", "Filters", filters],
        ["Report Information", "Generated", generated.strftime("%Y-%m-%d %H:%M:%S UTC")],
        ["", "", ""],
        ["Summary Statistics", "Total Transactions", str(stats.total_transactions)],
        ["Summary Statistics", "Total Items Added", str(stats.stock_added)],
        ["Summary Statistics", "Total Items Removed", str(stats.stock_removed)],
        ["Summary Statistics", "Most Active User", stats.most_active_user.user_name or "N/A"],
        [
            "Summary Statistics",
            "Most Active User Transactions",
            str(stats.most_active_user.transaction_count),
        ],
        ["Summary Statistics", "Most Updated Item", stats.most_tracked_item.item_name or "N/A"],
        [
            "Summary Statistics",
            "Most Updated Item Count",
            str(stats.most_tracked_item.transaction_count),
        ],
    ]
    return _rows_to_csv(rows)
