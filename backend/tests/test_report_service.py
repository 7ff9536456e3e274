"""
CSV rendering of ledger reads.
"""

import csv
import io

from stockkeep.domain import TransactionFilter
from stockkeep.services.report_service import (
    TRANSACTION_HEADERS,
    export_transactions_csv,
    format_transaction,
    generate_report_csv,
)


def _parse(text):
    return list(csv.reader(io.StringIO(text)))


class TestFormatTransaction:

    def test_action_labels(self, ledger, actors, make_item):
        item = make_item(name="Rice", quantity=5)
        ledger.stock.add_stock(item.id, 2, actors["staff"])
        ledger.stock.remove_stock(item.id, 1, actors["staff"])
        ledger.stock.delete_item_with_audit(item.id, actors["owner"])

        formatted = [format_transaction(t) for t in ledger.transactions.get_by_item_id(item.id)]
        assert [f["action"] for f in formatted] == ["Deleted", "Removed", "Added", "New Item"]
        assert [f["quantity_display"] for f in formatted] == ["0", "-1", "+2", "+5"]
        assert formatted[0]["timestamp_iso"].endswith("Z")


class TestExportCsv:

    def test_rows_and_escaping(self, ledger, actors, make_item):
        item = make_item(name='Rice, "premium"', quantity=5)
        ledger.stock.remove_stock(item.id, 2, actors["staff"], notes="spilled\nbag")

        text = export_transactions_csv(ledger.transactions.get_all())
        rows = _parse(text)

        assert rows[0] == TRANSACTION_HEADERS
        assert rows[1] == [
            'Rice, "premium"', "-2", "Sam Staff", "staff", "remove", "2023-11-14", "spilled\nbag",
        ]
        assert rows[2][1] == "5"
        assert rows[2][6] == "Initial stock when creating item"

    def test_long_dates_and_no_headers(self, ledger, make_item):
        make_item(quantity=1)
        rows = _parse(
            export_transactions_csv(
                ledger.transactions.get_all(), include_headers=False, date_format="long"
            )
        )
        assert len(rows) == 1
        assert rows[0][5] == "2023-11-14T22:13:20Z"


class TestReportCsv:

    def test_summary(self, ledger, actors, make_item, clock):
        item = make_item(name="Rice", quantity=5)
        ledger.stock.remove_stock(item.id, 2, actors["staff"])

        stats = ledger.transactions.get_stats(TransactionFilter())
        rows = _parse(generate_report_csv(stats, "Weekly", "All transactions", clock=clock))

        table = {(r[0], r[1]): r[2] for r in rows if r[0]}
        assert table[("Report Information", "Title")] == "Weekly"
        assert table[("Report Information", "Generated")] == "2023-11-14 22:13:20 UTC"
        assert table[("Summary Statistics", "Total Transactions")] == "2"
        assert table[("Summary Statistics", "Total Items Added")] == "5"
        assert table[("Summary Statistics", "Total Items Removed")] == "2"
        assert table[("Summary Statistics", "Most Updated Item")] == "Rice"
        assert table[("Summary Statistics", "Most Updated Item Count")] == "2"

    def test_empty_stats_say_not_available(self, ledger, clock):
        stats = ledger.transactions.get_stats()
        rows = _parse(generate_report_csv(stats, "Empty", "None", clock=clock))
        table = {(r[0], r[1]): r[2] for r in rows if r[0]}
        assert table[("Summary Statistics", "Most Active User")] == "N/A"
        assert table[("Summary Statistics", "Most Updated Item")] == "N/A"
