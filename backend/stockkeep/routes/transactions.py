# Overview: Flask API routes for the transaction ledger and CSV exports.

"""
Ledger reads.

Filter query params (all optional, AND-combined):
- start_date / end_date: inclusive bounds, epoch ms or ISO-8601
- user_id, item_id
- type: add | remove | item_delete
- limit, offset: paging (list endpoint only)
"""

from flask import Blueprint, request, Response

from ..domain import TransactionFilter, TransactionType
from ..services.inventory import get_ledger
from ..services.report_service import (
    format_transaction,
    export_transactions_csv,
    generate_report_csv,
)
from ..time_utils import to_epoch_ms
from ..validation import ValidationError
from ..decorators import require_auth, require_permission

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


def _parse_filter(paged: bool = True) -> TransactionFilter:
    args = request.args
    try:
        start = to_epoch_ms(args.get("start_date"))
        end = to_epoch_ms(args.get("end_date"))
    except ValueError:
        raise ValidationError("start_date / end_date must be epoch ms or ISO-8601")

    tx_type = args.get("type") or None
    if tx_type is not None:
        try:
            tx_type = TransactionType(tx_type)
        except ValueError:
            raise ValidationError(f"Invalid type: {tx_type}")

    limit = offset = None
    if paged:
        limit = args.get("limit", type=int)
        offset = args.get("offset", type=int)
        if (limit is not None and limit < 0) or (offset is not None and offset < 0):
            raise ValidationError("limit and offset must be >= 0")

    return TransactionFilter(
        start_date=start,
        end_date=end,
        user_id=args.get("user_id") or None,
        item_id=args.get("item_id") or None,
        type=tx_type,
        limit=limit,
        offset=offset,
    )


def _describe_filter(flt: TransactionFilter) -> str:
    parts = []
    if flt.start_date is not None:
        parts.append(f"from {flt.start_date}")
    if flt.end_date is not None:
        parts.append(f"to {flt.end_date}")
    if flt.user_id:
        parts.append(f"user {flt.user_id}")
    if flt.item_id:
        parts.append(f"item {flt.item_id}")
    if flt.type:
        parts.append(f"type {flt.type.value}")
    return ", ".join(parts) or "All transactions"


@transactions_bp.get("")
@require_auth
@require_permission("VIEW_TRANSACTIONS")
def list_transactions_route():
    try:
        flt = _parse_filter()
    except ValidationError as e:
        return {"error": str(e)}, 400
    ledger = get_ledger().transactions
    return {
        "transactions": [format_transaction(t) for t in ledger.get_all(flt)],
        "total": ledger.count(flt),
        "limit": flt.limit,
        "offset": flt.offset or 0,
    }


@transactions_bp.get("/stats")
@require_auth
@require_permission("VIEW_REPORTS")
def transaction_stats_route():
    try:
        flt = _parse_filter(paged=False)
    except ValidationError as e:
        return {"error": str(e)}, 400
    return get_ledger().transactions.get_stats(flt).to_dict()


@transactions_bp.get("/export.csv")
@require_auth
@require_permission("EXPORT_TRANSACTIONS")
def export_transactions_route():
    """?date_format=short|long, ?headers=0 to omit the header row."""
    try:
        flt = _parse_filter(paged=False)
    except ValidationError as e:
        return {"error": str(e)}, 400
    date_format = request.args.get("date_format", "short")
    if date_format not in ("short", "long"):
        return {"error": "date_format must be 'short' or 'long'"}, 400
    include_headers = request.args.get("headers", "1") not in {"0", "false", "no"}

    csv_text = export_transactions_csv(
        get_ledger().transactions.get_all(flt),
        include_headers=include_headers,
        date_format=date_format,
    )
    return Response(
        csv_text,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=transactions.csv"},
    )


@transactions_bp.get("/report.csv")
@require_auth
@require_permission("EXPORT_REPORTS")
def export_report_route():
    try:
        flt = _parse_filter(paged=False)
    except ValidationError as e:
        return {"error": str(e)}, 400
    ledger = get_ledger()
    csv_text = generate_report_csv(
        ledger.transactions.get_stats(flt),
        request.args.get("title", "Inventory Report"),
        _describe_filter(flt),
        clock=ledger.clock,
    )
    return Response(
        csv_text,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=report.csv"},
    )
