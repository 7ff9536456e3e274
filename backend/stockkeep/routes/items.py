# Overview: Flask API routes for items and stock adjustments; parses input and returns JSON responses.

"""
Item and stock routes.

SECURITY: All routes require authentication.
- Reads require VIEW_INVENTORY
- Stock adjustments require ADD_STOCK or REMOVE_STOCK depending on the sign
- Create / edit / delete require CREATE_ITEM / EDIT_ITEM / DELETE_ITEM

Every quantity change goes through StockService so it is paired with a
ledger entry.
"""

from flask import Blueprint, request, g, current_app

from ..services.inventory import get_ledger
from ..services.item_service import ITEM_UPDATE_POLICY
from ..services.report_service import format_transaction
from ..storage.query import ascii_fold
from ..services.permission_service import PermissionDeniedError, require_permission as check_permission
from ..validation import (
    ValidationError,
    ItemNotFoundError,
    InsufficientStockError,
    coerce_int,
)
from ..decorators import require_auth, require_permission

items_bp = Blueprint("items", __name__, url_prefix="/api/items")

# quantity passes through so the store can explain that stock moves via /adjust
ITEM_PATCH_FIELDS = ITEM_UPDATE_POLICY.writable_fields | {"quantity"}


@items_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_items_route():
    """
    Query params:
    - category: exact category name (optional)
    - q: case-insensitive name search (optional)
    """
    items = get_ledger().items
    category = request.args.get("category")
    term = request.args.get("q")

    if category:
        result = items.get_by_category(category)
        if term:
            needle = ascii_fold(term.strip())
            result = [i for i in result if needle in ascii_fold(i.name)]
    elif term:
        result = items.search_by_name(term)
    else:
        result = items.get_all()
    return {"items": [i.to_dict() for i in result]}


@items_bp.get("/low-stock")
@require_auth
@require_permission("VIEW_INVENTORY")
def low_stock_route():
    return {"items": [i.to_dict() for i in get_ledger().items.get_low_stock_items()]}


@items_bp.get("/categories")
@require_auth
@require_permission("VIEW_INVENTORY")
def item_categories_route():
    """Distinct category names in use by active items."""
    return {"categories": get_ledger().items.get_categories()}


@items_bp.get("/<item_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_item_route(item_id: str):
    item = get_ledger().items.find_by_id(item_id)
    if item is None:
        return {"error": "Item not found"}, 404
    return {"item": item.to_dict()}


@items_bp.post("")
@require_auth
@require_permission("CREATE_ITEM")
def create_item_route():
    """Create an item; a positive quantity is recorded as initial stock."""
    payload = request.get_json(silent=True) or {}
    try:
        item = get_ledger().stock.create_item_with_initial_stock(payload, g.actor)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create item")
        return {"error": "Internal server error"}, 500
    return {"item": item.to_dict()}, 201


@items_bp.patch("/<item_id>")
@require_auth
@require_permission("EDIT_ITEM")
def update_item_route(item_id: str):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    unknown = sorted(set(payload) - ITEM_PATCH_FIELDS)
    if unknown:
        return {"error": f"Field not allowed: {', '.join(unknown)}"}, 400
    try:
        item = get_ledger().items.update(item_id, **payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    if item is None:
        return {"error": "Item not found"}, 404
    return {"item": item.to_dict()}


@items_bp.post("/<item_id>/adjust")
@require_auth
def adjust_stock_route(item_id: str):
    """
    Body: {"quantity": <signed int, non-zero>, "notes": <optional str>}

    Positive quantities need ADD_STOCK, negative ones REMOVE_STOCK.
    """
    payload = request.get_json(silent=True) or {}
    try:
        quantity = coerce_int(payload.get("quantity"), "quantity")
    except ValidationError as e:
        return {"error": str(e)}, 400

    permission = "ADD_STOCK" if quantity > 0 else "REMOVE_STOCK"
    try:
        check_permission(g.current_user, permission, resource=request.path)
    except PermissionDeniedError as e:
        return {
            "error": "Permission denied",
            "required_permission": permission,
            "message": str(e),
        }, 403

    try:
        item = get_ledger().stock.adjust_stock(item_id, quantity, g.actor, payload.get("notes"))
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ItemNotFoundError as e:
        return {"error": str(e)}, 404
    except InsufficientStockError as e:
        return {
            "error": str(e),
            "available": e.available,
            "requested": e.requested,
        }, 409
    except Exception:
        current_app.logger.exception("Failed to adjust stock for item %s", item_id)
        return {"error": "Internal server error"}, 500
    return {"item": item.to_dict()}


@items_bp.post("/<item_id>/deactivate")
@require_auth
@require_permission("EDIT_ITEM")
def deactivate_item_route(item_id: str):
    changed = get_ledger().items.deactivate(item_id)
    return {"deactivated": changed}


@items_bp.delete("/<item_id>")
@require_auth
@require_permission("DELETE_ITEM")
def delete_item_route(item_id: str):
    """
    Hard delete with an item_delete ledger entry.

    Query params:
    - purge: "1" also removes the item's earlier ledger entries
    """
    purge = request.args.get("purge", "0").strip().lower() in {"1", "true", "yes"}
    try:
        deleted = get_ledger().stock.delete_item_with_audit(item_id, g.actor, purge_history=purge)
    except Exception:
        current_app.logger.exception("Failed to delete item %s", item_id)
        return {"error": "Internal server error"}, 500
    if not deleted:
        return {"error": "Item not found"}, 404
    return {"deleted": True}


@items_bp.get("/<item_id>/transactions")
@require_auth
@require_permission("VIEW_INVENTORY")
def item_transactions_route(item_id: str):
    """Recent history of one item, newest first. ?limit= (default 20)."""
    limit = request.args.get("limit", 20, type=int)
    entries = get_ledger().transactions.get_by_item_id(item_id, limit=limit)
    return {"transactions": [format_transaction(t) for t in entries]}


@items_bp.get("/<item_id>/audit")
@require_auth
@require_permission("VIEW_TRANSACTIONS")
def audit_item_route(item_id: str):
    try:
        return get_ledger().stock.audit_item(item_id)
    except ItemNotFoundError as e:
        return {"error": str(e)}, 404
