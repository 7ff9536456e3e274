# Overview: Flask API routes for categories; parses input and returns JSON responses.

from flask import Blueprint, request, g

from ..services.category_service import CATEGORY_UPDATE_POLICY
from ..services.inventory import get_ledger
from ..validation import (
    ValidationError,
    CategoryNotFoundError,
    CategoryInUseError,
    DuplicateCategoryError,
)
from ..decorators import require_auth, require_permission

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_categories_route():
    return {"categories": [c.to_dict() for c in get_ledger().categories.get_all()]}


@categories_bp.get("/<category_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_category_route(category_id: str):
    category = get_ledger().categories.find_by_id(category_id)
    if category is None:
        return {"error": "Category not found"}, 404
    return {"category": category.to_dict()}


@categories_bp.post("")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        category = get_ledger().categories.create(
            payload.get("name"),
            g.current_user.id,
            description=payload.get("description"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except DuplicateCategoryError as e:
        return {"error": str(e)}, 409
    return {"category": category.to_dict()}, 201


@categories_bp.patch("/<category_id>")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def update_category_route(category_id: str):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    unknown = sorted(set(payload) - CATEGORY_UPDATE_POLICY.writable_fields)
    if unknown:
        return {"error": f"Field not allowed: {', '.join(unknown)}"}, 400
    try:
        category = get_ledger().categories.update(category_id, **payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except CategoryNotFoundError as e:
        return {"error": str(e)}, 404
    except DuplicateCategoryError as e:
        return {"error": str(e)}, 409
    return {"category": category.to_dict()}


@categories_bp.delete("/<category_id>")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def delete_category_route(category_id: str):
    """Soft-deactivates; refused with 409 while active items use the name."""
    try:
        changed = get_ledger().categories.delete(category_id)
    except CategoryNotFoundError as e:
        return {"error": str(e)}, 404
    except CategoryInUseError as e:
        return {"error": str(e)}, 409
    return {"deleted": changed}
