# Overview: Flask API routes for user management; parses input and returns JSON responses.

"""
User management routes.

Two layers of checks:
- Role permission (VIEW_USERS, CREATE_USER, ...) via @require_permission
- Role hierarchy (who may act on WHICH role) via permission_service
"""

from flask import Blueprint, request, g, current_app

from ..services.inventory import get_ledger
from ..services import auth_service, permission_service
from ..services.permission_service import PermissionDeniedError
from ..validation import ValidationError, DuplicateUsernameError
from ..decorators import require_auth, require_permission

users_bp = Blueprint("users", __name__, url_prefix="/api/users")

USER_EDITABLE_FIELDS = {"name", "pin", "role", "is_active"}


def _load_target(user_id: str):
    return get_ledger().users.get_raw(user_id)


@users_bp.get("")
@require_auth
@require_permission("VIEW_USERS")
def list_users_route():
    return {"users": [u.to_dict() for u in get_ledger().users.get_all()]}


@users_bp.get("/<user_id>")
@require_auth
@require_permission("VIEW_USERS")
def get_user_route(user_id: str):
    user = get_ledger().users.find_by_id(user_id)
    if user is None:
        return {"error": "User not found"}, 404
    return {"user": user.to_dict()}


@users_bp.post("")
@require_auth
@require_permission("CREATE_USER")
def create_user_route():
    """Body: {"username", "pin", "name", "role"}"""
    payload = request.get_json(silent=True) or {}
    missing = sorted(f for f in ("username", "pin", "name", "role") if not payload.get(f))
    if missing:
        return {"error": f"Missing required fields: {', '.join(missing)}"}, 400

    try:
        permission_service.require_can_create_user(g.current_user.role, payload["role"])
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403

    try:
        user = get_ledger().users.register(
            payload["username"],
            payload["pin"],
            payload["name"],
            payload["role"],
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except DuplicateUsernameError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create user")
        return {"error": "Internal server error"}, 500
    return {"user": user.to_dict()}, 201


@users_bp.patch("/<user_id>")
@require_auth
@require_permission("EDIT_USER")
def update_user_route(user_id: str):
    """Body may contain name, pin, role, is_active."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    unknown = sorted(set(payload) - USER_EDITABLE_FIELDS)
    if unknown:
        return {"error": f"Field not allowed: {', '.join(unknown)}"}, 400

    target = _load_target(user_id)
    if target is None:
        return {"error": "User not found"}, 404

    try:
        permission_service.require_can_manage_user(g.current_user, target)
        if "role" in payload and payload["role"] != target.role.value:
            permission_service.require_can_create_user(g.current_user.role, payload["role"])
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403

    changes = {k: v for k, v in payload.items() if k != "pin"}
    try:
        if "pin" in payload:
            changes["pin_hash"] = auth_service.hash_pin(
                payload["pin"], rounds=current_app.config.get("PIN_HASH_ROUNDS", 12)
            )
        user = get_ledger().users.update(user_id, **changes)
    except ValidationError as e:
        return {"error": str(e)}, 400
    if user is None:
        return {"error": "User not found"}, 404
    return {"user": user.to_dict()}


@users_bp.post("/<user_id>/deactivate")
@require_auth
@require_permission("DEACTIVATE_USER")
def deactivate_user_route(user_id: str):
    target = _load_target(user_id)
    if target is None:
        return {"error": "User not found"}, 404
    if target.id == g.current_user.id:
        return {"error": "Permission denied", "message": "You cannot deactivate your own account"}, 403
    try:
        permission_service.require_can_manage_user(g.current_user, target)
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403
    return {"deactivated": get_ledger().users.deactivate(user_id)}


@users_bp.delete("/<user_id>")
@require_auth
@require_permission("DELETE_USER")
def delete_user_route(user_id: str):
    """Hard delete. Ledger entries keep the user's name/role snapshot."""
    target = _load_target(user_id)
    if target is None:
        return {"error": "User not found"}, 404
    try:
        permission_service.require_can_delete_user(g.current_user, target)
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403
    return {"deleted": get_ledger().users.delete(user_id)}
