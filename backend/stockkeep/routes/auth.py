# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
PIN login, current-user lookup and the permission catalogue.

SECURITY:
- Failed logins never reveal whether the username or the PIN was wrong
- Tokens are signed and expire after TOKEN_MAX_AGE_SECONDS
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services.inventory import get_ledger
from ..permissions import (
    get_all_permission_codes,
    get_permission_definition,
    get_permissions_by_category,
    get_role_permissions,
)
from ..decorators import require_auth, require_permission


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate with username + PIN.

    Returns user info, the role's permission codes and a bearer token.
    """
    try:
        data = request.get_json(silent=True) or {}
        username = data.get("username")
        pin = data.get("pin")

        if not username or not pin:
            return jsonify({"error": "username and pin required"}), 400

        user = get_ledger().users.authenticate(str(username), str(pin))
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        return jsonify({
            "user": user.to_dict(),
            "permissions": get_role_permissions(user.role),
            "token": auth_service.issue_token(user.id),
            "message": "Login successful"
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "permissions": get_role_permissions(user.role),
    })


@auth_bp.get("/permissions")
@require_auth
@require_permission("VIEW_USERS")
def list_permissions_route():
    """
    List all available permissions.

    Query params:
    - category: str - filter by category
    """
    category = request.args.get("category")
    if category:
        codes = [perm[0] for perm in get_permissions_by_category(category)]
    else:
        codes = get_all_permission_codes()

    permissions = [get_permission_definition(code) for code in codes]
    permissions.sort(key=lambda p: (p["category"], p["code"]))
    return jsonify({"permissions": permissions})
