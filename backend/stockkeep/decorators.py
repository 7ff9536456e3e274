# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .domain import Actor
from .services import auth_service, permission_service
from .services.inventory import get_ledger
from .services.permission_service import PermissionDeniedError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'actor')


def require_auth(f):
    """
    Require a valid bearer token for an active user.

    Sets the following Flask g attributes:
    - g.current_user: the authenticated domain.User
    - g.actor: domain.Actor snapshot used to attribute ledger entries

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid or expired token
    - User account deactivated or deleted since the token was issued
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        user_id = auth_service.resolve_token(token)
        if not user_id:
            return jsonify({"error": "Invalid or expired token"}), 401

        user = get_ledger().users.find_by_id(user_id)
        if user is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = user
        g.actor = Actor.from_user(user)

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a role permission. Must be stacked under @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_permission(
                    g.current_user,
                    permission_code,
                    resource=request.path,
                )
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": str(e)
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
