# Overview: Service-layer operations for permission checks and the user role hierarchy.

"""
Permission Checking

WHY: Route permissions come from role defaults (permissions.roles). User
management adds a second, relational rule: who may create, manage or
delete WHICH role. Those rules live here so routes and the CLI share them.

DESIGN PRINCIPLES:
- Fail closed: unknown roles get no permissions
- Log denials only: grants are not logged
- Nobody deletes their own account
"""

import logging

from ..domain import Role
from ..permissions import has_permission

logger = logging.getLogger(__name__)


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""
    pass


def _role(value):
    try:
        return Role(getattr(value, "value", value))
    except ValueError:
        return None


def user_has_permission(user, permission_code: str) -> bool:
    return bool(user) and has_permission(user.role, permission_code)


def require_permission(user, permission_code: str, resource: str | None = None) -> None:
    """
    Raise PermissionDeniedError unless the user's role grants the code.

    Usage:
        require_permission(g.current_user, "DELETE_ITEM", resource=request.path)
    """
    if not user_has_permission(user, permission_code):
        logger.warning(
            "Permission denied: user=%s code=%s resource=%s",
            getattr(user, "id", None), permission_code, resource,
        )
        raise PermissionDeniedError(f"Permission denied: {permission_code}")


def can_create_user(creator_role, target_role) -> bool:
    """Owners create any role; managers create staff; staff create nobody."""
    creator, target = _role(creator_role), _role(target_role)
    if creator is None or target is None:
        return False
    return creator == Role.OWNER or creator.outranks(target)


def can_manage_user(actor, target) -> bool:
    """
    Edit / deactivate. Owners manage everyone; managers manage staff and
    themselves; staff manage nobody.
    """
    actor_role, target_role = _role(actor.role), _role(target.role)
    if actor_role is None or target_role is None:
        return False
    if actor_role == Role.OWNER or actor_role.outranks(target_role):
        return True
    return actor_role == Role.MANAGER and actor.id == target.id


def can_delete_user(actor, target) -> bool:
    """Owners delete managers and staff; managers delete staff; never self."""
    if actor.id == target.id:
        return False
    actor_role, target_role = _role(actor.role), _role(target.role)
    if actor_role is None or target_role is None:
        return False
    return actor_role.outranks(target_role)


def require_can_create_user(creator_role, target_role) -> None:
    if not can_create_user(creator_role, target_role):
        raise PermissionDeniedError(
            f"Role {getattr(creator_role, 'value', creator_role)} cannot create "
            f"{getattr(target_role, 'value', target_role)} accounts"
        )


def require_can_manage_user(actor, target) -> None:
    if not can_manage_user(actor, target):
        raise PermissionDeniedError("You cannot manage this user")


def require_can_delete_user(actor, target) -> None:
    if actor.id == target.id:
        raise PermissionDeniedError("You cannot delete your own account")
    if not can_delete_user(actor, target):
        raise PermissionDeniedError("You cannot delete this user")
