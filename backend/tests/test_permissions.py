"""
Role permissions and the user-management hierarchy.
"""

import pytest

from stockkeep.domain import Actor, Role
from stockkeep.permissions import (
    DEFAULT_ROLE_PERMISSIONS,
    PermissionCategory,
    get_all_permission_codes,
    get_permission_definition,
    get_permissions_by_category,
    has_all_permissions,
    has_any_permission,
    has_permission,
    validate_permission_code,
)
from stockkeep.services import permission_service
from stockkeep.services.permission_service import PermissionDeniedError


def _actor(role, user_id=None):
    return Actor(id=user_id or f"user-{role}", name=role.title(), role=role)


class TestRolePermissions:

    def test_every_role_code_is_defined(self):
        for codes in DEFAULT_ROLE_PERMISSIONS.values():
            assert all(validate_permission_code(c) for c in codes)

    def test_staff_can_only_work_stock(self):
        assert set(DEFAULT_ROLE_PERMISSIONS["staff"]) == {
            "VIEW_INVENTORY", "ADD_STOCK", "REMOVE_STOCK",
        }

    @pytest.mark.parametrize("code", ["DELETE_ITEM", "DELETE_USER"])
    def test_manager_cannot_hard_delete(self, code):
        assert has_permission(Role.MANAGER, code) is False
        assert has_permission(Role.OWNER, code) is True

    def test_owner_has_everything(self):
        assert has_all_permissions("owner", get_all_permission_codes())

    def test_any_and_all(self):
        assert has_any_permission(Role.STAFF, ["DELETE_ITEM", "ADD_STOCK"])
        assert not has_all_permissions(Role.STAFF, ["DELETE_ITEM", "ADD_STOCK"])

    def test_unknown_role_has_nothing(self):
        assert has_permission("admin", "VIEW_INVENTORY") is False

    def test_definition_lookup(self):
        assert get_permission_definition("DELETE_USER") == {
            "code": "DELETE_USER",
            "name": "Delete User",
            "description": "Hard-delete managed users",
            "category": PermissionCategory.USERS,
        }
        assert get_permission_definition("LAUNCH_ROCKETS") is None

    def test_categories_partition_all_codes(self):
        categories = (
            PermissionCategory.INVENTORY,
            PermissionCategory.TRANSACTIONS,
            PermissionCategory.REPORTS,
            PermissionCategory.USERS,
        )
        grouped = [perm[0] for c in categories for perm in get_permissions_by_category(c)]
        assert sorted(grouped) == sorted(get_all_permission_codes())


class TestHierarchy:

    def test_roles_are_ordered(self):
        assert Role.OWNER.outranks(Role.MANAGER)
        assert Role.MANAGER.outranks("staff")
        assert not Role.STAFF.outranks(Role.STAFF)
        assert [r.rank for r in (Role.STAFF, Role.MANAGER, Role.OWNER)] == [0, 1, 2]

    @pytest.mark.parametrize(
        "creator,target,allowed",
        [
            ("owner", "owner", True),
            ("owner", "manager", True),
            ("owner", "staff", True),
            ("manager", "owner", False),
            ("manager", "manager", False),
            ("manager", "staff", True),
            ("staff", "staff", False),
            ("owner", "admin", False),
        ],
    )
    def test_can_create_user(self, creator, target, allowed):
        assert permission_service.can_create_user(creator, target) is allowed

    @pytest.mark.parametrize(
        "actor_role,target_role,allowed",
        [
            ("owner", "manager", True),
            ("owner", "staff", True),
            ("owner", "owner", False),
            ("manager", "staff", True),
            ("manager", "manager", False),
            ("staff", "staff", False),
        ],
    )
    def test_can_delete_user(self, actor_role, target_role, allowed):
        actor = _actor(actor_role, "actor")
        target = _actor(target_role, "target")
        assert permission_service.can_delete_user(actor, target) is allowed

    def test_nobody_deletes_themselves(self):
        owner = _actor("owner")
        assert permission_service.can_delete_user(owner, owner) is False
        with pytest.raises(PermissionDeniedError, match="your own account"):
            permission_service.require_can_delete_user(owner, owner)

    def test_manager_manages_staff_and_self(self):
        manager = _actor("manager")
        assert permission_service.can_manage_user(manager, _actor("staff"))
        assert permission_service.can_manage_user(manager, manager)
        assert not permission_service.can_manage_user(manager, _actor("manager", "other"))
        assert not permission_service.can_manage_user(manager, _actor("owner"))

    def test_require_variants_raise(self):
        with pytest.raises(PermissionDeniedError):
            permission_service.require_can_create_user("manager", "owner")
        with pytest.raises(PermissionDeniedError):
            permission_service.require_permission(_actor("staff"), "DELETE_ITEM")
        permission_service.require_permission(_actor("staff"), "ADD_STOCK")
