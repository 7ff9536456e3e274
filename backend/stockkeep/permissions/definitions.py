# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "VIEW_INVENTORY",
        "View Inventory",
        "View items, quantities and low-stock lists",
        PermissionCategory.INVENTORY,
    ),
    (
        "ADD_STOCK",
        "Add Stock",
        "Increase an item's quantity (writes an add entry)",
        PermissionCategory.INVENTORY,
    ),
    (
        "REMOVE_STOCK",
        "Remove Stock",
        "Decrease an item's quantity (writes a remove entry)",
        PermissionCategory.INVENTORY,
    ),
    (
        "CREATE_ITEM",
        "Create Item",
        "Create items, optionally with initial stock",
        PermissionCategory.INVENTORY,
    ),
    (
        "EDIT_ITEM",
        "Edit Item",
        "Edit item metadata and deactivate items",
        PermissionCategory.INVENTORY,
    ),
    (
        "DELETE_ITEM",
        "Delete Item",
        "Hard-delete items (an item_delete entry is kept)",
        PermissionCategory.INVENTORY,
    ),
    (
        "MANAGE_CATEGORIES",
        "Manage Categories",
        "Create, rename and remove categories",
        PermissionCategory.INVENTORY,
    ),
]


# -- TRANSACTIONS --

TRANSACTION_PERMISSIONS = [
    (
        "VIEW_TRANSACTIONS",
        "View Transactions",
        "Browse the transaction ledger",
        PermissionCategory.TRANSACTIONS,
    ),
    (
        "EXPORT_TRANSACTIONS",
        "Export Transactions",
        "Download ledger entries as CSV",
        PermissionCategory.TRANSACTIONS,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_REPORTS",
        "View Reports",
        "View ledger statistics",
        PermissionCategory.REPORTS,
    ),
    (
        "EXPORT_REPORTS",
        "Export Reports",
        "Download summary reports as CSV",
        PermissionCategory.REPORTS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "VIEW_USERS",
        "View Users",
        "List user accounts",
        PermissionCategory.USERS,
    ),
    (
        "CREATE_USER",
        "Create User",
        "Create accounts at or below the role hierarchy allows",
        PermissionCategory.USERS,
    ),
    (
        "EDIT_USER",
        "Edit User",
        "Edit names, PINs and roles of managed users",
        PermissionCategory.USERS,
    ),
    (
        "DEACTIVATE_USER",
        "Deactivate User",
        "Soft-delete managed users",
        PermissionCategory.USERS,
    ),
    (
        "DELETE_USER",
        "Delete User",
        "Hard-delete managed users",
        PermissionCategory.USERS,
    ),
]


PERMISSION_DEFINITIONS = (
    INVENTORY_PERMISSIONS
    + TRANSACTION_PERMISSIONS
    + REPORT_PERMISSIONS
    + USER_PERMISSIONS
)
