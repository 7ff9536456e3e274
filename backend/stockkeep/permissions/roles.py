# Overview: Default permission sets per role.

from .definitions import PERMISSION_DEFINITIONS


_ALL_CODES = [perm[0] for perm in PERMISSION_DEFINITIONS]

DEFAULT_ROLE_PERMISSIONS = {
    "staff": [
        "VIEW_INVENTORY",
        "ADD_STOCK",
        "REMOVE_STOCK",
    ],
    "manager": [
        "VIEW_INVENTORY",
        "ADD_STOCK",
        "REMOVE_STOCK",
        "CREATE_ITEM",
        "EDIT_ITEM",
        "MANAGE_CATEGORIES",
        "VIEW_TRANSACTIONS",
        "EXPORT_TRANSACTIONS",
        "VIEW_REPORTS",
        "EXPORT_REPORTS",
        "VIEW_USERS",
        "CREATE_USER",
        "EDIT_USER",
        "DEACTIVATE_USER",
    ],
    # Owner gets everything
    "owner": list(_ALL_CODES),
}
