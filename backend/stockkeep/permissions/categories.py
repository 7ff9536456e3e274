# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    INVENTORY = "INVENTORY"
    TRANSACTIONS = "TRANSACTIONS"
    REPORTS = "REPORTS"
    USERS = "USERS"
