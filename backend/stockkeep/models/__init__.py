from .auth import UserRow
from .inventory import CategoryRow, ItemRow, TransactionRow

__all__ = [
    'UserRow',
    'CategoryRow', 'ItemRow', 'TransactionRow',
]
