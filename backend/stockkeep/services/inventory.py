# Overview: Facade wiring every store over one storage backend.

from __future__ import annotations

from typing import Callable

from flask import current_app

from .. import events
from ..storage import StorageBackend, make_backend
from ..time_utils import now_ms
from .category_service import CategoryStore
from .identity_service import IdentityStore
from .item_service import ItemStore
from .ledger_service import TransactionLedger
from .schema_service import SchemaManager
from .stock_service import StockService

EXTENSION_KEY = "stockkeep"


class InventoryLedger:
    """
    One object per application: the stores share a backend and a clock.

    Callers should go through `stock` for anything that changes quantity
    and through the other stores for reads and metadata.
    """

    events = events

    def __init__(
        self,
        backend: StorageBackend,
        clock: Callable[[], int] = now_ms,
        pin_rounds: int = 12,
        strict_initial_stock: bool = False,
        seed_sample_items: bool = False,
    ):
        self.backend = backend
        self.clock = clock
        self.transactions = TransactionLedger(backend, clock)
        self.items = ItemStore(backend, self.transactions, clock)
        self.categories = CategoryStore(backend, self.items, clock)
        self.users = IdentityStore(backend, clock, pin_rounds=pin_rounds)
        self.stock = StockService(
            backend, self.items, self.transactions, strict_initial_stock=strict_initial_stock
        )
        self.schema = SchemaManager(backend, self, seed_sample_items=seed_sample_items)

    @classmethod
    def from_app(cls, app, clock: Callable[[], int] = now_ms) -> "InventoryLedger":
        return cls(
            make_backend(app),
            clock=clock,
            pin_rounds=app.config.get("PIN_HASH_ROUNDS", 12),
            strict_initial_stock=app.config.get("STRICT_INITIAL_STOCK", False),
            seed_sample_items=app.config.get("SEED_SAMPLE_ITEMS", False),
        )


def get_ledger() -> InventoryLedger:
    return current_app.extensions[EXTENSION_KEY]
