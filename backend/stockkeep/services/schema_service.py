# Overview: Service-layer operations for schema lifecycle and first-run seed data.

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..domain import Actor, Role
from ..storage import Query, StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_OWNER = {
    "username": "owner",
    "pin": "1234",
    "name": "Business Owner",
    "role": Role.OWNER,
}


@dataclass(frozen=True)
class SampleItem:
    name: str
    category: str
    quantity: int
    low_stock_threshold: int
    description: str


SAMPLE_ITEMS = (
    SampleItem("Laptop", "Electronics", 10, 5, "Portable computer"),
    SampleItem("Vegetable Oil 1L", "Cooking Oil", 15, 8, "1 liter bottle of vegetable oil"),
    SampleItem("Liquid Seasoning", "Seasonings", 5, 10, "Liquid seasoning for cooking"),
)


class SchemaManager:
    """
    Creates, drops and seeds the four collections.

    Seeding is first-run only: it does nothing once any user exists.
    """

    def __init__(self, backend: StorageBackend, inventory, seed_sample_items: bool = False):
        self.backend = backend
        self.inventory = inventory
        self.seed_sample_items = seed_sample_items

    def create_schema(self) -> None:
        self.backend.create_schema()

    def drop_schema(self) -> None:
        logger.warning("Dropping all %s collections", self.backend.name)
        self.backend.drop_schema()

    def apply_seed_data_if_empty(self) -> bool:
        if self.backend.count("users", Query()) > 0:
            return False

        owner = self.inventory.users.register(
            DEFAULT_OWNER["username"],
            DEFAULT_OWNER["pin"],
            DEFAULT_OWNER["name"],
            DEFAULT_OWNER["role"],
        )
        logger.info("Seeded default owner account '%s'", owner.username)

        if self.seed_sample_items:
            actor = Actor.from_user(owner)
            for sample in SAMPLE_ITEMS:
                if self.inventory.categories.find_by_name(sample.category) is None:
                    self.inventory.categories.create(sample.category, owner.id)
                self.inventory.stock.create_item_with_initial_stock(
                    {
                        "name": sample.name,
                        "category": sample.category,
                        "quantity": sample.quantity,
                        "low_stock_threshold": sample.low_stock_threshold,
                        "description": sample.description,
                    },
                    actor,
                )
            logger.info("Seeded %d sample items", len(SAMPLE_ITEMS))
        return True

    def reset(self) -> bool:
        self.drop_schema()
        self.create_schema()
        return self.apply_seed_data_if_empty()
