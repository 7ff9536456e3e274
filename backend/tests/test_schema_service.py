"""
Schema lifecycle and first-run seeding.
"""

from stockkeep.domain import Role
from stockkeep.services.schema_service import SAMPLE_ITEMS


class TestSchemaLifecycle:

    def test_create_schema_is_idempotent(self, ledger, users):
        ledger.schema.create_schema()
        ledger.schema.create_schema()
        assert len(ledger.users.get_all()) == 3

    def test_reset_clears_everything_and_reseeds(self, ledger, users, make_item):
        make_item()
        ledger.schema.reset()

        assert ledger.items.get_all() == []
        assert ledger.transactions.get_all() == []
        remaining = ledger.users.get_all()
        assert [u.username for u in remaining] == ["owner"]


class TestSeedData:

    def test_seeds_default_owner_when_empty(self, ledger):
        assert ledger.schema.apply_seed_data_if_empty() is True

        owner = ledger.users.find_by_username("owner")
        assert owner is not None
        assert owner.role == Role.OWNER
        assert owner.name == "Business Owner"
        assert ledger.users.authenticate("owner", "1234") is not None

    def test_seed_is_first_run_only(self, ledger, users):
        assert ledger.schema.apply_seed_data_if_empty() is False
        assert ledger.users.find_by_username("owner") is None

    def test_sample_items_are_reconstructible(self, ledger):
        ledger.schema.seed_sample_items = True
        ledger.schema.apply_seed_data_if_empty()

        items = {item.name: item for item in ledger.items.get_all()}
        assert set(items) == {s.name for s in SAMPLE_ITEMS}
        for sample in SAMPLE_ITEMS:
            item = items[sample.name]
            assert item.quantity == sample.quantity
            assert ledger.stock.reconstruct_quantity(item.id) == sample.quantity

        assert ledger.categories.get_names() == ["Cooking Oil", "Electronics", "Seasonings"]
        # Liquid Seasoning starts at 5 with threshold 10
        assert [i.name for i in ledger.items.get_low_stock_items()] == ["Liquid Seasoning"]
