"""
Item store: creation, reads, metadata edits and soft deletion.
"""

import pytest

from stockkeep.validation import ValidationError


class TestCreate:

    def test_create_writes_no_ledger_entry(self, ledger, users, clock):
        item = ledger.items.create(
            {"name": "Soap", "category": "Cleaning", "quantity": 7},
            users["owner"].id,
        )

        assert item.quantity == 7
        assert item.low_stock_threshold == 10
        assert item.date_added == clock.now
        assert item.is_active is True
        assert ledger.transactions.get_by_item_id(item.id) == []

    def test_round_trip(self, ledger, make_item):
        item = make_item(description="Long grain")
        assert ledger.items.find_by_id(item.id) == item

    @pytest.mark.parametrize(
        "data",
        [
            {"name": "", "category": "Grains"},
            {"name": "Rice", "category": "  "},
            {"category": "Grains"},
            {"name": "Rice"},
            {"name": "Rice", "category": "Grains", "quantity": -1},
            {"name": "Rice", "category": "Grains", "quantity": 2.5},
            {"name": "Rice", "category": "Grains", "quantity": True},
            {"name": "Rice", "category": "Grains", "low_stock_threshold": -3},
            {"name": "Rice", "category": "Grains", "is_active": False},
        ],
    )
    def test_invalid_input_rejected(self, ledger, users, data):
        with pytest.raises(ValidationError):
            ledger.items.create(data, users["owner"].id)
        assert ledger.items.get_all() == []


class TestReads:

    def test_get_all_sorted_by_name(self, ledger, make_item):
        make_item(name="Sugar")
        make_item(name="Flour")
        make_item(name="Rice")
        assert [i.name for i in ledger.items.get_all()] == ["Flour", "Rice", "Sugar"]

    def test_by_category_and_search(self, ledger, make_item):
        make_item(name="Brown Rice", category="Grains")
        make_item(name="White RICE", category="Grains")
        make_item(name="Rice Crackers", category="Snacks")
        make_item(name="Oats", category="Grains")

        assert [i.name for i in ledger.items.get_by_category("Grains")] == [
            "Brown Rice", "Oats", "White RICE",
        ]
        assert [i.name for i in ledger.items.search_by_name("rice")] == [
            "Brown Rice", "Rice Crackers", "White RICE",
        ]
        assert ledger.items.search_by_name("quinoa") == []

    def test_search_treats_wildcards_literally(self, ledger, make_item):
        make_item(name="100% Juice")
        make_item(name="Apple Juice")
        assert [i.name for i in ledger.items.search_by_name("0%")] == ["100% Juice"]
        assert ledger.items.search_by_name("_") == []

    def test_search_folds_ascii_case_only(self, ledger, make_item):
        make_item(name="Crème Brûlée")
        assert [i.name for i in ledger.items.search_by_name("crème")] == ["Crème Brûlée"]
        assert [i.name for i in ledger.items.search_by_name("BRûLéE")] == ["Crème Brûlée"]
        assert ledger.items.search_by_name("CRÈME") == []

    def test_low_stock_ordered_by_quantity(self, ledger, make_item):
        make_item(name="A", quantity=5, low_stock_threshold=5)
        make_item(name="B", quantity=0, low_stock_threshold=3)
        make_item(name="C", quantity=6, low_stock_threshold=5)
        make_item(name="D", quantity=2, low_stock_threshold=10)

        low = ledger.items.get_low_stock_items()
        assert [i.name for i in low] == ["B", "D", "A"]
        assert all(i.is_low_stock for i in low)

    def test_get_categories_distinct_sorted(self, ledger, make_item):
        make_item(name="A", category="Snacks")
        make_item(name="B", category="Beverages")
        make_item(name="C", category="Snacks")
        hidden = make_item(name="D", category="Cleaning")
        ledger.items.deactivate(hidden.id)

        assert ledger.items.get_categories() == ["Beverages", "Snacks"]
        assert ledger.items.has_active_items_in_category("Snacks") is True
        assert ledger.items.has_active_items_in_category("Cleaning") is False


class TestUpdate:

    def test_metadata_update(self, ledger, make_item, clock):
        item = make_item()
        clock.tick(1000)
        updated = ledger.items.update(item.id, name="Rice 10kg", low_stock_threshold=2)

        assert updated.name == "Rice 10kg"
        assert updated.low_stock_threshold == 2
        assert updated.quantity == item.quantity
        assert updated.updated_at == clock.now

    def test_quantity_cannot_be_edited_directly(self, ledger, make_item):
        item = make_item(quantity=10)
        with pytest.raises(ValidationError):
            ledger.items.update(item.id, quantity=99)
        assert ledger.items.find_by_id(item.id).quantity == 10

    def test_update_missing_returns_none(self, ledger):
        assert ledger.items.update("item-missing", name="X") is None

    def test_update_quantity_stamps_direction(self, ledger, make_item, clock):
        item = make_item(quantity=10)
        clock.tick(10)
        added = ledger.items.update_quantity(item.id, 12, 2)
        assert added.last_stock_added == clock.now
        assert added.last_stock_removed is None

        clock.tick(10)
        removed = ledger.items.update_quantity(item.id, 9, -3)
        assert removed.last_stock_removed == clock.now
        assert removed.last_stock_added == clock.now - 10


class TestDeactivate:

    def test_deactivate_twice_is_a_noop(self, ledger, make_item, clock):
        item = make_item()
        clock.tick(5)
        assert ledger.items.deactivate(item.id) is True
        stamped = ledger.backend.get("items", item.id)["updated_at"]

        clock.tick(5)
        assert ledger.items.deactivate(item.id) is False
        assert ledger.backend.get("items", item.id)["updated_at"] == stamped
        assert ledger.items.find_by_id(item.id) is None
        assert ledger.items.get_all() == []
