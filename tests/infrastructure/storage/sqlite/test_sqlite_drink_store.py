"""Tests for SQLite drink store."""

import pytest

from buffet.core.entities.drink import Drink, DrinkRecipeItem
from buffet.core.entities.material import MaterialUnit
from buffet.infrastructure.storage.sqlite.drink_store import SQLiteDrinkStore


@pytest.fixture
def store(db) -> SQLiteDrinkStore:
    return SQLiteDrinkStore()


class TestSQLiteDrinkStore:
    """Tests for SQLiteDrinkStore."""

    async def test_create_and_get_with_recipe(self, store):
        drink = Drink(
            name="Latte",
            price=3.2,
            recipe=[
                DrinkRecipeItem(material_id="coffee", quantity=18, unit=MaterialUnit.G),
                DrinkRecipeItem(material_id="milk", quantity=200, unit=MaterialUnit.ML),
            ],
        )
        created = await store.create_drink(drink)
        loaded = await store.get_drink(created.id)

        assert loaded is not None
        assert loaded.name == "Latte"
        assert loaded.price == 3.2
        assert [(r.material_id, r.quantity, r.unit) for r in loaded.recipe] == [
            ("coffee", 18.0, MaterialUnit.G),
            ("milk", 200.0, MaterialUnit.ML),
        ]

    async def test_drink_without_recipe(self, store):
        created = await store.create_drink(Drink(name="Water"))
        loaded = await store.get_drink(created.id)
        assert loaded.recipe == []

    async def test_get_missing_returns_none(self, store):
        assert await store.get_drink("nope") is None

    async def test_list_sorted_by_name(self, store):
        await store.create_drink(Drink(name="tea"))
        await store.create_drink(Drink(name="Espresso"))
        assert [d.name for d in await store.list_drinks()] == ["Espresso", "tea"]
