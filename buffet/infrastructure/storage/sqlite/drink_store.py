"""SQLite implementation of drink and recipe storage."""

import uuid
from datetime import UTC, datetime

import aiosqlite

from buffet.config import get_logger
from buffet.core.entities.drink import Drink, DrinkRecipeItem
from buffet.core.entities.material import MaterialUnit
from buffet.core.interfaces.drink_store import IDrinkStore
from buffet.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from buffet.infrastructure.storage.sqlite.serialization import (
    format_timestamp,
    parse_timestamp,
)

logger = get_logger(__name__)


class SQLiteDrinkStore(IDrinkStore):
    """SQLite implementation of drink storage."""

    async def create_drink(self, drink: Drink) -> Drink:
        """Create a drink and its recipe lines."""
        if not drink.id:
            drink.id = str(uuid.uuid4())
        drink.created_at = datetime.now(UTC)
        async with get_transaction() as conn:
            await conn.execute(
                "INSERT INTO drinks (id, name, price, created_at) VALUES (?, ?, ?, ?)",
                (drink.id, drink.name, drink.price, format_timestamp(drink.created_at)),
            )
            await conn.executemany(
                """
                INSERT INTO drink_recipe_items (drink_id, material_id, quantity, unit)
                VALUES (?, ?, ?, ?)
                """,
                [
                    (drink.id, line.material_id, line.quantity, line.unit.value)
                    for line in drink.recipe
                ],
            )
            logger.info("drink_created", drink_id=drink.id, name=drink.name)
            return drink

    async def get_drink(self, drink_id: str) -> Drink | None:
        """Get drink by ID with recipe."""
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM drinks WHERE id = ?", (drink_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return await self._load(conn, row)

    async def list_drinks(self) -> list[Drink]:
        """List drinks ordered by name."""
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM drinks ORDER BY name COLLATE NOCASE")
            rows = await cursor.fetchall()
            return [await self._load(conn, row) for row in rows]

    async def _load(self, conn: aiosqlite.Connection, row: aiosqlite.Row) -> Drink:
        cursor = await conn.execute(
            "SELECT * FROM drink_recipe_items WHERE drink_id = ? ORDER BY id",
            (row["id"],),
        )
        recipe_rows = await cursor.fetchall()
        return Drink(
            id=row["id"],
            name=row["name"],
            price=float(row["price"]),
            recipe=[
                DrinkRecipeItem(
                    material_id=r["material_id"],
                    quantity=float(r["quantity"]),
                    unit=MaterialUnit(r["unit"]),
                )
                for r in recipe_rows
            ],
            created_at=parse_timestamp(row["created_at"]),
        )
