"""SQLite implementation of inventory count storage."""

from datetime import date

import aiosqlite

from buffet.core.entities.inventory_count import InventoryCount, InventoryCountItem
from buffet.core.entities.material import MaterialUnit
from buffet.core.interfaces.inventory_count_store import IInventoryCountStore
from buffet.infrastructure.storage.sqlite.connection import get_connection
from buffet.infrastructure.storage.sqlite.serialization import (
    format_timestamp,
    parse_date,
    parse_optional_timestamp,
    parse_timestamp,
)


async def insert_inventory_count(conn: aiosqlite.Connection, count: InventoryCount) -> None:
    """Write a count and its items on a connection inside a transaction."""
    await conn.execute(
        """
        INSERT INTO inventory_counts (id, count_date, as_of, created_at)
        VALUES (?, ?, ?, ?)
        """,
        (
            count.id,
            count.count_date.isoformat(),
            format_timestamp(count.as_of),
            format_timestamp(count.created_at),
        ),
    )
    await conn.executemany(
        """
        INSERT INTO inventory_count_items (
            count_id, material_id, material_name, unit,
            system_stock, counted_stock, wastage
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (
                count.id,
                item.material_id,
                item.material_name,
                item.unit.value,
                item.system_stock,
                item.counted_stock,
                item.wastage,
            )
            for item in count.items
        ],
    )


class SQLiteInventoryCountStore(IInventoryCountStore):
    """Read side of saved inventory counts."""

    async def get_count(self, count_id: str) -> InventoryCount | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM inventory_counts WHERE id = ?", (count_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return await self._load(conn, row)

    async def list_counts(
        self,
        start: date | None = None,
        end: date | None = None,
        limit: int = 100,
    ) -> list[InventoryCount]:
        """List counts with count_date in [start, end], newest first."""
        conditions = []
        params: list = []
        if start is not None:
            conditions.append("count_date >= ?")
            params.append(start.isoformat())
        if end is not None:
            conditions.append("count_date <= ?")
            params.append(end.isoformat())

        sql = "SELECT * FROM inventory_counts"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY count_date DESC, created_at DESC LIMIT ?"
        params.append(limit)

        async with get_connection() as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
            return [await self._load(conn, row) for row in rows]

    async def _load(self, conn: aiosqlite.Connection, row: aiosqlite.Row) -> InventoryCount:
        cursor = await conn.execute(
            "SELECT * FROM inventory_count_items WHERE count_id = ? ORDER BY id",
            (row["id"],),
        )
        item_rows = await cursor.fetchall()
        return InventoryCount(
            id=row["id"],
            count_date=parse_date(row["count_date"]),
            as_of=parse_timestamp(row["as_of"]),
            items=[self._row_to_item(r) for r in item_rows],
            created_at=parse_optional_timestamp(row["created_at"]),
        )

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> InventoryCountItem:
        """Convert a database row to an InventoryCountItem."""
        return InventoryCountItem(
            material_id=row["material_id"],
            material_name=row["material_name"],
            unit=MaterialUnit(row["unit"]),
            system_stock=float(row["system_stock"]),
            counted_stock=float(row["counted_stock"]),
        )
