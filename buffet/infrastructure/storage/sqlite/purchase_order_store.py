"""SQLite implementation of purchase order storage."""

import uuid

import aiosqlite

from buffet.config import get_logger
from buffet.core.entities.material import MaterialUnit
from buffet.core.entities.purchase_order import (
    PurchaseCategoryRef,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from buffet.core.interfaces.purchase_order_store import IPurchaseOrderStore
from buffet.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from buffet.infrastructure.storage.sqlite.serialization import (
    format_optional_timestamp,
    format_timestamp,
    parse_optional_timestamp,
    parse_timestamp,
)

logger = get_logger(__name__)


async def _fetch_items(
    conn: aiosqlite.Connection, order_id: str
) -> list[PurchaseOrderItem]:
    cursor = await conn.execute(
        "SELECT * FROM purchase_order_items WHERE order_id = ? ORDER BY line_no",
        (order_id,),
    )
    rows = await cursor.fetchall()
    return [SQLitePurchaseOrderStore._row_to_item(row) for row in rows]


async def fetch_purchase_order(
    conn: aiosqlite.Connection, order_id: str
) -> PurchaseOrder | None:
    """Read one purchase order with its items on an existing connection."""
    cursor = await conn.execute(
        "SELECT * FROM purchase_orders WHERE id = ?", (order_id,)
    )
    row = await cursor.fetchone()
    if row is None:
        return None
    items = await _fetch_items(conn, order_id)
    return SQLitePurchaseOrderStore._row_to_order(row, items)


class SQLitePurchaseOrderStore(IPurchaseOrderStore):
    """SQLite implementation of purchase order storage."""

    async def create_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Create a purchase order with all of its lines."""
        if not order.id:
            order.id = str(uuid.uuid4())
        order.version = 1
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO purchase_orders (
                    id, status, category_id, category_name, location,
                    receipt_image_url, created_at, received_at, version
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    order.id,
                    order.status.value,
                    order.category.id,
                    order.category.name,
                    order.location,
                    order.receipt_image_url,
                    format_timestamp(order.created_at),
                    format_optional_timestamp(order.received_at),
                    order.version,
                ),
            )
            await conn.executemany(
                """
                INSERT INTO purchase_order_items (
                    order_id, line_no, material_id, quantity, unit, price, note
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        order.id,
                        line_no,
                        item.material_id,
                        item.quantity,
                        item.unit.value,
                        item.price,
                        item.note,
                    )
                    for line_no, item in enumerate(order.items, start=1)
                ],
            )
            logger.info(
                "purchase_order_created",
                order_id=order.id,
                items=len(order.items),
                total=order.total,
            )
            return order

    async def get_order(self, order_id: str) -> PurchaseOrder | None:
        """Get purchase order by ID with items."""
        async with get_connection() as conn:
            return await fetch_purchase_order(conn, order_id)

    async def list_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[PurchaseOrder]:
        """List purchase orders, newest first."""
        sql = "SELECT * FROM purchase_orders"
        params: list = []
        if status is not None:
            sql += " WHERE status = ?"
            params.append(status.value)
        sql += " ORDER BY created_at DESC, id LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        async with get_connection() as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
            orders = []
            for row in rows:
                items = await _fetch_items(conn, row["id"])
                orders.append(self._row_to_order(row, items))
            return orders

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> PurchaseOrderItem:
        """Convert a database row to a PurchaseOrderItem."""
        return PurchaseOrderItem(
            material_id=row["material_id"],
            quantity=float(row["quantity"]),
            unit=MaterialUnit(row["unit"]),
            price=float(row["price"]),
            note=row["note"] or "",
        )

    @staticmethod
    def _row_to_order(
        row: aiosqlite.Row, items: list[PurchaseOrderItem]
    ) -> PurchaseOrder:
        """Convert a database row and its items to a PurchaseOrder."""
        return PurchaseOrder(
            id=row["id"],
            items=items,
            status=PurchaseOrderStatus(row["status"]),
            category=PurchaseCategoryRef(id=row["category_id"], name=row["category_name"]),
            location=row["location"],
            created_at=parse_timestamp(row["created_at"]),
            received_at=parse_optional_timestamp(row["received_at"]),
            receipt_image_url=row["receipt_image_url"],
            version=row["version"],
        )
