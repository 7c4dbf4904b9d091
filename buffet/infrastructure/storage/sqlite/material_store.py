"""
SQLite implementation of material catalogue storage.

Stock is written here only once, when a material is created. Every later
stock change goes through the unit of work in ``transaction.py``.
"""

import uuid
from datetime import UTC, datetime

import aiosqlite

from buffet.config import get_logger
from buffet.core.entities.material import Material, MaterialUnit
from buffet.core.exceptions import MaterialNotFoundError
from buffet.core.interfaces.material_store import IMaterialStore
from buffet.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from buffet.infrastructure.storage.sqlite.serialization import (
    format_timestamp,
    parse_timestamp,
)

logger = get_logger(__name__)


def _generate_id() -> str:
    """Generate a new UUID text ID."""
    return str(uuid.uuid4())


async def fetch_material(conn: aiosqlite.Connection, material_id: str) -> Material | None:
    """Read one material on an existing connection."""
    cursor = await conn.execute("SELECT * FROM materials WHERE id = ?", (material_id,))
    row = await cursor.fetchone()
    if row is None:
        return None
    return SQLiteMaterialStore._row_to_material(row)


class SQLiteMaterialStore(IMaterialStore):
    """SQLite implementation of material catalogue storage."""

    async def create_material(self, material: Material) -> Material:
        """Create a new material record with its initial stock."""
        if not material.id:
            material.id = _generate_id()
        now = datetime.now(UTC)
        material.created_at = now
        material.updated_at = now
        material.version = 1
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO materials (
                    id, name, stock, unit, low_stock_threshold,
                    version, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    material.id,
                    material.name,
                    material.stock,
                    material.unit.value,
                    material.low_stock_threshold,
                    material.version,
                    format_timestamp(material.created_at),
                    format_timestamp(material.updated_at),
                ),
            )
            logger.info(
                "material_created",
                material_id=material.id,
                name=material.name,
                stock=material.stock,
            )
            return material

    async def get_material(self, material_id: str) -> Material | None:
        """Get material by ID."""
        async with get_connection() as conn:
            return await fetch_material(conn, material_id)

    async def get_stock(self, material_id: str) -> float:
        """Get current stock of a material."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT stock FROM materials WHERE id = ?", (material_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                raise MaterialNotFoundError(material_id)
            return float(row["stock"])

    async def list_materials(self, limit: int = 100, offset: int = 0) -> list[Material]:
        """List materials ordered by name."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM materials
                ORDER BY name COLLATE NOCASE, id
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_material(row) for row in rows]

    async def list_low_stock(self, limit: int = 100) -> list[Material]:
        """List materials below their threshold, emptiest first."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM materials
                WHERE stock < low_stock_threshold
                ORDER BY stock, name COLLATE NOCASE
                LIMIT ?
                """,
                (limit,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_material(row) for row in rows]

    async def update_details(self, material: Material) -> bool:
        """Update name, unit and threshold of a material."""
        material.updated_at = datetime.now(UTC)
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE materials SET
                    name = ?,
                    unit = ?,
                    low_stock_threshold = ?,
                    version = version + 1,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    material.name,
                    material.unit.value,
                    material.low_stock_threshold,
                    format_timestamp(material.updated_at),
                    material.id,
                ),
            )
            updated = cursor.rowcount > 0
            if updated:
                logger.info("material_details_updated", material_id=material.id)
            return updated

    @staticmethod
    def _row_to_material(row: aiosqlite.Row) -> Material:
        """Convert a database row to a Material entity."""
        return Material(
            id=row["id"],
            name=row["name"],
            stock=float(row["stock"]),
            unit=MaterialUnit(row["unit"]),
            low_stock_threshold=float(row["low_stock_threshold"]),
            version=row["version"],
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )
