"""SQLite implementation of audit log queries."""

from datetime import datetime

import aiosqlite

from buffet.core.entities.audit_log import AuditLogEntry, AuditLogType
from buffet.core.interfaces.audit_log_store import IAuditLogStore
from buffet.infrastructure.storage.sqlite.connection import get_connection
from buffet.infrastructure.storage.sqlite.serialization import (
    format_timestamp,
    parse_timestamp,
)

# Ties on created_at keep insertion order
_ORDER = "ORDER BY created_at, seq"


async def fetch_entries_after(
    conn: aiosqlite.Connection, material_id: str, cutoff: datetime
) -> list[AuditLogEntry]:
    """Entries of a material strictly after ``cutoff``, on an existing connection."""
    cursor = await conn.execute(
        f"""
        SELECT * FROM audit_log
        WHERE material_id = ? AND created_at > ?
        {_ORDER}
        """,
        (material_id, format_timestamp(cutoff)),
    )
    rows = await cursor.fetchall()
    return [SQLiteAuditLogStore._row_to_entry(row) for row in rows]


async def fetch_entries_for(
    conn: aiosqlite.Connection, related_id: str, entry_type: AuditLogType
) -> list[AuditLogEntry]:
    cursor = await conn.execute(
        f"""
        SELECT * FROM audit_log
        WHERE related_id = ? AND type = ?
        {_ORDER}
        """,
        (related_id, entry_type.value),
    )
    rows = await cursor.fetchall()
    return [SQLiteAuditLogStore._row_to_entry(row) for row in rows]


class SQLiteAuditLogStore(IAuditLogStore):
    """Read side of the append-only audit_log table."""

    async def query_after(
        self, material_id: str, cutoff: datetime
    ) -> list[AuditLogEntry]:
        async with get_connection() as conn:
            return await fetch_entries_after(conn, material_id, cutoff)

    async def query_range(
        self,
        material_id: str | None,
        start: datetime,
        end: datetime,
    ) -> list[AuditLogEntry]:
        """Entries with start <= created_at <= end."""
        sql = "SELECT * FROM audit_log WHERE created_at >= ? AND created_at <= ?"
        params: list = [format_timestamp(start), format_timestamp(end)]
        if material_id is not None:
            sql += " AND material_id = ?"
            params.append(material_id)

        async with get_connection() as conn:
            cursor = await conn.execute(f"{sql} {_ORDER}", params)
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]

    async def list_entries(
        self, material_id: str | None = None, limit: int | None = None
    ) -> list[AuditLogEntry]:
        sql = "SELECT * FROM audit_log"
        params: list = []
        if material_id is not None:
            sql += " WHERE material_id = ?"
            params.append(material_id)
        sql += f" {_ORDER}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        async with get_connection() as conn:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> AuditLogEntry:
        """Convert a database row to an AuditLogEntry entity."""
        return AuditLogEntry(
            id=row["id"],
            material_id=row["material_id"],
            material_name=row["material_name"],
            change=float(row["change"]),
            type=AuditLogType(row["type"]),
            related_id=row["related_id"],
            created_at=parse_timestamp(row["created_at"]),
        )
