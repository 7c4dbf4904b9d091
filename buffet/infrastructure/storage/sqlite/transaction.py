"""
Optimistic read-decide-write transactions on SQLite.

Each attempt reads through one pooled connection inside a read snapshot,
stages its writes in memory, then releases that connection and applies the
writes on a second connection under ``BEGIN IMMEDIATE``. Rows written are
guarded by their ``version`` column; a stale version aborts the attempt and
tenacity runs it again with fresh reads. A write lock that is still held
when the busy timeout expires is retried the same way.
"""

import uuid
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

import aiosqlite
from tenacity import (
    RetryCallState,
    RetryError,
    retry,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from buffet.config import get_logger, get_settings, operation_context
from buffet.config.settings import TransactionSettings
from buffet.core.entities.audit_log import AuditLogEntry, AuditLogType
from buffet.core.entities.inventory_count import InventoryCount
from buffet.core.entities.material import STOCK_EPSILON, Material
from buffet.core.entities.purchase_order import PurchaseOrder
from buffet.core.exceptions import (
    BuffetError,
    CommitRetriesExhaustedError,
    ConcurrencyConflictError,
    DatabaseError,
    InsufficientStockError,
    MaterialNotFoundError,
    PurchaseOrderNotFoundError,
)
from buffet.core.interfaces.transaction import ITransactionCoordinator, IUnitOfWork
from buffet.infrastructure.storage.sqlite.audit_log_store import (
    fetch_entries_after,
    fetch_entries_for,
)
from buffet.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool
from buffet.infrastructure.storage.sqlite.inventory_count_store import insert_inventory_count
from buffet.infrastructure.storage.sqlite.material_store import fetch_material
from buffet.infrastructure.storage.sqlite.purchase_order_store import fetch_purchase_order
from buffet.infrastructure.storage.sqlite.serialization import (
    format_optional_timestamp,
    format_timestamp,
)

logger = get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def is_lock_timeout(error: BaseException) -> bool:
    """SQLite gave up waiting for another writer after the busy timeout."""
    return isinstance(error, aiosqlite.OperationalError) and "locked" in str(error)


@dataclass
class _PendingEntry:
    """Audit entry staged for insertion."""

    id: str
    material_id: str
    material_name: str
    change: float
    type: AuditLogType
    related_id: str
    created_at: datetime | None


class SQLiteUnitOfWork(IUnitOfWork):
    """
    One attempt of an atomic operation.

    Created by ``SQLiteTransactionCoordinator``; reads are only possible
    while the coordinator has a snapshot connection bound to the unit.
    """

    def __init__(self, pool: ConnectionPool, clock: Clock = utc_now):
        self._pool = pool
        self._clock = clock
        self._conn: aiosqlite.Connection | None = None

        self._materials: dict[str, Material] = {}
        self._stock: dict[str, float] = {}
        self._dirty_materials: dict[str, None] = {}
        self._orders: dict[str, PurchaseOrder] = {}
        self._order_updates: dict[str, PurchaseOrder] = {}
        self._entries: list[_PendingEntry] = []
        self._counts: list[InventoryCount] = []

    def bind(self, conn: aiosqlite.Connection) -> None:
        """Start the read phase on a snapshot connection."""
        self._conn = conn

    def unbind(self) -> None:
        """End the read phase."""
        self._conn = None

    @property
    def has_changes(self) -> bool:
        return bool(
            self._dirty_materials or self._order_updates or self._entries or self._counts
        )

    def _read_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Unit of work is not in its read phase")
        return self._conn

    def _require_read(self, material_id: str) -> Material:
        material = self._materials.get(material_id)
        if material is None:
            raise RuntimeError(f"Material {material_id} was not read in this unit of work")
        return material

    # --- Read phase ---

    async def get_material(self, material_id: str) -> Material:
        if material_id in self._materials:
            return self._materials[material_id]

        material = await fetch_material(self._read_conn(), material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)

        self._materials[material_id] = material
        self._stock[material_id] = material.stock
        return material

    async def get_materials(self, material_ids: Iterable[str]) -> dict[str, Material]:
        return {
            material_id: await self.get_material(material_id)
            for material_id in dict.fromkeys(material_ids)
        }

    async def get_purchase_order(self, order_id: str) -> PurchaseOrder:
        if order_id in self._orders:
            return self._orders[order_id]

        order = await fetch_purchase_order(self._read_conn(), order_id)
        if order is None:
            raise PurchaseOrderNotFoundError(order_id)

        self._orders[order_id] = order
        return order

    async def get_audit_entries_after(
        self, material_id: str, cutoff: datetime
    ) -> list[AuditLogEntry]:
        return await fetch_entries_after(self._read_conn(), material_id, cutoff)

    async def get_audit_entries_for(
        self, related_id: str, entry_type: AuditLogType
    ) -> list[AuditLogEntry]:
        return await fetch_entries_for(self._read_conn(), related_id, entry_type)

    # --- Decide phase ---

    def now(self) -> datetime:
        return self._clock()

    def get_stock(self, material_id: str) -> float:
        self._require_read(material_id)
        return self._stock[material_id]

    def adjust_stock(
        self,
        material_id: str,
        delta: float,
        *,
        require_non_negative: bool = False,
    ) -> float:
        material = self._require_read(material_id)
        current = self._stock[material_id]
        new_stock = current + delta

        if require_non_negative and new_stock < -STOCK_EPSILON:
            raise InsufficientStockError(
                material_id,
                requested=abs(delta),
                available=current,
                material_name=material.name,
            )

        self._stock[material_id] = new_stock
        self._dirty_materials[material_id] = None
        return new_stock

    def append_audit_entry(
        self,
        material_id: str,
        change: float,
        entry_type: AuditLogType,
        related_id: str,
        created_at: datetime | None = None,
    ) -> str:
        material = self._require_read(material_id)
        entry_id = str(uuid.uuid4())
        self._entries.append(
            _PendingEntry(
                id=entry_id,
                material_id=material_id,
                material_name=material.name,
                change=change,
                type=entry_type,
                related_id=related_id,
                created_at=created_at,
            )
        )
        return entry_id

    def save_purchase_order(self, order: PurchaseOrder) -> None:
        if order.id not in self._orders:
            raise RuntimeError(f"Purchase order {order.id} was not read in this unit of work")
        self._order_updates[order.id] = order

    def save_inventory_count(self, count: InventoryCount) -> None:
        if not count.id:
            raise RuntimeError("Inventory count must have an id before it is saved")
        self._counts.append(count)

    # --- Write phase ---

    async def commit(self) -> None:
        if self._conn is not None:
            raise RuntimeError("Read phase must end before commit")
        if not self.has_changes:
            return

        async with self._pool.transaction(immediate=True) as conn:
            # Stamped under the write lock so ledger order follows commit order
            now = self._clock()
            stamp = format_timestamp(now)

            for material_id in self._dirty_materials:
                material = self._materials[material_id]
                cursor = await conn.execute(
                    """
                    UPDATE materials SET
                        stock = ?,
                        version = version + 1,
                        updated_at = ?
                    WHERE id = ? AND version = ?
                    """,
                    (self._stock[material_id], stamp, material_id, material.version),
                )
                if cursor.rowcount == 0:
                    raise ConcurrencyConflictError("Material", material_id)

            for order_id, order in self._order_updates.items():
                original = self._orders[order_id]
                cursor = await conn.execute(
                    """
                    UPDATE purchase_orders SET
                        status = ?,
                        received_at = ?,
                        version = version + 1
                    WHERE id = ? AND version = ?
                    """,
                    (
                        order.status.value,
                        format_optional_timestamp(order.received_at),
                        order_id,
                        original.version,
                    ),
                )
                if cursor.rowcount == 0:
                    raise ConcurrencyConflictError("Purchase order", order_id)

            await conn.executemany(
                """
                INSERT INTO audit_log (
                    id, material_id, material_name, change, type, related_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        entry.id,
                        entry.material_id,
                        entry.material_name,
                        entry.change,
                        entry.type.value,
                        entry.related_id,
                        format_timestamp(entry.created_at) if entry.created_at else stamp,
                    )
                    for entry in self._entries
                ],
            )

            for count in self._counts:
                await insert_inventory_count(conn, count)

        logger.debug(
            "unit_of_work_committed",
            materials=len(self._dirty_materials),
            orders=len(self._order_updates),
            audit_entries=len(self._entries),
            counts=len(self._counts),
        )


class SQLiteTransactionCoordinator(ITransactionCoordinator):
    """Runs units of work with optimistic concurrency and tenacity retries."""

    def __init__(
        self,
        pool: ConnectionPool | None = None,
        clock: Clock | None = None,
        settings: TransactionSettings | None = None,
    ):
        self._pool = pool
        self._clock = clock or utc_now
        self._settings = settings

    @property
    def clock(self) -> Clock:
        return self._clock

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    def _get_settings(self) -> TransactionSettings:
        return self._settings or get_settings().transaction

    def _get_retry_decorator(self) -> Any:
        """Get tenacity retry decorator with current settings."""
        settings = self._get_settings()
        return retry(
            stop=stop_after_attempt(settings.max_attempts),
            wait=wait_exponential(
                multiplier=settings.retry_delay,
                exp_base=settings.retry_multiplier,
                min=settings.retry_delay,
                max=settings.max_delay,
            ),
            retry=(
                retry_if_exception_type(ConcurrencyConflictError)
                | retry_if_exception(is_lock_timeout)
            ),
            before_sleep=self._log_retry,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        """Log retry attempts."""
        logger.warning(
            "transaction_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _read_phase(
        self,
        operation: Callable[[IUnitOfWork], Awaitable[T]],
    ) -> tuple[SQLiteUnitOfWork, T]:
        pool = await self._get_pool()
        uow = SQLiteUnitOfWork(pool, self._clock)

        async with pool.snapshot() as conn:
            uow.bind(conn)
            try:
                result = await operation(uow)
            finally:
                uow.unbind()
        return uow, result

    async def _attempt(
        self,
        operation: Callable[[IUnitOfWork], Awaitable[T]],
    ) -> T:
        uow, result = await self._read_phase(operation)
        await uow.commit()
        return result

    async def run(
        self,
        operation: Callable[[IUnitOfWork], Awaitable[T]],
        *,
        name: str = "transaction",
    ) -> T:
        retry_decorator = self._get_retry_decorator()
        with operation_context(name):
            try:
                result = await retry_decorator(self._attempt)(operation)
            except RetryError as e:
                last = e.last_attempt.exception()
                entity_id = None
                if isinstance(last, BuffetError):
                    entity_id = last.details.get("entity_id")
                logger.error(
                    "transaction_retries_exhausted",
                    attempts=e.last_attempt.attempt_number,
                    entity_id=entity_id,
                )
                raise CommitRetriesExhaustedError(
                    name, e.last_attempt.attempt_number, entity_id
                ) from e
            except aiosqlite.Error as e:
                logger.error("transaction_database_error", error=str(e))
                raise DatabaseError(name, str(e)) from e

            logger.debug("transaction_committed")
        return result

    async def snapshot(
        self,
        operation: Callable[[IUnitOfWork], Awaitable[T]],
        *,
        name: str = "snapshot",
    ) -> T:
        try:
            uow, result = await self._read_phase(operation)
        except aiosqlite.Error as e:
            raise DatabaseError(name, str(e)) from e

        if uow.has_changes:
            raise RuntimeError(f"Read-only operation '{name}' staged writes")
        return result
