"""Tests for the optimistic unit of work and its coordinator."""

from datetime import UTC, datetime

import aiosqlite
import pytest

from buffet.core.entities.audit_log import AuditLogType
from buffet.core.entities.material import Material, MaterialUnit
from buffet.core.entities.purchase_order import (
    PurchaseCategoryRef,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from buffet.core.exceptions import (
    CommitRetriesExhaustedError,
    DatabaseError,
    InsufficientStockError,
    MaterialNotFoundError,
    PurchaseOrderNotFoundError,
)
from buffet.infrastructure.storage.sqlite.audit_log_store import SQLiteAuditLogStore
from buffet.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    get_pool,
    get_transaction,
)
from buffet.infrastructure.storage.sqlite.material_store import SQLiteMaterialStore
from buffet.infrastructure.storage.sqlite.purchase_order_store import SQLitePurchaseOrderStore
from buffet.infrastructure.storage.sqlite.transaction import (
    SQLiteTransactionCoordinator,
    SQLiteUnitOfWork,
    is_lock_timeout,
)


@pytest.fixture
async def milk(db) -> Material:
    return await SQLiteMaterialStore().create_material(
        Material(name="Milk", unit=MaterialUnit.L, stock=10)
    )


async def _bump_stock(material_id: str, delta: float) -> None:
    """Concurrent writer that bypasses the unit of work."""
    async with get_transaction(immediate=True) as conn:
        await conn.execute(
            "UPDATE materials SET stock = stock + ?, version = version + 1 WHERE id = ?",
            (delta, material_id),
        )


class TestCommit:
    """Successful and failing commits."""

    async def test_stock_and_ledger_written_together(self, coordinator, clock, milk):
        async def sell(uow):
            await uow.get_material(milk.id)
            uow.adjust_stock(milk.id, -2)
            return uow.append_audit_entry(milk.id, -2, AuditLogType.SALE, "order-1")

        entry_id = await coordinator.run(sell, name="sell")

        material = await SQLiteMaterialStore().get_material(milk.id)
        assert material.stock == 8
        assert material.version == milk.version + 1

        [entry] = await SQLiteAuditLogStore().list_entries(milk.id)
        assert entry.id == entry_id
        assert entry.material_name == "Milk"
        assert entry.change == -2
        assert entry.created_at == clock.current

    async def test_explicit_timestamp_kept(self, coordinator, milk):
        backdated = datetime(2024, 1, 5, 23, 59, 59, 999999, tzinfo=UTC)

        async def adjust(uow):
            await uow.get_material(milk.id)
            uow.adjust_stock(milk.id, 1)
            uow.append_audit_entry(
                milk.id, 1, AuditLogType.ADJUSTMENT, "count-1", created_at=backdated
            )

        await coordinator.run(adjust)

        [entry] = await SQLiteAuditLogStore().list_entries(milk.id)
        assert entry.created_at == backdated

    async def test_error_in_decide_phase_writes_nothing(self, coordinator, milk):
        async def oversell(uow):
            await uow.get_material(milk.id)
            uow.adjust_stock(milk.id, -1)
            uow.append_audit_entry(milk.id, -1, AuditLogType.SALE, "order-1")
            uow.adjust_stock(milk.id, -20, require_non_negative=True)

        with pytest.raises(InsufficientStockError) as exc_info:
            await coordinator.run(oversell)

        assert exc_info.value.details["available"] == 9
        assert exc_info.value.details["requested"] == 20
        assert await SQLiteMaterialStore().get_stock(milk.id) == 10
        assert await SQLiteAuditLogStore().list_entries() == []

    async def test_missing_material(self, coordinator, db):
        async def read(uow):
            await uow.get_material("ghost")

        with pytest.raises(MaterialNotFoundError):
            await coordinator.run(read)

    async def test_missing_purchase_order(self, coordinator, db):
        async def read(uow):
            await uow.get_purchase_order("ghost")

        with pytest.raises(PurchaseOrderNotFoundError):
            await coordinator.run(read)

    async def test_stock_may_go_negative_without_guard(self, coordinator, milk):
        async def oversell(uow):
            await uow.get_material(milk.id)
            return uow.adjust_stock(milk.id, -12)

        assert await coordinator.run(oversell) == -2
        assert await SQLiteMaterialStore().get_stock(milk.id) == -2


class TestConflicts:
    """Version-guarded writes and tenacity retries."""

    async def test_conflict_is_retried_with_fresh_reads(self, coordinator, milk):
        attempts = []

        async def sell(uow):
            material = await uow.get_material(milk.id)
            attempts.append(material.stock)
            if len(attempts) == 1:
                await _bump_stock(milk.id, 5)
            uow.adjust_stock(milk.id, -1)
            uow.append_audit_entry(milk.id, -1, AuditLogType.SALE, "order-1")

        await coordinator.run(sell)

        assert attempts == [10, 15]
        assert await SQLiteMaterialStore().get_stock(milk.id) == 14
        assert len(await SQLiteAuditLogStore().list_entries()) == 1

    async def test_retries_exhausted(self, coordinator, txn_settings, milk):
        calls = 0

        async def always_conflicts(uow):
            nonlocal calls
            calls += 1
            await uow.get_material(milk.id)
            await _bump_stock(milk.id, 0)
            uow.adjust_stock(milk.id, -1)
            uow.append_audit_entry(milk.id, -1, AuditLogType.SALE, "order-1")

        with pytest.raises(CommitRetriesExhaustedError) as exc_info:
            await coordinator.run(always_conflicts, name="always_conflicts")

        assert calls == txn_settings.max_attempts
        assert exc_info.value.details["entity_id"] == milk.id
        assert exc_info.value.details["operation"] == "always_conflicts"
        assert await SQLiteAuditLogStore().list_entries() == []

    async def test_purchase_order_guarded_by_version(self, coordinator, db):
        store = SQLitePurchaseOrderStore()
        order = await store.create_order(
            PurchaseOrder(
                items=[PurchaseOrderItem(material_id="m1", quantity=1, unit="kg", price=1)],
                category=PurchaseCategoryRef(id="c", name="C"),
                location="Bar",
            )
        )
        attempts = 0

        async def approve(uow):
            nonlocal attempts
            attempts += 1
            current = await uow.get_purchase_order(order.id)
            if attempts == 1:
                async with get_transaction(immediate=True) as conn:
                    await conn.execute(
                        "UPDATE purchase_orders SET version = version + 1 WHERE id = ?",
                        (order.id,),
                    )
            uow.save_purchase_order(
                current.model_copy(update={"status": PurchaseOrderStatus.APPROVED})
            )

        await coordinator.run(approve)

        assert attempts == 2
        saved = await store.get_order(order.id)
        assert saved.status == PurchaseOrderStatus.APPROVED
        assert saved.version == 3


class TestUnitOfWorkGuards:
    """Phase rules of SQLiteUnitOfWork."""

    async def test_read_outside_read_phase(self, db, clock):
        uow = SQLiteUnitOfWork(await get_pool(), clock)
        with pytest.raises(RuntimeError):
            await uow.get_material("m1")

    async def test_staging_requires_prior_read(self, db, clock):
        uow = SQLiteUnitOfWork(await get_pool(), clock)
        with pytest.raises(RuntimeError):
            uow.adjust_stock("m1", 1)
        with pytest.raises(RuntimeError):
            uow.append_audit_entry("m1", 1, AuditLogType.SALE, "o1")

    async def test_commit_without_changes_is_noop(self, db, clock):
        uow = SQLiteUnitOfWork(await get_pool(), clock)
        assert not uow.has_changes
        await uow.commit()

    async def test_reads_are_cached(self, coordinator, milk):
        async def read_twice(uow):
            first = await uow.get_material(milk.id)
            await _bump_stock(milk.id, 3)
            second = await uow.get_material(milk.id)
            return first is second, uow.get_stock(milk.id)

        same, stock = await coordinator.snapshot(read_twice)
        assert same is True
        assert stock == 10

    async def test_snapshot_rejects_writes(self, coordinator, milk):
        async def sneaky(uow):
            await uow.get_material(milk.id)
            uow.adjust_stock(milk.id, 1)

        with pytest.raises(RuntimeError):
            await coordinator.snapshot(sneaky, name="sneaky")
        assert await SQLiteMaterialStore().get_stock(milk.id) == 10

    async def test_now_uses_clock(self, db, clock):
        uow = SQLiteUnitOfWork(await get_pool(), clock)
        assert uow.now() == clock.current


class TestDriverErrors:
    """Driver failures surface as DatabaseError."""

    async def test_unmigrated_database(self, tmp_path, clock, txn_settings):
        pool = ConnectionPool(tmp_path / "empty.db", pool_size=2)
        coordinator = SQLiteTransactionCoordinator(pool=pool, clock=clock, settings=txn_settings)

        async def read(uow):
            return await uow.get_material("m1")

        try:
            with pytest.raises(DatabaseError) as run_error:
                await coordinator.run(read, name="sale")
            assert run_error.value.details["operation"] == "sale"

            with pytest.raises(DatabaseError):
                await coordinator.snapshot(read, name="report")
        finally:
            await pool.close()


class TestLockTimeouts:
    """A write lock held past the busy timeout is retried like a conflict."""

    def test_is_lock_timeout(self):
        assert is_lock_timeout(aiosqlite.OperationalError("database is locked"))
        assert not is_lock_timeout(aiosqlite.OperationalError("no such table: materials"))
        assert not is_lock_timeout(ValueError("database is locked"))

    @pytest.fixture
    async def locked(self, db, milk):
        conn = await aiosqlite.connect(db)
        await conn.execute("BEGIN IMMEDIATE")
        yield conn
        if conn.in_transaction:
            await conn.rollback()
        await conn.close()

    @pytest.fixture
    async def impatient(self, db, clock, txn_settings):
        pool = ConnectionPool(db, pool_size=2, busy_timeout=10)
        yield SQLiteTransactionCoordinator(pool=pool, clock=clock, settings=txn_settings)
        await pool.close()

    async def test_held_lock_exhausts_retries(self, impatient, locked, txn_settings, milk):
        calls = 0

        async def sell(uow):
            nonlocal calls
            calls += 1
            await uow.get_material(milk.id)
            uow.adjust_stock(milk.id, -1)
            uow.append_audit_entry(milk.id, -1, AuditLogType.SALE, "order-1")

        with pytest.raises(CommitRetriesExhaustedError) as exc_info:
            await impatient.run(sell, name="sell")

        assert calls == txn_settings.max_attempts
        assert exc_info.value.details["attempts"] == txn_settings.max_attempts
        assert exc_info.value.details["entity_id"] is None

        await locked.rollback()
        assert await SQLiteMaterialStore().get_stock(milk.id) == 10
        assert await SQLiteAuditLogStore().list_entries() == []

    async def test_released_lock_lets_retry_commit(self, impatient, locked, milk):
        calls = 0

        async def sell(uow):
            nonlocal calls
            calls += 1
            if calls == 2:
                await locked.rollback()
            await uow.get_material(milk.id)
            uow.adjust_stock(milk.id, -1)
            uow.append_audit_entry(milk.id, -1, AuditLogType.SALE, "order-1")

        await impatient.run(sell, name="sell")

        assert calls == 2
        assert await SQLiteMaterialStore().get_stock(milk.id) == 9
