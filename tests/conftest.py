"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator, Iterable
from datetime import UTC, datetime
from pathlib import Path

import pytest

from buffet.application.operations import InventoryOperations
from buffet.application.services import reset_services
from buffet.config import get_settings, reset_settings
from buffet.config.settings import TransactionSettings
from buffet.core.entities.audit_log import AuditLogEntry, AuditLogType
from buffet.core.entities.inventory_count import InventoryCount
from buffet.core.entities.material import Material
from buffet.core.entities.purchase_order import PurchaseOrder
from buffet.core.exceptions import (
    InsufficientStockError,
    MaterialNotFoundError,
    PurchaseOrderNotFoundError,
)
from buffet.core.interfaces.transaction import ITransactionCoordinator, IUnitOfWork
from buffet.infrastructure.storage.sqlite import close_pool, reset_stores
from buffet.infrastructure.storage.sqlite.migrations import initialize_database
from buffet.infrastructure.storage.sqlite.transaction import SQLiteTransactionCoordinator


class FakeClock:
    """Settable clock injected wherever the code asks for "now"."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value


class InMemoryUnitOfWork(IUnitOfWork):
    """Holds entities in dicts and records what would be written."""

    def __init__(self, now: datetime | None = None):
        self.materials: dict[str, Material] = {}
        self.orders: dict[str, PurchaseOrder] = {}
        self.ledger: list[AuditLogEntry] = []
        self.stock: dict[str, float] = {}
        self.staged_entries: list[dict] = []
        self.saved_orders: list[PurchaseOrder] = []
        self.saved_counts: list[InventoryCount] = []
        self._now = now or datetime(2024, 1, 20, 12, 0, tzinfo=UTC)

    def add_material(self, material: Material) -> Material:
        self.materials[material.id] = material
        return material

    async def get_material(self, material_id: str) -> Material:
        if material_id not in self.materials:
            raise MaterialNotFoundError(material_id)
        material = self.materials[material_id]
        self.stock.setdefault(material_id, material.stock)
        return material

    async def get_materials(self, material_ids: Iterable[str]) -> dict[str, Material]:
        return {mid: await self.get_material(mid) for mid in dict.fromkeys(material_ids)}

    async def get_purchase_order(self, order_id: str) -> PurchaseOrder:
        if order_id not in self.orders:
            raise PurchaseOrderNotFoundError(order_id)
        return self.orders[order_id]

    async def get_audit_entries_after(self, material_id: str, cutoff: datetime):
        return [
            e for e in self.ledger if e.material_id == material_id and e.created_at > cutoff
        ]

    async def get_audit_entries_for(self, related_id: str, entry_type: AuditLogType):
        return [e for e in self.ledger if e.related_id == related_id and e.type == entry_type]

    def now(self) -> datetime:
        return self._now

    def get_stock(self, material_id: str) -> float:
        return self.stock[material_id]

    def adjust_stock(self, material_id, delta, *, require_non_negative=False):
        current = self.stock[material_id]
        if require_non_negative and current + delta < 0:
            raise InsufficientStockError(material_id, abs(delta), current)
        self.stock[material_id] = current + delta
        return self.stock[material_id]

    def append_audit_entry(self, material_id, change, entry_type, related_id, created_at=None):
        self.staged_entries.append(
            {
                "material_id": material_id,
                "change": change,
                "type": entry_type,
                "related_id": related_id,
                "created_at": created_at,
            }
        )
        return f"entry-{len(self.staged_entries)}"

    def save_purchase_order(self, order: PurchaseOrder) -> None:
        self.saved_orders.append(order)

    def save_inventory_count(self, count: InventoryCount) -> None:
        self.saved_counts.append(count)

    async def commit(self) -> None:
        pass


class InMemoryCoordinator(ITransactionCoordinator):
    """Runs every operation against one shared InMemoryUnitOfWork."""

    def __init__(self, uow: InMemoryUnitOfWork):
        self.uow = uow
        self.names: list[str] = []

    async def run(self, operation, *, name="transaction"):
        self.names.append(name)
        return await operation(self.uow)

    async def snapshot(self, operation, *, name="snapshot"):
        self.names.append(name)
        return await operation(self.uow)


def ledger_entry(material_id: str, change: float, created_at: datetime, **kw) -> AuditLogEntry:
    return AuditLogEntry(
        id=kw.get("id", f"{material_id}-{created_at.isoformat()}"),
        material_id=material_id,
        material_name=kw.get("material_name", material_id),
        change=change,
        type=kw.get("type", AuditLogType.SALE),
        related_id=kw.get("related_id", "order-1"),
        created_at=created_at,
    )


@pytest.fixture(autouse=True)
def isolated_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Point storage at a per-test directory and drop every singleton."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("STORAGE_POOL_SIZE", "3")
    reset_settings()
    reset_services()
    reset_stores()
    yield
    reset_settings()
    reset_services()
    reset_stores()


@pytest.fixture
async def db() -> AsyncGenerator[Path, None]:
    """Migrated database behind the global connection pool."""
    db_path = get_settings().storage.db_path
    await initialize_database(db_path, create_backup_before=False)
    yield db_path
    await close_pool()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 10, 9, 0, tzinfo=UTC))


@pytest.fixture
def txn_settings() -> TransactionSettings:
    return TransactionSettings(max_attempts=5, retry_delay=0.001, max_delay=0.01)


@pytest.fixture
def coordinator(db: Path, clock: FakeClock, txn_settings) -> SQLiteTransactionCoordinator:
    return SQLiteTransactionCoordinator(clock=clock, settings=txn_settings)


@pytest.fixture
def ops(coordinator: SQLiteTransactionCoordinator, clock: FakeClock) -> InventoryOperations:
    return InventoryOperations(coordinator=coordinator, clock=clock)


@pytest.fixture
def uow() -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork()


@pytest.fixture
def memory_coordinator(uow: InMemoryUnitOfWork) -> InMemoryCoordinator:
    return InMemoryCoordinator(uow)


@pytest.fixture
def make_entry():
    return ledger_entry
