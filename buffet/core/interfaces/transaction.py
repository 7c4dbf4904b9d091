"""
Abstract interfaces for atomic read-decide-write units.

A unit of work reads entities, stages writes in memory, and commits them all
at once. Staging never performs I/O, so a failure raised while deciding
leaves storage untouched.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime
from typing import TypeVar

from buffet.core.entities.audit_log import AuditLogEntry, AuditLogType
from buffet.core.entities.inventory_count import InventoryCount
from buffet.core.entities.material import Material
from buffet.core.entities.purchase_order import PurchaseOrder

T = TypeVar("T")


class IUnitOfWork(ABC):
    """One attempt of an atomic operation."""

    # --- Read phase ---

    @abstractmethod
    async def get_material(self, material_id: str) -> Material:
        """Read a material. Raises MaterialNotFoundError."""
        pass

    @abstractmethod
    async def get_materials(self, material_ids: Iterable[str]) -> dict[str, Material]:
        """Read several materials. Raises MaterialNotFoundError on the first missing id."""
        pass

    @abstractmethod
    async def get_purchase_order(self, order_id: str) -> PurchaseOrder:
        """Read a purchase order. Raises PurchaseOrderNotFoundError."""
        pass

    @abstractmethod
    async def get_audit_entries_after(
        self, material_id: str, cutoff: datetime
    ) -> list[AuditLogEntry]:
        """Entries for a material with created_at > cutoff, ascending."""
        pass

    @abstractmethod
    async def get_audit_entries_for(
        self, related_id: str, entry_type: AuditLogType
    ) -> list[AuditLogEntry]:
        """Entries of one type written for ``related_id``, ascending."""
        pass

    # --- Decide phase (in-memory only) ---

    @abstractmethod
    def now(self) -> datetime:
        """Current time according to the unit's clock."""
        pass

    @abstractmethod
    def get_stock(self, material_id: str) -> float:
        """Stock of a material already read, including staged adjustments."""
        pass

    @abstractmethod
    def adjust_stock(
        self,
        material_id: str,
        delta: float,
        *,
        require_non_negative: bool = False,
    ) -> float:
        """
        Stage a stock change on a material already read.

        Raises InsufficientStockError when require_non_negative is set and
        the new stock would be below zero. Returns the new stock.
        """
        pass

    @abstractmethod
    def append_audit_entry(
        self,
        material_id: str,
        change: float,
        entry_type: AuditLogType,
        related_id: str,
        created_at: datetime | None = None,
    ) -> str:
        """
        Stage an audit entry for a material already read; returns its id.

        Without ``created_at`` the entry is stamped at commit time, inside the
        write lock, so ledger order matches the order writes were applied.
        """
        pass

    @abstractmethod
    def save_purchase_order(self, order: PurchaseOrder) -> None:
        """Stage the new status/received_at of a purchase order already read."""
        pass

    @abstractmethod
    def save_inventory_count(self, count: InventoryCount) -> None:
        """Stage a new inventory count record."""
        pass

    # --- Write phase ---

    @abstractmethod
    async def commit(self) -> None:
        """
        Apply every staged write in a single transaction.

        Raises ConcurrencyConflictError if any written entity changed since it
        was read; nothing is applied in that case.
        """
        pass


class ITransactionCoordinator(ABC):
    """Runs units of work atomically, retrying on conflicts."""

    @abstractmethod
    async def run(
        self,
        operation: Callable[[IUnitOfWork], Awaitable[T]],
        *,
        name: str = "transaction",
    ) -> T:
        """
        Run ``operation`` against a fresh unit of work and commit it.

        Conflicts are retried with fresh reads. Raises
        CommitRetriesExhaustedError when every retry attempt conflicted; domain
        errors raised by ``operation`` propagate unchanged.
        """
        pass

    @abstractmethod
    async def snapshot(
        self,
        operation: Callable[[IUnitOfWork], Awaitable[T]],
        *,
        name: str = "snapshot",
    ) -> T:
        """Run a read-only operation against one consistent snapshot."""
        pass
