"""Abstract interface for purchase order storage."""

from abc import ABC, abstractmethod

from buffet.core.entities.purchase_order import PurchaseOrder, PurchaseOrderStatus


class IPurchaseOrderStore(ABC):
    """Interface for purchase order persistence."""

    @abstractmethod
    async def create_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Persist a new purchase order with its items."""
        pass

    @abstractmethod
    async def get_order(self, order_id: str) -> PurchaseOrder | None:
        """Get purchase order by ID with items."""
        pass

    @abstractmethod
    async def list_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[PurchaseOrder]:
        """List purchase orders, newest first."""
        pass
