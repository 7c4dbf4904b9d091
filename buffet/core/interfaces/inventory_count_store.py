"""Abstract interface for inventory count storage."""

from abc import ABC, abstractmethod
from datetime import date

from buffet.core.entities.inventory_count import InventoryCount


class IInventoryCountStore(ABC):
    """Read side of saved inventory counts."""

    @abstractmethod
    async def get_count(self, count_id: str) -> InventoryCount | None:
        """Get inventory count by ID with items."""
        pass

    @abstractmethod
    async def list_counts(
        self,
        start: date | None = None,
        end: date | None = None,
        limit: int = 100,
    ) -> list[InventoryCount]:
        """List counts whose count_date falls in [start, end], newest first."""
        pass
