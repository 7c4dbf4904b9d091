"""List Inventory Counts Use Case."""

from buffet.application.dto.requests import ListInventoryCountsRequest
from buffet.core.entities.inventory_count import InventoryCount
from buffet.core.interfaces.inventory_count_store import IInventoryCountStore


class ListInventoryCountsUseCase:
    """Saved counts whose count date falls in a range, newest first."""

    def __init__(self, inventory_count_store: IInventoryCountStore | None = None):
        self._inventory_count_store = inventory_count_store

    async def _get_inventory_count_store(self) -> IInventoryCountStore:
        if self._inventory_count_store is None:
            from buffet.infrastructure.storage.sqlite import get_inventory_count_store

            self._inventory_count_store = await get_inventory_count_store()
        return self._inventory_count_store

    async def execute(self, request: ListInventoryCountsRequest) -> list[InventoryCount]:
        store = await self._get_inventory_count_store()
        return await store.list_counts(request.start_date, request.end_date, request.limit)
