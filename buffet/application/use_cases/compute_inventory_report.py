"""Compute Inventory Report Use Case: read-only reconstruction of past stock."""

from buffet.application.dto.requests import ComputeInventoryReportRequest
from buffet.config import get_logger
from buffet.core.entities.inventory_count import InventoryCount
from buffet.core.interfaces.transaction import ITransactionCoordinator, IUnitOfWork
from buffet.core.services.inventory_count_engine import InventoryCountEngine

logger = get_logger(__name__)


class ComputeInventoryReportUseCase:
    """Build a draft count against the stock at the end of the count date."""

    def __init__(
        self,
        coordinator: ITransactionCoordinator | None = None,
        engine: InventoryCountEngine | None = None,
    ):
        self._coordinator = coordinator
        self._engine = engine

    async def _get_coordinator(self) -> ITransactionCoordinator:
        if self._coordinator is None:
            from buffet.infrastructure.storage.sqlite import get_transaction_coordinator

            self._coordinator = await get_transaction_coordinator()
        return self._coordinator

    def _get_engine(self) -> InventoryCountEngine:
        if self._engine is None:
            from buffet.application.services import get_inventory_count_engine

            self._engine = get_inventory_count_engine()
        return self._engine

    async def execute(self, request: ComputeInventoryReportRequest) -> InventoryCount:
        engine = self._get_engine()

        async def compute(uow: IUnitOfWork) -> InventoryCount:
            return await engine.compute_report(uow, request.count_date, request.counts)

        coordinator = await self._get_coordinator()
        draft = await coordinator.snapshot(compute, name="compute_inventory_report")

        logger.info(
            "inventory_report_ready",
            count_date=request.count_date.isoformat(),
            items=len(draft.items),
            total_wastage=draft.total_wastage,
        )
        return draft
