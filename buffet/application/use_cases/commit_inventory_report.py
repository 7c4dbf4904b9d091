"""Commit Inventory Report Use Case: back-dated adjustments and saved count."""

import uuid

from buffet.application.dto.requests import CommitInventoryReportRequest
from buffet.config import get_logger
from buffet.core.entities.inventory_count import InventoryCount
from buffet.core.interfaces.transaction import ITransactionCoordinator, IUnitOfWork
from buffet.core.services.inventory_count_engine import InventoryCountEngine

logger = get_logger(__name__)


class CommitInventoryReportUseCase:
    """Apply a draft count's adjustments and persist it in one unit."""

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

    async def execute(self, request: CommitInventoryReportRequest) -> InventoryCount:
        engine = self._get_engine()
        # Same id across retries
        count_id = str(uuid.uuid4())

        logger.info(
            "inventory_commit_started",
            count_id=count_id,
            count_date=request.draft.count_date.isoformat(),
            items=len(request.draft.items),
        )

        async def commit(uow: IUnitOfWork) -> InventoryCount:
            return await engine.commit_report(uow, request.draft, count_id, uow.now())

        coordinator = await self._get_coordinator()
        saved = await coordinator.run(commit, name="commit_inventory_report")

        logger.info(
            "inventory_commit_complete",
            count_id=count_id,
            adjustments=len(saved.items_with_adjustment),
        )
        return saved
