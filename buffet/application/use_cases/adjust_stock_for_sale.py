"""Adjust Stock For Sale Use Case: audited decrement of one material."""

from dataclasses import dataclass

from buffet.application.dto.requests import SaleConsumptionRequest
from buffet.config import get_logger
from buffet.core.entities.audit_log import AuditLogType
from buffet.core.interfaces.transaction import ITransactionCoordinator, IUnitOfWork

logger = get_logger(__name__)


@dataclass
class SaleConsumptionResult:
    """Result of consuming stock for a sale."""

    material_id: str
    new_stock: float
    audit_entry_id: str


class AdjustStockForSaleUseCase:
    """Decrease stock and append a sale entry in one atomic unit."""

    def __init__(self, coordinator: ITransactionCoordinator | None = None):
        self._coordinator = coordinator

    async def _get_coordinator(self) -> ITransactionCoordinator:
        if self._coordinator is None:
            from buffet.infrastructure.storage.sqlite import get_transaction_coordinator

            self._coordinator = await get_transaction_coordinator()
        return self._coordinator

    async def execute(self, request: SaleConsumptionRequest) -> SaleConsumptionResult:
        logger.info(
            "sale_consumption_started",
            material_id=request.material_id,
            quantity=request.quantity_consumed,
            order_id=request.related_order_id,
        )

        async def consume(uow: IUnitOfWork) -> SaleConsumptionResult:
            await uow.get_material(request.material_id)
            new_stock = uow.adjust_stock(
                request.material_id,
                -request.quantity_consumed,
                require_non_negative=True,
            )
            entry_id = uow.append_audit_entry(
                request.material_id,
                -request.quantity_consumed,
                AuditLogType.SALE,
                request.related_order_id,
            )
            return SaleConsumptionResult(
                material_id=request.material_id,
                new_stock=new_stock,
                audit_entry_id=entry_id,
            )

        coordinator = await self._get_coordinator()
        result = await coordinator.run(consume, name="adjust_stock_for_sale")

        logger.info(
            "sale_consumption_complete",
            material_id=result.material_id,
            new_stock=result.new_stock,
        )
        return result
