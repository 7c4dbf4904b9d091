"""Transition Purchase Order Use Case: status change with stock side effects."""

from dataclasses import dataclass

from buffet.application.dto.requests import TransitionPurchaseOrderRequest
from buffet.config import get_logger
from buffet.core.entities.purchase_order import PurchaseOrder, PurchaseOrderStatus
from buffet.core.interfaces.transaction import ITransactionCoordinator, IUnitOfWork
from buffet.core.services.purchase_order_lifecycle import PurchaseOrderLifecycle

logger = get_logger(__name__)


@dataclass
class TransitionResult:
    """Result of a purchase order transition."""

    order: PurchaseOrder
    previous_status: PurchaseOrderStatus

    @property
    def changed(self) -> bool:
        return self.order.status != self.previous_status


class TransitionPurchaseOrderUseCase:
    """Move a purchase order through its lifecycle atomically."""

    def __init__(
        self,
        coordinator: ITransactionCoordinator | None = None,
        lifecycle: PurchaseOrderLifecycle | None = None,
    ):
        self._coordinator = coordinator
        self._lifecycle = lifecycle

    async def _get_coordinator(self) -> ITransactionCoordinator:
        if self._coordinator is None:
            from buffet.infrastructure.storage.sqlite import get_transaction_coordinator

            self._coordinator = await get_transaction_coordinator()
        return self._coordinator

    def _get_lifecycle(self) -> PurchaseOrderLifecycle:
        if self._lifecycle is None:
            from buffet.application.services import get_purchase_order_lifecycle

            self._lifecycle = get_purchase_order_lifecycle()
        return self._lifecycle

    async def execute(self, request: TransitionPurchaseOrderRequest) -> TransitionResult:
        logger.info(
            "purchase_order_transition_started",
            order_id=request.order_id,
            to_status=request.new_status.value,
        )
        lifecycle = self._get_lifecycle()

        async def transition(uow: IUnitOfWork) -> TransitionResult:
            previous = (await uow.get_purchase_order(request.order_id)).status
            order = await lifecycle.transition(
                uow, request.order_id, request.new_status, uow.now()
            )
            return TransitionResult(order=order, previous_status=previous)

        coordinator = await self._get_coordinator()
        result = await coordinator.run(transition, name="transition_purchase_order")

        logger.info(
            "purchase_order_transitioned",
            order_id=request.order_id,
            from_status=result.previous_status.value,
            to_status=result.order.status.value,
            changed=result.changed,
        )
        return result
