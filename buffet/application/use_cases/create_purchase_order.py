"""Create Purchase Order Use Case."""

from collections.abc import Callable
from datetime import UTC, datetime

from buffet.application.dto.requests import CreatePurchaseOrderRequest
from buffet.config import get_logger
from buffet.core.entities.purchase_order import (
    PurchaseCategoryRef,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from buffet.core.exceptions import MaterialNotFoundError
from buffet.core.interfaces.material_store import IMaterialStore
from buffet.core.interfaces.purchase_order_store import IPurchaseOrderStore

logger = get_logger(__name__)


class CreatePurchaseOrderUseCase:
    """Create a Pending purchase order referencing existing materials."""

    def __init__(
        self,
        purchase_order_store: IPurchaseOrderStore | None = None,
        material_store: IMaterialStore | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._purchase_order_store = purchase_order_store
        self._material_store = material_store
        self._clock = clock or (lambda: datetime.now(UTC))

    async def _get_purchase_order_store(self) -> IPurchaseOrderStore:
        if self._purchase_order_store is None:
            from buffet.infrastructure.storage.sqlite import get_purchase_order_store

            self._purchase_order_store = await get_purchase_order_store()
        return self._purchase_order_store

    async def _get_material_store(self) -> IMaterialStore:
        if self._material_store is None:
            from buffet.infrastructure.storage.sqlite import get_material_store

            self._material_store = await get_material_store()
        return self._material_store

    async def execute(self, request: CreatePurchaseOrderRequest) -> PurchaseOrder:
        logger.info(
            "purchase_order_create_started",
            items=len(request.items),
            category_id=request.category_id,
        )

        # 1. Every line must reference an existing material
        mat_store = await self._get_material_store()
        for material_id in dict.fromkeys(item.material_id for item in request.items):
            if await mat_store.get_material(material_id) is None:
                raise MaterialNotFoundError(material_id)

        # 2. Persist as Pending
        order = PurchaseOrder(
            items=[PurchaseOrderItem(**item.model_dump()) for item in request.items],
            status=PurchaseOrderStatus.PENDING,
            category=PurchaseCategoryRef(id=request.category_id, name=request.category_name),
            location=request.location,
            receipt_image_url=request.receipt_image_url,
            created_at=self._clock(),
        )
        po_store = await self._get_purchase_order_store()
        order = await po_store.create_order(order)

        logger.info("purchase_order_create_complete", order_id=order.id, total=order.total)
        return order
