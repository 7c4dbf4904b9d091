"""
In-process entry point of the inventory core.

``InventoryOperations`` validates plain arguments into request DTOs (raising
the domain ``ValidationError`` before any I/O) and delegates to one use case
per operation.
"""

from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime, tzinfo
from typing import Any

from buffet.application.dto.requests import (
    AuditLogQueryRequest,
    CommitInventoryReportRequest,
    ComputeInventoryReportRequest,
    CreateDrinkRequest,
    CreateMaterialRequest,
    CreatePurchaseOrderRequest,
    DrinkOrderRequest,
    ListInventoryCountsRequest,
    SaleConsumptionRequest,
    TransitionPurchaseOrderRequest,
    UpdateMaterialRequest,
    WastageReportRequest,
    build_request,
)
from buffet.application.use_cases import (
    AdjustStockForSaleUseCase,
    CancelDrinkOrderUseCase,
    CommitInventoryReportUseCase,
    ComputeInventoryReportUseCase,
    CreateDrinkUseCase,
    CreateMaterialUseCase,
    CreatePurchaseOrderUseCase,
    DrinkOrderResult,
    FulfillDrinkOrderUseCase,
    GenerateWastageReportUseCase,
    ListInventoryCountsUseCase,
    QueryAuditLogUseCase,
    TransitionPurchaseOrderUseCase,
    UpdateMaterialDetailsUseCase,
)
from buffet.core.entities import (
    AuditLogEntry,
    Drink,
    InventoryCount,
    Material,
    PurchaseOrder,
    PurchaseOrderStatus,
)
from buffet.core.exceptions import (
    MaterialNotFoundError,
    PurchaseOrderNotFoundError,
    ValidationError,
)
from buffet.core.interfaces import (
    IAuditLogStore,
    IDrinkStore,
    IInventoryCountStore,
    IMaterialStore,
    IPurchaseOrderStore,
    ITransactionCoordinator,
)
from buffet.core.services import (
    InventoryCountEngine,
    PurchaseOrderLifecycle,
    WastageReportRow,
)


class InventoryOperations:
    """
    Facade over every inventory operation.

    All collaborators are optional; missing ones resolve to the SQLite
    singletons and the settings-driven services on first use.
    """

    def __init__(
        self,
        coordinator: ITransactionCoordinator | None = None,
        material_store: IMaterialStore | None = None,
        audit_log_store: IAuditLogStore | None = None,
        purchase_order_store: IPurchaseOrderStore | None = None,
        inventory_count_store: IInventoryCountStore | None = None,
        drink_store: IDrinkStore | None = None,
        lifecycle: PurchaseOrderLifecycle | None = None,
        engine: InventoryCountEngine | None = None,
        clock: Callable[[], datetime] | None = None,
        tz: tzinfo | None = None,
    ):
        self._material_store = material_store
        self._purchase_order_store = purchase_order_store

        self._create_material = CreateMaterialUseCase(material_store)
        self._update_material = UpdateMaterialDetailsUseCase(material_store)
        self._sale = AdjustStockForSaleUseCase(coordinator)
        self._create_order = CreatePurchaseOrderUseCase(
            purchase_order_store, material_store, clock
        )
        self._transition = TransitionPurchaseOrderUseCase(coordinator, lifecycle)
        self._compute_report = ComputeInventoryReportUseCase(coordinator, engine)
        self._commit_report = CommitInventoryReportUseCase(coordinator, engine)
        self._list_counts = ListInventoryCountsUseCase(inventory_count_store)
        self._query_audit = QueryAuditLogUseCase(audit_log_store)
        self._create_drink = CreateDrinkUseCase(drink_store, material_store)
        self._fulfill = FulfillDrinkOrderUseCase(coordinator, drink_store)
        self._cancel = CancelDrinkOrderUseCase(coordinator, drink_store)
        self._wastage = GenerateWastageReportUseCase(audit_log_store, material_store, tz)

    async def _get_material_store(self) -> IMaterialStore:
        if self._material_store is None:
            from buffet.infrastructure.storage.sqlite import get_material_store

            self._material_store = await get_material_store()
        return self._material_store

    async def _get_purchase_order_store(self) -> IPurchaseOrderStore:
        if self._purchase_order_store is None:
            from buffet.infrastructure.storage.sqlite import get_purchase_order_store

            self._purchase_order_store = await get_purchase_order_store()
        return self._purchase_order_store

    # Materials

    async def get_material(self, material_id: str) -> Material:
        store = await self._get_material_store()
        material = await store.get_material(material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)
        return material

    async def list_materials(self, limit: int = 100, offset: int = 0) -> list[Material]:
        store = await self._get_material_store()
        return await store.list_materials(limit=limit, offset=offset)

    async def list_low_stock(self, limit: int = 100) -> list[Material]:
        store = await self._get_material_store()
        return await store.list_low_stock(limit=limit)

    async def create_material(
        self,
        name: str,
        unit: str,
        stock: float = 0.0,
        low_stock_threshold: float = 0.0,
    ) -> Material:
        request = build_request(
            CreateMaterialRequest,
            name=name,
            unit=unit,
            stock=stock,
            low_stock_threshold=low_stock_threshold,
        )
        return await self._create_material.execute(request)

    async def update_material_details(
        self,
        material_id: str,
        name: str | None = None,
        unit: str | None = None,
        low_stock_threshold: float | None = None,
    ) -> Material:
        request = build_request(
            UpdateMaterialRequest,
            material_id=material_id,
            name=name,
            unit=unit,
            low_stock_threshold=low_stock_threshold,
        )
        return await self._update_material.execute(request)

    async def adjust_stock_for_sale(
        self,
        material_id: str,
        quantity_consumed: float,
        related_order_id: str,
    ) -> None:
        request = build_request(
            SaleConsumptionRequest,
            material_id=material_id,
            quantity_consumed=quantity_consumed,
            related_order_id=related_order_id,
        )
        await self._sale.execute(request)

    # Purchasing

    async def create_purchase_order(
        self,
        items: Sequence[Mapping[str, Any]],
        category_id: str,
        category_name: str,
        location: str,
        receipt_image_url: str | None = None,
    ) -> PurchaseOrder:
        request = build_request(
            CreatePurchaseOrderRequest,
            items=list(items),
            category_id=category_id,
            category_name=category_name,
            location=location,
            receipt_image_url=receipt_image_url,
        )
        return await self._create_order.execute(request)

    async def get_purchase_order(self, order_id: str) -> PurchaseOrder:
        store = await self._get_purchase_order_store()
        order = await store.get_order(order_id)
        if order is None:
            raise PurchaseOrderNotFoundError(order_id)
        return order

    async def list_purchase_orders(
        self,
        status: PurchaseOrderStatus | str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[PurchaseOrder]:
        status_filter = None
        if status is not None:
            try:
                status_filter = PurchaseOrderStatus(status)
            except ValueError as e:
                raise ValidationError("status", "Unknown purchase order status", status) from e

        store = await self._get_purchase_order_store()
        return await store.list_orders(status=status_filter, limit=limit, offset=offset)

    async def transition_purchase_order(
        self,
        order_id: str,
        new_status: PurchaseOrderStatus | str,
    ) -> PurchaseOrderStatus:
        request = build_request(
            TransitionPurchaseOrderRequest, order_id=order_id, new_status=new_status
        )
        result = await self._transition.execute(request)
        return result.order.status

    # Inventory counts

    async def compute_inventory_report(
        self,
        count_date: date,
        counts: Mapping[str, float | None],
    ) -> InventoryCount:
        request = build_request(
            ComputeInventoryReportRequest, count_date=count_date, counts=dict(counts)
        )
        return await self._compute_report.execute(request)

    async def commit_inventory_report(self, draft: InventoryCount) -> InventoryCount:
        request = build_request(CommitInventoryReportRequest, draft=draft)
        return await self._commit_report.execute(request)

    async def list_inventory_counts(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 100,
    ) -> list[InventoryCount]:
        request = build_request(
            ListInventoryCountsRequest,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
        )
        return await self._list_counts.execute(request)

    # Audit log

    async def query_audit_log(
        self,
        material_id: str | None = None,
        date_range: tuple[datetime, datetime] | None = None,
    ) -> list[AuditLogEntry]:
        request = build_request(
            AuditLogQueryRequest, material_id=material_id, date_range=date_range
        )
        return await self._query_audit.execute(request)

    # Drinks

    async def create_drink(
        self,
        name: str,
        price: float = 0.0,
        recipe: Sequence[Mapping[str, Any]] = (),
    ) -> Drink:
        request = build_request(
            CreateDrinkRequest, name=name, price=price, recipe=list(recipe)
        )
        return await self._create_drink.execute(request)

    async def fulfill_drink_order(
        self,
        order_id: str,
        items: Sequence[tuple[str, int]],
    ) -> DrinkOrderResult:
        request = self._drink_order_request(order_id, items)
        return await self._fulfill.execute(request)

    async def cancel_drink_order(
        self,
        order_id: str,
        items: Sequence[tuple[str, int]],
    ) -> DrinkOrderResult:
        request = self._drink_order_request(order_id, items)
        return await self._cancel.execute(request)

    @staticmethod
    def _drink_order_request(
        order_id: str, items: Sequence[tuple[str, int]]
    ) -> DrinkOrderRequest:
        return build_request(
            DrinkOrderRequest,
            order_id=order_id,
            items=[{"drink_id": drink_id, "quantity": qty} for drink_id, qty in items],
        )

    # Reports

    async def generate_wastage_report(
        self,
        start_date: date,
        end_date: date | None = None,
    ) -> list[WastageReportRow]:
        request = build_request(
            WastageReportRequest, start_date=start_date, end_date=end_date
        )
        return await self._wastage.execute(request)
