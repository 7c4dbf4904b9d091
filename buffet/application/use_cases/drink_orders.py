"""
Drink order use cases: recipe consumption as audited sale movements.

Fulfilling an order consumes every recipe material; cancelling it returns
the same quantities, never more than the order still has consumed. Either
way one sale entry is written per material.
"""

from dataclasses import dataclass, field

from buffet.application.dto.requests import DrinkOrderRequest
from buffet.config import get_logger, get_settings
from buffet.core.entities.audit_log import AuditLogType
from buffet.core.entities.drink import Drink
from buffet.core.entities.material import STOCK_EPSILON
from buffet.core.exceptions import DrinkNotFoundError, OrderNotFulfilledError
from buffet.core.interfaces.drink_store import IDrinkStore
from buffet.core.interfaces.transaction import ITransactionCoordinator, IUnitOfWork
from buffet.core.services.recipe_consumption import (
    aggregate_consumption,
    recipe_material_ids,
)

logger = get_logger(__name__)


@dataclass
class DrinkOrderResult:
    """Stock movements of a drink order."""

    order_id: str
    consumed: dict[str, float] = field(default_factory=dict)  # signed, per material
    audit_entry_ids: list[str] = field(default_factory=list)


class _DrinkOrderUseCase:
    """Shared flow of fulfilment and cancellation."""

    # -1 consumes stock, +1 returns it
    direction: float = -1.0
    operation_name: str = "drink_order"

    def __init__(
        self,
        coordinator: ITransactionCoordinator | None = None,
        drink_store: IDrinkStore | None = None,
        strict_units: bool | None = None,
    ):
        self._coordinator = coordinator
        self._drink_store = drink_store
        self._strict_units = strict_units

    async def _get_coordinator(self) -> ITransactionCoordinator:
        if self._coordinator is None:
            from buffet.infrastructure.storage.sqlite import get_transaction_coordinator

            self._coordinator = await get_transaction_coordinator()
        return self._coordinator

    async def _get_drink_store(self) -> IDrinkStore:
        if self._drink_store is None:
            from buffet.infrastructure.storage.sqlite import get_drink_store

            self._drink_store = await get_drink_store()
        return self._drink_store

    def _strict(self) -> bool:
        if self._strict_units is None:
            return get_settings().inventory.strict_unit_conversion
        return self._strict_units

    async def _load_drinks(self, request: DrinkOrderRequest) -> dict[str, Drink]:
        store = await self._get_drink_store()
        drinks = {}
        for drink_id in dict.fromkeys(line.drink_id for line in request.items):
            drink = await store.get_drink(drink_id)
            if drink is None:
                raise DrinkNotFoundError(drink_id)
            drinks[drink_id] = drink
        return drinks

    async def _check(
        self, uow: IUnitOfWork, order_id: str, totals: dict[str, float]
    ) -> None:
        """Reject the order before anything is staged."""

    async def execute(self, request: DrinkOrderRequest) -> DrinkOrderResult:
        logger.info(
            f"{self.operation_name}_started",
            order_id=request.order_id,
            lines=len(request.items),
        )
        drinks = await self._load_drinks(request)
        ordered = [(drinks[line.drink_id], line.quantity) for line in request.items]
        strict = self._strict()

        async def apply(uow: IUnitOfWork) -> DrinkOrderResult:
            materials = await uow.get_materials(recipe_material_ids(drinks.values()))
            totals = aggregate_consumption(ordered, materials, strict=strict)
            await self._check(uow, request.order_id, totals)

            result = DrinkOrderResult(order_id=request.order_id)
            for material_id, quantity in totals.items():
                change = self.direction * quantity
                uow.adjust_stock(
                    material_id, change, require_non_negative=self.direction < 0
                )
                result.audit_entry_ids.append(
                    uow.append_audit_entry(
                        material_id, change, AuditLogType.SALE, request.order_id
                    )
                )
                result.consumed[material_id] = change
            return result

        coordinator = await self._get_coordinator()
        result = await coordinator.run(apply, name=self.operation_name)

        logger.info(
            f"{self.operation_name}_complete",
            order_id=request.order_id,
            materials=len(result.consumed),
        )
        return result


class FulfillDrinkOrderUseCase(_DrinkOrderUseCase):
    """Consume recipe materials for the drinks of an order."""

    direction = -1.0
    operation_name = "fulfill_drink_order"


class CancelDrinkOrderUseCase(_DrinkOrderUseCase):
    """Return recipe materials of a cancelled order to stock."""

    direction = 1.0
    operation_name = "cancel_drink_order"

    async def _check(
        self, uow: IUnitOfWork, order_id: str, totals: dict[str, float]
    ) -> None:
        entries = await uow.get_audit_entries_for(order_id, AuditLogType.SALE)
        outstanding: dict[str, float] = {}
        for entry in entries:
            outstanding[entry.material_id] = (
                outstanding.get(entry.material_id, 0.0) - entry.change
            )

        for material_id, quantity in totals.items():
            consumed = outstanding.get(material_id, 0.0)
            if quantity > consumed + STOCK_EPSILON:
                raise OrderNotFulfilledError(order_id, material_id, quantity, consumed)
