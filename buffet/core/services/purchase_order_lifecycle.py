"""
Purchase order state machine and its stock side effects.

Stock effects depend only on the old and new status: entering Completed
receives every line into stock, leaving Completed reverses the receipt.
"""

from datetime import datetime
from enum import Enum

from buffet.config import get_logger
from buffet.core.entities.audit_log import AuditLogType
from buffet.core.entities.purchase_order import PurchaseOrder, PurchaseOrderStatus
from buffet.core.exceptions import InvalidTransitionError
from buffet.core.interfaces.transaction import IUnitOfWork
from buffet.core.services.unit_conversion import to_canonical_quantity

logger = get_logger(__name__)

Status = PurchaseOrderStatus

ALLOWED_TRANSITIONS: dict[PurchaseOrderStatus, frozenset[PurchaseOrderStatus]] = {
    Status.PENDING: frozenset({Status.APPROVED, Status.CANCELLED}),
    Status.APPROVED: frozenset({Status.COMPLETED, Status.CANCELLED}),
    Status.COMPLETED: frozenset({Status.PENDING}),
    Status.CANCELLED: frozenset({Status.PENDING}),
}


class StockEffect(str, Enum):
    """What a status change does to material stock."""

    RECEIVE = "receive"
    REVERSE = "reverse"
    NONE = "none"


def is_transition_allowed(old: PurchaseOrderStatus, new: PurchaseOrderStatus) -> bool:
    """Same-status requests are always allowed (no-op)."""
    return old == new or new in ALLOWED_TRANSITIONS[old]


def stock_effect(old: PurchaseOrderStatus, new: PurchaseOrderStatus) -> StockEffect:
    """Stock effect of moving from ``old`` to ``new``, independent of path."""
    if new == Status.COMPLETED and old != Status.COMPLETED:
        return StockEffect.RECEIVE
    if old == Status.COMPLETED and new != Status.COMPLETED:
        return StockEffect.REVERSE
    return StockEffect.NONE


class PurchaseOrderLifecycle:
    """Applies purchase order transitions inside a unit of work."""

    def __init__(
        self,
        audit_receipts: bool = False,
        strict_units: bool = False,
    ):
        self._audit_receipts = audit_receipts
        self._strict_units = strict_units

    async def transition(
        self,
        uow: IUnitOfWork,
        order_id: str,
        new_status: PurchaseOrderStatus,
        now: datetime,
    ) -> PurchaseOrder:
        """
        Read the order and its materials, then stage the transition.

        Args:
            uow: Unit of work of the current attempt
            order_id: Purchase order to move
            new_status: Requested status
            now: Timestamp used for received_at

        Returns:
            The order as it will be after commit

        Raises:
            PurchaseOrderNotFoundError: Order does not exist
            InvalidTransitionError: Transition not in the allowed graph
            MaterialNotFoundError: A referenced material does not exist
            InsufficientStockError: Reversal would drive a material negative
        """
        order = await uow.get_purchase_order(order_id)
        old_status = order.status

        if old_status == new_status:
            logger.info(
                "purchase_order_transition_noop",
                order_id=order_id,
                status=old_status.value,
            )
            return order

        if not is_transition_allowed(old_status, new_status):
            raise InvalidTransitionError(order_id, old_status.value, new_status.value)

        effect = stock_effect(old_status, new_status)
        received_at = order.received_at

        if effect is not StockEffect.NONE:
            materials = await uow.get_materials(order.material_ids)
            sign = 1.0 if effect is StockEffect.RECEIVE else -1.0

            for item in order.items:
                material = materials[item.material_id]
                quantity = to_canonical_quantity(
                    item.quantity, item.unit, material.unit, strict=self._strict_units
                )
                uow.adjust_stock(
                    item.material_id,
                    sign * quantity,
                    require_non_negative=effect is StockEffect.REVERSE,
                )
                if self._audit_receipts:
                    uow.append_audit_entry(
                        item.material_id,
                        sign * quantity,
                        AuditLogType.PURCHASE,
                        order_id,
                    )

            received_at = now if effect is StockEffect.RECEIVE else None

        updated = order.model_copy(
            update={"status": new_status, "received_at": received_at}
        )
        uow.save_purchase_order(updated)

        logger.info(
            "purchase_order_transition_staged",
            order_id=order_id,
            from_status=old_status.value,
            to_status=new_status.value,
            effect=effect.value,
        )
        return updated
