"""Tests for the purchase order state machine."""

from datetime import UTC, datetime

import pytest

from buffet.core.entities.audit_log import AuditLogType
from buffet.core.entities.material import Material
from buffet.core.entities.purchase_order import (
    PurchaseCategoryRef,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from buffet.core.exceptions import (
    InsufficientStockError,
    InvalidTransitionError,
    PurchaseOrderNotFoundError,
)
from buffet.core.services.purchase_order_lifecycle import (
    ALLOWED_TRANSITIONS,
    PurchaseOrderLifecycle,
    StockEffect,
    is_transition_allowed,
    stock_effect,
)

S = PurchaseOrderStatus
NOW = datetime(2024, 1, 20, 12, 0, tzinfo=UTC)


def make_order(status=S.PENDING, items=None, received_at=None) -> PurchaseOrder:
    return PurchaseOrder(
        id="po1",
        items=items or [PurchaseOrderItem(material_id="coffee", quantity=5, unit="kg", price=1)],
        status=status,
        category=PurchaseCategoryRef(id="c1", name="Bar"),
        location="Main",
        received_at=received_at,
        version=1,
    )


@pytest.fixture
def stocked_uow(uow):
    uow.add_material(Material(id="coffee", name="Coffee", unit="kg", stock=10, version=1))
    return uow


class TestTransitionGraph:
    @pytest.mark.parametrize(
        ("old", "new"),
        [
            (S.PENDING, S.APPROVED),
            (S.PENDING, S.CANCELLED),
            (S.APPROVED, S.COMPLETED),
            (S.APPROVED, S.CANCELLED),
            (S.COMPLETED, S.PENDING),
            (S.CANCELLED, S.PENDING),
        ],
    )
    def test_allowed(self, old, new):
        assert is_transition_allowed(old, new)

    @pytest.mark.parametrize(
        ("old", "new"),
        [
            (S.PENDING, S.COMPLETED),
            (S.COMPLETED, S.CANCELLED),
            (S.CANCELLED, S.APPROVED),
            (S.COMPLETED, S.APPROVED),
        ],
    )
    def test_rejected(self, old, new):
        assert not is_transition_allowed(old, new)

    def test_same_status_allowed(self):
        for status in S:
            assert is_transition_allowed(status, status)

    def test_every_status_has_an_exit(self):
        assert set(ALLOWED_TRANSITIONS) == set(S)


class TestStockEffect:
    def test_into_completed_receives(self):
        assert stock_effect(S.APPROVED, S.COMPLETED) is StockEffect.RECEIVE

    def test_out_of_completed_reverses(self):
        assert stock_effect(S.COMPLETED, S.PENDING) is StockEffect.REVERSE

    def test_other_moves_have_no_effect(self):
        assert stock_effect(S.PENDING, S.APPROVED) is StockEffect.NONE
        assert stock_effect(S.CANCELLED, S.PENDING) is StockEffect.NONE


class TestPurchaseOrderLifecycle:
    async def test_receive_adds_stock_and_sets_received_at(self, stocked_uow):
        stocked_uow.orders["po1"] = make_order(S.APPROVED)

        updated = await PurchaseOrderLifecycle().transition(stocked_uow, "po1", S.COMPLETED, NOW)

        assert stocked_uow.stock["coffee"] == 15
        assert updated.status == S.COMPLETED
        assert updated.received_at == NOW
        assert stocked_uow.saved_orders == [updated]
        assert stocked_uow.staged_entries == []

    async def test_reversal_subtracts_and_clears_received_at(self, stocked_uow):
        stocked_uow.orders["po1"] = make_order(S.COMPLETED, received_at=NOW)

        updated = await PurchaseOrderLifecycle().transition(stocked_uow, "po1", S.PENDING, NOW)

        assert stocked_uow.stock["coffee"] == 5
        assert updated.received_at is None

    async def test_unit_conversion_applied(self, stocked_uow):
        items = [PurchaseOrderItem(material_id="coffee", quantity=500, unit="g", price=0.02)]
        stocked_uow.orders["po1"] = make_order(S.APPROVED, items=items)

        await PurchaseOrderLifecycle().transition(stocked_uow, "po1", S.COMPLETED, NOW)

        assert stocked_uow.stock["coffee"] == pytest.approx(10.5)

    async def test_reversal_accumulates_lines_before_failing(self, stocked_uow):
        items = [
            PurchaseOrderItem(material_id="coffee", quantity=6, unit="kg", price=1),
            PurchaseOrderItem(material_id="coffee", quantity=6, unit="kg", price=1),
        ]
        stocked_uow.orders["po1"] = make_order(S.COMPLETED, items=items, received_at=NOW)

        with pytest.raises(InsufficientStockError):
            await PurchaseOrderLifecycle().transition(stocked_uow, "po1", S.PENDING, NOW)
        assert stocked_uow.saved_orders == []

    async def test_same_status_is_noop(self, stocked_uow):
        order = make_order(S.COMPLETED, received_at=NOW)
        stocked_uow.orders["po1"] = order

        result = await PurchaseOrderLifecycle().transition(stocked_uow, "po1", S.COMPLETED, NOW)

        assert result is order
        assert stocked_uow.stock == {}
        assert stocked_uow.saved_orders == []

    async def test_invalid_transition(self, stocked_uow):
        stocked_uow.orders["po1"] = make_order(S.PENDING)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await PurchaseOrderLifecycle().transition(stocked_uow, "po1", S.COMPLETED, NOW)
        assert exc_info.value.details["from_status"] == "Pending"
        assert stocked_uow.saved_orders == []

    async def test_missing_order(self, uow):
        with pytest.raises(PurchaseOrderNotFoundError):
            await PurchaseOrderLifecycle().transition(uow, "nope", S.APPROVED, NOW)

    async def test_audit_receipts_flag_writes_purchase_entries(self, stocked_uow):
        stocked_uow.orders["po1"] = make_order(S.APPROVED)

        await PurchaseOrderLifecycle(audit_receipts=True).transition(
            stocked_uow, "po1", S.COMPLETED, NOW
        )

        assert stocked_uow.staged_entries == [
            {
                "material_id": "coffee",
                "change": 5,
                "type": AuditLogType.PURCHASE,
                "related_id": "po1",
                "created_at": None,
            }
        ]

    async def test_status_only_transition(self, stocked_uow):
        stocked_uow.orders["po1"] = make_order(S.PENDING)

        updated = await PurchaseOrderLifecycle().transition(stocked_uow, "po1", S.APPROVED, NOW)

        assert updated.status == S.APPROVED
        assert updated.received_at is None
        assert stocked_uow.stock == {}
