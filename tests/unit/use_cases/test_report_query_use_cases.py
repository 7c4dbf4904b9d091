"""Tests for audit log queries, count listing and the wastage report."""

from datetime import UTC, date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from buffet.application.dto.requests import (
    AuditLogQueryRequest,
    ListInventoryCountsRequest,
    WastageReportRequest,
)
from buffet.application.use_cases.generate_wastage_report import GenerateWastageReportUseCase
from buffet.application.use_cases.list_inventory_counts import ListInventoryCountsUseCase
from buffet.application.use_cases.query_audit_log import QueryAuditLogUseCase
from buffet.core.entities.audit_log import AuditLogType
from buffet.core.entities.material import Material


class TestQueryAuditLogUseCase:
    async def test_without_range_lists_entries(self):
        store = AsyncMock()
        await QueryAuditLogUseCase(store).execute(AuditLogQueryRequest(material_id="m1"))
        store.list_entries.assert_awaited_once_with("m1")

    async def test_with_range(self):
        store = AsyncMock()
        start = datetime(2024, 1, 1, tzinfo=UTC)
        end = datetime(2024, 1, 31, tzinfo=UTC)

        await QueryAuditLogUseCase(store).execute(AuditLogQueryRequest(date_range=(start, end)))
        store.query_range.assert_awaited_once_with(None, start, end)


class TestListInventoryCountsUseCase:
    async def test_passes_filter(self):
        store = AsyncMock()
        request = ListInventoryCountsRequest(start_date=date(2024, 1, 1), limit=5)

        await ListInventoryCountsUseCase(store).execute(request)
        store.list_counts.assert_awaited_once_with(date(2024, 1, 1), None, 5)


class TestGenerateWastageReportUseCase:
    @pytest.fixture
    def stores(self, make_entry):
        t = datetime(2024, 1, 15, 10, tzinfo=UTC)
        audit_store = AsyncMock()
        audit_store.query_range.return_value = [
            make_entry("coffee", 10, t, type=AuditLogType.PURCHASE, id="e1"),
            make_entry("coffee", -4, t, type=AuditLogType.SALE, id="e2"),
            make_entry("gone", 2, t, type=AuditLogType.PURCHASE, id="e3"),
        ]
        mat_store = AsyncMock()
        mat_store.get_material.side_effect = lambda mid: (
            Material(id=mid, name="Coffee", unit="kg") if mid == "coffee" else None
        )
        return audit_store, mat_store

    async def test_single_day_in_business_timezone(self, stores):
        audit_store, mat_store = stores
        use_case = GenerateWastageReportUseCase(
            audit_store, mat_store, tz=timezone(timedelta(hours=3, minutes=30))
        )

        await use_case.execute(WastageReportRequest(start_date=date(2024, 1, 15)))

        _, start, end = audit_store.query_range.call_args[0]
        assert start == datetime(2024, 1, 14, 20, 30, tzinfo=UTC)
        assert end == datetime(2024, 1, 15, 20, 29, 59, 999999, tzinfo=UTC)

    async def test_rows(self, stores):
        audit_store, mat_store = stores
        use_case = GenerateWastageReportUseCase(audit_store, mat_store, tz=UTC)

        rows = await use_case.execute(
            WastageReportRequest(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))
        )

        by_id = {row.material_id: row for row in rows}
        assert by_id["coffee"].waste == 6
        assert by_id["coffee"].waste_percentage == pytest.approx(60.0)
        assert by_id["gone"].material_name == "Unknown"
        assert by_id["gone"].waste_percentage == pytest.approx(100.0)
