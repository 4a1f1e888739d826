"""API endpoint tests.

Tests the FastAPI endpoints against an in-memory database.
"""

from collections.abc import AsyncGenerator
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from studio_finance.api.app import create_app
from studio_finance.api.dependencies import get_db_session
from studio_finance.models import PayrollRecord

from .conftest import PAYER_ID, STUDIO_SLUG

pytestmark = pytest.mark.asyncio

BASE = f"/api/v1/studios/{STUDIO_SLUG}/finance"


@pytest_asyncio.fixture
async def client(session: AsyncSession, studio) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the test session."""
    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_db_session] = override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        """Health endpoint should return 200."""
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"

    async def test_readiness_check(self, client: AsyncClient):
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_liveness_check(self, client: AsyncClient):
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestReadEndpoints:
    """KPIs, receivables, payables and movements."""

    async def test_kpis(
        self, client, crew_member, make_promise, make_quote, make_payment, make_payroll
    ):
        promise = await make_promise()
        quote = await make_quote(promise, "1000", discount="100")
        await make_payment("400", quote=quote, payment_date=datetime(2024, 5, 4))
        await make_payment("200", promise=promise, payment_date=datetime(2024, 5, 18))
        await make_payroll(crew_member, "120", status="paid", payment_date=datetime(2024, 5, 11))

        response = await client.get(f"{BASE}/kpis", params={"month": "2024-05"})

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["start"] == "2024-05-01"
        assert data["end"] == "2024-05-31"
        assert Decimal(data["income"]) == Decimal("600")
        assert Decimal(data["expense"]) == Decimal("120")
        assert Decimal(data["profit"]) == Decimal("480")
        assert Decimal(data["receivables"]) == Decimal("300")
        assert "margin_percent" in data["production"]

    async def test_kpis_unknown_studio(self, client):
        response = await client.get("/api/v1/studios/missing/finance/kpis")
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "not_found"

    async def test_kpis_invalid_month(self, client):
        response = await client.get(f"{BASE}/kpis", params={"month": "2024-13"})
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "validation_failed"

    async def test_receivables(self, client, make_promise, make_quote, make_payment):
        promise = await make_promise()
        quote = await make_quote(promise, "1000", discount="100")
        await make_payment("400", quote=quote)

        response = await client.get(f"{BASE}/receivables")

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total"]) == Decimal("500")
        assert data["items"][0]["quote_id"] == str(quote.id)

    async def test_payables(self, client, crew_member, make_payroll):
        await make_payroll(crew_member, "80")
        await make_payroll(crew_member, "20")

        response = await client.get(f"{BASE}/payables")

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total"]) == Decimal("100")
        assert len(data["items"]) == 2

    async def test_movements(self, client, make_payment, make_expense):
        await make_payment("300", payment_date=datetime(2024, 5, 5))
        await make_expense("40", date=datetime(2024, 5, 7))

        response = await client.get(f"{BASE}/movements", params={"month": "2024-05"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [item["source"] for item in data["items"]] == ["expense", "income"]


class TestPayrollEndpoints:
    """Consolidation, settlement and reversal."""

    async def test_consolidate_and_reverse(self, client, session, crew_member, make_payroll):
        first = await make_payroll(crew_member, "60")
        second = await make_payroll(crew_member, "40")
        body = {
            "crew_member_id": str(crew_member.id),
            "payroll_ids": [str(first.id), str(second.id)],
            "partial_payments": [
                {"method": "transferencia", "amount": "60"},
                {"method": "efectivo", "amount": "40"},
            ],
        }

        created = await client.post(
            f"{BASE}/payroll/consolidations",
            json=body,
            headers={"X-User-ID": str(PAYER_ID)},
        )
        assert created.status_code == 201, created.text
        consolidated_id = created.json()["consolidated_payment_id"]
        assert created.json()["is_new"] is True

        retried = await client.post(f"{BASE}/payroll/consolidations", json=body)
        assert retried.status_code == 409
        assert retried.json()["detail"]["code"] == "invalid_state"

        reversed_ = await client.delete(f"{BASE}/payroll/consolidations/{consolidated_id}")
        assert reversed_.status_code == 200, reversed_.text
        assert sorted(reversed_.json()["restored_ids"]) == sorted([str(first.id), str(second.id)])

        await session.refresh(first)
        assert first.status == "pending"

    async def test_consolidate_partial_mismatch(self, client, crew_member, make_payroll):
        record = await make_payroll(crew_member, "100")
        response = await client.post(
            f"{BASE}/payroll/consolidations",
            json={
                "crew_member_id": str(crew_member.id),
                "payroll_ids": [str(record.id)],
                "partial_payments": [
                    {"method": "transfer", "amount": "60"},
                    {"method": "cash", "amount": "30"},
                ],
            },
        )
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "validation_failed"

    async def test_settle_reverse_and_cancel(self, client, session, crew_member, make_payroll):
        record = await make_payroll(crew_member, "75")

        settled = await client.post(
            f"{BASE}/payroll/{record.id}/settle", json={"payment_method": "cash"}
        )
        assert settled.status_code == 200, settled.text
        assert settled.json()["status"] == "paid"

        reopened = await client.post(f"{BASE}/payroll/{record.id}/reverse")
        assert reopened.status_code == 200
        assert reopened.json()["deleted"] is False

        cancelled = await client.delete(f"{BASE}/payroll/{record.id}")
        assert cancelled.status_code == 200
        assert await session.get(PayrollRecord, record.id) is None

    async def test_unknown_record(self, client):
        response = await client.post(f"{BASE}/payroll/{uuid4()}/reverse")
        assert response.status_code == 404

    async def test_invalid_user_header(self, client, crew_member, make_payroll):
        record = await make_payroll(crew_member, "75")
        response = await client.post(
            f"{BASE}/payroll/{record.id}/settle", headers={"X-User-ID": "not-a-uuid"}
        )
        assert response.status_code == 400


class TestRecurringExpenseEndpoints:
    """Recurring expense listing and materialisation."""

    async def test_list_and_materialize(self, client, make_recurring):
        await make_recurring("Rent", "1200", charge_day=5)

        listed = await client.get(f"{BASE}/recurring-expenses")
        assert listed.status_code == 200
        assert listed.json()["total"] == 1

        first = await client.post(
            f"{BASE}/recurring-expenses/materialize", json={"month": "2024-05"}
        )
        second = await client.post(
            f"{BASE}/recurring-expenses/materialize", json={"month": "2024-05"}
        )

        assert first.status_code == 200, first.text
        assert len(first.json()["created"]) == 1
        assert first.json()["created"][0]["date"].startswith("2024-05-05")
        assert second.json()["created"] == []
        assert second.json()["skipped"] == 1
