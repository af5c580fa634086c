"""API endpoint integration tests.

Tests the FastAPI endpoints for payroll generation, queries and the
record lifecycle.
"""

from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient

GENERATE_URL = "/api/v1/payroll/generate"
APRIL = {"periodStart": "2025-04-01", "periodEnd": "2025-04-30"}
ACTOR_ID = "9f1c2d3e-4b5a-6978-8a9b-0c1d2e3f4a5b"


async def generate_april(client: AsyncClient) -> dict:
    response = await client.post(GENERATE_URL, json=APRIL)
    assert response.status_code == 201, response.text
    return response.json()


def record_for(records: list[dict], staff_member_id: UUID) -> dict:
    return next(r for r in records if r["staffMemberId"] == str(staff_member_id))


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        """Health endpoint should return 200."""
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["engine_version"] == "test"
        assert data["currency"] == "KES"
        assert "timestamp" in data

    async def test_readiness_check(self, client: AsyncClient):
        """Readiness endpoint should return 200."""
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_liveness_check(self, client: AsyncClient):
        """Liveness endpoint should return 200."""
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestGenerateEndpoint:
    async def test_generate(self, client: AsyncClient, roster: dict[str, UUID]):
        """POST /generate should store one record per payable staff member."""
        response = await client.post(
            GENERATE_URL,
            headers={"X-Actor-ID": ACTOR_ID},
            json={**APRIL, "notes": "April payroll"},
        )

        assert response.status_code == 201, response.text
        data = response.json()
        assert data["count"] == 2
        assert len(data["records"]) == 2
        assert {s["staffMemberId"] for s in data["skipped"]} == {
            str(roster["carol"]),
            str(roster["david"]),
        }

        alice = record_for(data["records"], roster["alice"])
        assert alice["staffName"] == "Alice Wanjiru"
        assert alice["status"] == "DRAFT"
        assert alice["runType"] == "REGULAR"
        assert alice["periodStart"] == "2025-04-01"
        assert alice["createdBy"] == ACTOR_ID
        assert alice["notes"] == "April payroll"
        assert Decimal(alice["grossPay"]) == Decimal("80000.00")
        assert Decimal(alice["totalDeductions"]) == Decimal("20235.33")
        assert Decimal(alice["netPay"]) == Decimal("59764.67")
        assert Decimal(alice["taxes"]["incomeTax"]) == Decimal("15375.33")
        assert Decimal(alice["taxes"]["pensionContribution"]) == Decimal("2160.00")
        assert Decimal(alice["taxes"]["total"]) == Decimal("17535.33")
        assert [e["label"] for e in alice["earnings"]] == ["Basic"]
        assert alice["earnings"][0]["taxable"] is True
        assert [d["label"] for d in alice["deductions"]] == ["NHIF", "Housing Levy"]

    async def test_generate_twice_conflicts(self, client: AsyncClient, roster: dict[str, UUID]):
        """Second generation for the same period is rejected, nothing written."""
        await generate_april(client)

        response = await client.post(GENERATE_URL, json=APRIL)

        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "DUPLICATE_PERIOD"
        assert data["nothingWritten"] is True

        listing = await client.get("/api/v1/payroll")
        assert len(listing.json()) == 2

    async def test_bonus_run_for_same_period_allowed(
        self, client: AsyncClient, roster: dict[str, UUID]
    ):
        await generate_april(client)

        response = await client.post(GENERATE_URL, json={**APRIL, "runType": "BONUS"})

        assert response.status_code == 201
        assert response.json()["count"] == 2

    async def test_inverted_period(self, client: AsyncClient, roster: dict[str, UUID]):
        response = await client.post(
            GENERATE_URL,
            json={"periodStart": "2025-04-30", "periodEnd": "2025-04-01"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PERIOD"

    async def test_unparsable_period(self, client: AsyncClient, roster: dict[str, UUID]):
        response = await client.post(
            GENERATE_URL,
            json={"periodStart": "first of april", "periodEnd": "2025-04-30"},
        )

        assert response.status_code == 400
        assert response.json()["nothingWritten"] is True

    @pytest.mark.parametrize(
        "payload",
        [{"periodEnd": "2025-04-30"}, {"periodStart": "2025-04-01"}, {}],
    )
    async def test_missing_period_field(
        self, client: AsyncClient, roster: dict[str, UUID], payload: dict
    ):
        response = await client.post(GENERATE_URL, json=payload)

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "INVALID_PERIOD"
        assert "periodStart and periodEnd are required" in data["error"]
        assert data["nothingWritten"] is True

        listing = await client.get("/api/v1/payroll")
        assert listing.json() == []

    async def test_trailing_garbage_in_date(self, client: AsyncClient, roster: dict[str, UUID]):
        response = await client.post(
            GENERATE_URL,
            json={"periodStart": "2025-04-01garbage", "periodEnd": "2025-04-30"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PERIOD"

    async def test_unknown_run_type(self, client: AsyncClient, roster: dict[str, UUID]):
        response = await client.post(GENERATE_URL, json={**APRIL, "runType": "WEEKLY"})
        assert response.status_code == 422

    async def test_empty_roster(self, client: AsyncClient):
        response = await client.post(GENERATE_URL, json=APRIL)

        assert response.status_code == 404
        assert response.json()["code"] == "EMPTY_ROSTER"

    async def test_invalid_actor_header(self, client: AsyncClient, roster: dict[str, UUID]):
        response = await client.post(
            GENERATE_URL, headers={"X-Actor-ID": "not-a-uuid"}, json=APRIL
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid X-Actor-ID format"


class TestPreviewEndpoint:
    async def test_preview_does_not_store(self, client: AsyncClient, roster: dict[str, UUID]):
        response = await client.post("/api/v1/payroll/preview", json=APRIL)

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["count"] == 2
        alice = record_for(data["records"], roster["alice"])
        assert Decimal(alice["netPay"]) == Decimal("59764.67")

        listing = await client.get("/api/v1/payroll")
        assert listing.json() == []


class TestQueryEndpoints:
    async def test_list_records(self, client: AsyncClient, roster: dict[str, UUID]):
        await generate_april(client)

        response = await client.get("/api/v1/payroll")

        assert response.status_code == 200
        assert {r["staffName"] for r in response.json()} == {"Alice Wanjiru", "Bob Otieno"}

    async def test_by_period(self, client: AsyncClient, roster: dict[str, UUID]):
        await generate_april(client)

        response = await client.get("/api/v1/payroll/by-period", params=APRIL)

        assert response.status_code == 200
        assert [r["staffName"] for r in response.json()] == ["Alice Wanjiru", "Bob Otieno"]

    async def test_by_period_invalid(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/payroll/by-period",
            params={"periodStart": "2025-04-30", "periodEnd": "2025-04-01"},
        )
        assert response.status_code == 400

    async def test_by_period_missing_params(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/payroll/by-period", params={"periodStart": "2025-04-01"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PERIOD"

    async def test_periods(self, client: AsyncClient, roster: dict[str, UUID]):
        await generate_april(client)
        await client.post(
            GENERATE_URL, json={"periodStart": "2025-01-16", "periodEnd": "2025-02-15"}
        )

        response = await client.get("/api/v1/payroll/periods")

        assert response.status_code == 200
        assert response.json() == [
            {"periodStart": "2025-04-01", "periodEnd": "2025-04-30", "label": "Apr 1 – 30, 2025"},
            {
                "periodStart": "2025-01-16",
                "periodEnd": "2025-02-15",
                "label": "Jan 16 – Feb 15, 2025",
            },
        ]

    async def test_staff_history(self, client: AsyncClient, roster: dict[str, UUID]):
        await generate_april(client)

        response = await client.get(f"/api/v1/payroll/staff/{roster['bob']}")

        assert response.status_code == 200
        history = response.json()
        assert len(history) == 1
        assert set(history[0]) == {
            "recordId",
            "periodStart",
            "periodEnd",
            "grossPay",
            "totalDeductions",
            "netPay",
            "status",
            "createdAt",
        }
        assert Decimal(history[0]["netPay"]) == Decimal("36032.17")

    async def test_staff_history_empty(self, client: AsyncClient):
        response = await client.get(f"/api/v1/payroll/staff/{uuid4()}")
        assert response.status_code == 200
        assert response.json() == []

    async def test_get_payslip(self, client: AsyncClient, roster: dict[str, UUID]):
        data = await generate_april(client)
        record_id = record_for(data["records"], roster["alice"])["recordId"]

        response = await client.get(f"/api/v1/payroll/{record_id}")

        assert response.status_code == 200
        payslip = response.json()
        assert payslip["recordId"] == record_id
        assert payslip["staff"] == {
            "staffMemberId": str(roster["alice"]),
            "name": "Alice Wanjiru",
            "externalId": "EMP001",
            "department": "Finance",
        }

    async def test_get_payslip_not_found(self, client: AsyncClient):
        response = await client.get(f"/api/v1/payroll/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["code"] == "RECORD_NOT_FOUND"


class TestStatusEndpoints:
    async def test_approve_pay(self, client: AsyncClient, roster: dict[str, UUID]):
        data = await generate_april(client)
        record_id = record_for(data["records"], roster["alice"])["recordId"]

        response = await client.post(
            f"/api/v1/payroll/{record_id}/approve", headers={"X-Actor-ID": ACTOR_ID}
        )
        assert response.status_code == 200, response.text
        assert response.json()["status"] == "APPROVED"
        assert response.json()["updatedBy"] == ACTOR_ID

        response = await client.post(
            f"/api/v1/payroll/{record_id}/pay", json={"paymentDate": "2025-05-02"}
        )
        assert response.status_code == 200, response.text
        assert response.json()["status"] == "PAID"
        assert response.json()["paymentDate"] == "2025-05-02"

    async def test_pay_draft_conflicts(self, client: AsyncClient, roster: dict[str, UUID]):
        data = await generate_april(client)
        record_id = record_for(data["records"], roster["alice"])["recordId"]

        response = await client.post(f"/api/v1/payroll/{record_id}/pay")

        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_TRANSITION"

    async def test_void(self, client: AsyncClient, roster: dict[str, UUID]):
        data = await generate_april(client)
        record_id = record_for(data["records"], roster["bob"])["recordId"]

        response = await client.post(
            f"/api/v1/payroll/{record_id}/void", json={"reason": "Duplicate staff entry"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "VOID"
        assert response.json()["notes"] == "VOID: Duplicate staff entry"

    async def test_void_without_reason(self, client: AsyncClient, roster: dict[str, UUID]):
        data = await generate_april(client)
        record_id = record_for(data["records"], roster["bob"])["recordId"]

        response = await client.post(f"/api/v1/payroll/{record_id}/void", json={"reason": ""})
        assert response.status_code == 422

    async def test_unknown_record(self, client: AsyncClient):
        response = await client.post(f"/api/v1/payroll/{uuid4()}/approve")
        assert response.status_code == 404
