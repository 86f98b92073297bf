"""API endpoint tests.

Tests the FastAPI endpoints against an in-memory database.
"""

import pytest
from httpx import AsyncClient

from .conftest import ADMIN_EMAIL, ALICE_EMAIL, BOB_EMAIL

pytestmark = pytest.mark.asyncio

ADMIN = {"X-User-Email": ADMIN_EMAIL}
STAFF = {"X-User-Email": ALICE_EMAIL}


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


class TestBuildEndpoints:
    """Test build / lock / unlock / finalize."""

    async def test_build_returns_summary(self, client: AsyncClient):
        response = await client.post("/api/v1/periods/2025/1/build", headers=ADMIN)
        assert response.status_code == 200

        data = response.json()
        assert data["year"] == 2025
        assert data["month"] == 1
        assert data["status"] == "OPEN"
        assert data["totals"]["employee_count"] == 2
        alice = next(e for e in data["employees"] if e["employee_email"] == ALICE_EMAIL)
        assert alice["net"] == "2649.00"

    async def test_build_requires_identity(self, client: AsyncClient):
        response = await client.post("/api/v1/periods/2025/1/build")
        assert response.status_code == 401

    async def test_build_requires_admin(self, client: AsyncClient):
        response = await client.post("/api/v1/periods/2025/1/build", headers=STAFF)
        assert response.status_code == 403
        assert response.json()["code"] == "PERMISSION_DENIED"

    async def test_unknown_caller_is_not_admin(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/periods/2025/1/build", headers={"X-User-Email": "stranger@example.com"}
        )
        assert response.status_code == 403

    async def test_invalid_month(self, client: AsyncClient):
        response = await client.post("/api/v1/periods/2025/13/build", headers=ADMIN)
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_lock_blocks_build_until_unlock(self, client: AsyncClient):
        await client.post("/api/v1/periods/2025/1/build", headers=ADMIN)

        response = await client.post("/api/v1/periods/2025/1/lock", headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["status"] == "LOCKED"
        assert response.json()["locked_by"] == ADMIN_EMAIL

        response = await client.post("/api/v1/periods/2025/1/build", headers=ADMIN)
        assert response.status_code == 409
        assert response.json()["code"] == "PERIOD_LOCKED"

        response = await client.post("/api/v1/periods/2025/1/unlock", headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["status"] == "OPEN"

        response = await client.post("/api/v1/periods/2025/1/build", headers=ADMIN)
        assert response.status_code == 200

    async def test_lock_missing_period(self, client: AsyncClient):
        response = await client.post("/api/v1/periods/2030/5/lock", headers=ADMIN)
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_finalize(self, client: AsyncClient):
        await client.post("/api/v1/periods/2025/1/build", headers=ADMIN)

        response = await client.post("/api/v1/periods/2025/1/finalize", headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["status"] == "LOCKED"

        response = await client.get("/api/v1/periods/2025/1")
        assert response.json()["status"] == "LOCKED"


class TestReadEndpoints:
    """Test period, summary and item reads."""

    async def test_list_and_get_periods(self, client: AsyncClient):
        await client.post("/api/v1/periods/2025/1/build", headers=ADMIN)
        await client.post("/api/v1/periods/2025/2/build", headers=ADMIN)

        response = await client.get("/api/v1/periods")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [(p["year"], p["month"]) for p in data["items"]] == [(2025, 2), (2025, 1)]

    async def test_get_missing_period(self, client: AsyncClient):
        response = await client.get("/api/v1/periods/2025/1")
        assert response.status_code == 404

    async def test_summary_matches_build(self, client: AsyncClient):
        built = (await client.post("/api/v1/periods/2025/1/build", headers=ADMIN)).json()

        response = await client.get("/api/v1/periods/2025/1/summary")
        assert response.status_code == 200
        assert response.json() == built

    async def test_items_filtered_by_employee(self, client: AsyncClient):
        await client.post("/api/v1/periods/2025/1/build", headers=ADMIN)

        response = await client.get(
            "/api/v1/periods/2025/1/items", params={"employee_email": BOB_EMAIL}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 9
        assert data["items"][0]["item_type"] == "EARN_BASE"
        assert data["items"][0]["amount"] == "2500.00"


class TestManualItemEndpoints:
    """Test manual item and adjustment sheet endpoints."""

    async def test_add_and_list_manual_item(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/periods/2025/1/manual-items",
            headers=ADMIN,
            json={"employee_email": ALICE_EMAIL, "kind": "EARN", "amount": "200", "code": "COMM"},
        )
        assert response.status_code == 201
        assert response.json()["label"] == "Commission"

        response = await client.get("/api/v1/periods/2025/1/manual-items")
        assert response.status_code == 200
        assert response.json()["total"] == 1

    async def test_add_rejects_non_positive_amount(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/periods/2025/1/manual-items",
            headers=ADMIN,
            json={"employee_email": ALICE_EMAIL, "kind": "EARN", "amount": "0"},
        )
        assert response.status_code == 400

    async def test_add_rejects_oversized_amount(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/periods/2025/1/manual-items",
            headers=ADMIN,
            json={"employee_email": ALICE_EMAIL, "kind": "EARN", "amount": "1e30"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_replace_rejects_item_outside_codes(self, client: AsyncClient):
        url = f"/api/v1/periods/2025/1/employees/{ALICE_EMAIL}/manual-items"
        body = {"codes": ["COMM"], "items": [{"kind": "EARN", "amount": "200", "code": "BONUS"}]}

        response = await client.put(url, headers=ADMIN, json=body)
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_add_to_locked_period_conflicts(self, client: AsyncClient):
        await client.post("/api/v1/periods/2025/1/build", headers=ADMIN)
        await client.post("/api/v1/periods/2025/1/lock", headers=ADMIN)

        response = await client.post(
            "/api/v1/periods/2025/1/manual-items",
            headers=ADMIN,
            json={"employee_email": ALICE_EMAIL, "kind": "EARN", "amount": "10"},
        )
        assert response.status_code == 409

    async def test_replace_by_code(self, client: AsyncClient):
        url = f"/api/v1/periods/2025/1/employees/{ALICE_EMAIL}/manual-items"
        body = {
            "codes": ["COMM", "ADV"],
            "items": [
                {"kind": "EARN", "amount": "200", "code": "COMM"},
                {"kind": "DEDUCT", "amount": "50", "code": "ADV"},
            ],
        }

        assert (await client.put(url, headers=ADMIN, json=body)).status_code == 200
        response = await client.put(url, headers=ADMIN, json=body)
        assert response.status_code == 200
        assert response.json()["total"] == 2

        listed = await client.get(
            "/api/v1/periods/2025/1/manual-items", params={"employee_email": ALICE_EMAIL}
        )
        assert listed.json()["total"] == 2

    async def test_adjustment_sheet_round_trip(self, client: AsyncClient):
        response = await client.put(
            "/api/v1/periods/2025/1/adjustments",
            headers=ADMIN,
            json={"rows": [{"employee_email": ALICE_EMAIL, "commission": "200", "advance": "-50"}]},
        )
        assert response.status_code == 200
        rows = {r["employee_email"]: r for r in response.json()["rows"]}
        assert rows[ALICE_EMAIL]["commission"] == "200.00"
        assert rows[ALICE_EMAIL]["advance"] == "50.00"

        summary = (await client.post("/api/v1/periods/2025/1/build", headers=ADMIN)).json()
        alice = next(e for e in summary["employees"] if e["employee_email"] == ALICE_EMAIL)
        assert alice["net"] == "2799.00"

    async def test_adjustment_sheet_for_new_month(self, client: AsyncClient):
        response = await client.get("/api/v1/periods/2026/3/adjustments")
        assert response.status_code == 200
        assert len(response.json()["rows"]) == 3

        assert (await client.get("/api/v1/periods/2026/3")).status_code == 404

    async def test_staff_cannot_save_adjustments(self, client: AsyncClient):
        response = await client.put(
            "/api/v1/periods/2025/1/adjustments",
            headers=STAFF,
            json={"rows": [{"employee_email": ALICE_EMAIL, "commission": "999"}]},
        )
        assert response.status_code == 403
