"""
API endpoint tests - HTTP routes against a live-mode service with a mocked mirror,
WebSocket streams against a placeholder-mode service.
"""
import pytest
from fastapi.testclient import TestClient

from donation_sync.main import app
from donation_sync.services.sync_service import get_sync_service


DONATION_BODY = {
    "donorId": "donor-1",
    "donorName": "Corner Bistro",
    "foodType": "Fresh Vegetables",
    "quantity": "50",
    "unit": "kg",
    "description": "End of day produce",
    "location": {"address": "12 Harbour St", "lat": 37.77, "lng": -122.41},
}

REQUIREMENT_BODY = {
    "receiverId": "ngo-1",
    "receiverName": "Sam Rivera",
    "organizationName": "Eastside Shelter",
    "title": "Evening Meals",
    "foodType": "Cooked Meals",
    "quantity": "80",
    "unit": "portions",
    "urgency": "high",
    "location": {"address": "8 Dock Rd"},
    "servingSize": "80",
}


# ===================== HEALTH =====================


class TestHealth:

    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    @pytest.mark.asyncio
    async def test_health_reports_mode(self, client):
        response = await client.get("/health")
        assert response.json() == {"status": "healthy", "placeholder_mode": False}


# ===================== DONATIONS =====================


class TestDonationsAPI:

    @pytest.mark.asyncio
    async def test_create_and_list(self, client, mirror):
        response = await client.post("/api/donations/", json=DONATION_BODY)
        assert response.status_code == 200
        donation_id = response.json()["id"]

        response = await client.get("/api/donations/available")
        assert response.status_code == 200
        data = response.json()
        assert [d["id"] for d in data] == [donation_id]
        assert data[0]["foodType"] == "Fresh Vegetables"
        assert data[0]["status"] == "pending"

        response = await client.get("/api/donations/donor/donor-1")
        assert len(response.json()) == 1

        assert mirror.set.await_args_list[0].args[0] == f"donations/{donation_id}"

    @pytest.mark.asyncio
    async def test_non_numeric_quantity_rejected(self, client, mirror):
        response = await client.post("/api/donations/", json={**DONATION_BODY, "quantity": "lots"})

        assert response.status_code == 422
        mirror.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_status(self, client):
        donation_id = (await client.post("/api/donations/", json=DONATION_BODY)).json()["id"]

        response = await client.put(
            f"/api/donations/{donation_id}/status",
            json={"status": "matched", "matched_with": "match-1"},
        )
        assert response.status_code == 200
        assert response.json() == {"id": donation_id}

        response = await client.get("/api/donations/available")
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_update_missing_donation(self, client):
        response = await client.put("/api/donations/missing/status", json={"status": "expired"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, client):
        response = await client.put("/api/donations/any/status", json={"status": "spoiled"})
        assert response.status_code == 422


# ===================== REQUIREMENTS / MATCHES =====================


class TestRequirementsAndMatchesAPI:

    @pytest.mark.asyncio
    async def test_requirement_lifecycle(self, client):
        response = await client.post("/api/requirements/", json=REQUIREMENT_BODY)
        assert response.status_code == 200
        requirement_id = response.json()["id"]

        response = await client.get("/api/requirements/receiver/ngo-1")
        assert [r["id"] for r in response.json()] == [requirement_id]

        response = await client.put(f"/api/requirements/{requirement_id}/status", json={"status": "fulfilled"})
        assert response.status_code == 200

        response = await client.get("/api/requirements/active")
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_match_lifecycle(self, client, relational):
        response = await client.post("/api/matches/", json={
            "donationId": "don-1",
            "requirementId": "req-1",
            "donorId": "donor-1",
            "receiverId": "ngo-1",
            "distance": 1.5,
            "matchScore": 90,
            "actual_quantity": 12,
        })
        assert response.status_code == 200
        match_id = response.json()["id"]

        row = await relational.transactions.get(match_id)
        assert row.quantity_transferred == 12

        response = await client.put(f"/api/matches/{match_id}/status", json={"status": "confirmed"})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_update_missing_match(self, client):
        response = await client.put("/api/matches/missing/status", json={"status": "cancelled"})
        assert response.status_code == 404


# ===================== ANALYTICS / USERS =====================


class TestAnalyticsAndUsersAPI:

    @pytest.mark.asyncio
    async def test_analytics_placeholder(self, placeholder_client):
        response = await placeholder_client.get("/api/analytics/")

        assert response.status_code == 200
        data = response.json()
        assert len(data["donations"]) == 3
        assert len(data["requirements"]) == 3
        assert len(data["matches"]) == 2

    @pytest.mark.asyncio
    async def test_update_role(self, client, mirror):
        response = await client.put("/api/users/user-1/role", json={"role": "donor"})

        assert response.status_code == 200
        assert response.json() == {"user_id": "user-1", "role": "donor"}
        mirror.update.assert_awaited_once_with("users/user-1", {"role": "donor"})

    @pytest.mark.asyncio
    async def test_update_role_mirror_down(self, client, mirror):
        mirror.update.side_effect = ConnectionError("mirror down")

        response = await client.put("/api/users/user-1/role", json={"role": "donor"})

        assert response.status_code == 502


# ===================== WEBSOCKETS =====================


class TestRealtimeStreams:

    @pytest.fixture()
    def ws_client(self, placeholder_service):
        app.dependency_overrides[get_sync_service] = lambda: placeholder_service
        with TestClient(app) as test_client:
            yield test_client
        app.dependency_overrides.clear()

    def test_available_donations_initial_snapshot(self, ws_client):
        with ws_client.websocket_connect("/ws/donations/available") as websocket:
            data = websocket.receive_json()

        assert [d["id"] for d in data] == ["3", "2", "1"]
        assert data[0]["foodType"] == "Cooked Meals"

    def test_receiver_stream_gets_new_requirement(self, ws_client, placeholder_service):
        with ws_client.websocket_connect("/ws/requirements/receiver/ngo-1") as websocket:
            assert websocket.receive_json() == []

            response = ws_client.post("/api/requirements/", json=REQUIREMENT_BODY)
            assert response.status_code == 200

            data = websocket.receive_json()

        assert [r["id"] for r in data] == [response.json()["id"]]
        assert data[0]["organizationName"] == "Eastside Shelter"
