"""
Tests for Injections API
========================

Tests dose logging, edits, trash and pending entries.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient


# ==================== LOG TESTS ====================

class TestLogInjection:
    """Tests for injection logging endpoint"""

    @pytest.mark.api
    def test_log_injection_defaults(self, client: TestClient, user_id, test_protocol):
        response = client.post(
            f"/api/v1/injections/user/{user_id}",
            json={"protocol_id": test_protocol.id, "date": "2024-01-08"}
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["protocol_id"] == str(test_protocol.id)
        assert data["dose_mg"] == pytest.approx(100.0)
        assert data["is_optimistic"] is False

    @pytest.mark.api
    def test_log_injection_unknown_protocol(self, client: TestClient, user_id):
        response = client.post(
            f"/api/v1/injections/user/{user_id}",
            json={"protocol_id": 99999, "date": "2024-01-08"}
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.api
    def test_log_injection_invalid_date(self, client: TestClient, user_id, test_protocol):
        response = client.post(
            f"/api/v1/injections/user/{user_id}",
            json={"protocol_id": test_protocol.id, "date": "not-a-date"}
        )
        assert response.status_code == 422

    @pytest.mark.api
    def test_list_injections(self, client: TestClient, user_id, weekly_history):
        response = client.get(f"/api/v1/injections/user/{user_id}")

        assert response.status_code == status.HTTP_200_OK
        dates = [i["date"] for i in response.json()]
        assert len(dates) == 8
        assert dates[0] == "2024-02-19"


# ==================== EDIT TESTS ====================

class TestEditInjection:
    """Tests for update, trash and restore endpoints"""

    @pytest.mark.api
    def test_update_injection(self, client: TestClient, test_injection):
        response = client.put(
            f"/api/v1/injections/{test_injection.id}",
            json={"dose_ml": 0.6, "notes": "edited"}
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["dose_mg"] == pytest.approx(120.0)
        assert response.json()["notes"] == "edited"

    @pytest.mark.api
    def test_update_missing_injection(self, client: TestClient):
        response = client.put("/api/v1/injections/99999", json={"notes": "ghost"})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.api
    def test_trash_and_restore(self, client: TestClient, user_id, test_injection):
        trashed = client.post(f"/api/v1/injections/{test_injection.id}/trash")
        assert trashed.json()["is_trashed"] is True
        assert client.get(f"/api/v1/injections/user/{user_id}").json() == []

        restored = client.post(f"/api/v1/injections/{test_injection.id}/restore")
        assert restored.json()["is_trashed"] is False
        assert len(client.get(f"/api/v1/injections/user/{user_id}").json()) == 1


# ==================== OPTIMISTIC TESTS ====================

class TestOptimisticInjections:
    """Tests for pending entry endpoints"""

    @pytest.mark.api
    def test_pending_entry_lifecycle(self, client: TestClient, user_id, test_protocol):
        """Test a pending entry shows up until the durable write replaces it"""
        pending = client.post(
            f"/api/v1/injections/user/{user_id}/optimistic",
            json={
                "protocol_id": test_protocol.id,
                "date": "2024-01-08",
                "dose_ml": 0.5,
                "concentration_mg_per_ml": 200.0
            }
        )
        assert pending.status_code == status.HTTP_201_CREATED
        pending_id = pending.json()["id"]
        assert pending.json()["is_optimistic"] is True
        assert pending_id.startswith("optimistic-")

        listed = client.get(
            f"/api/v1/injections/user/{user_id}", params={"include_optimistic": True}
        ).json()
        assert [i["id"] for i in listed] == [pending_id]

        client.post(
            f"/api/v1/injections/user/{user_id}",
            json={"protocol_id": test_protocol.id, "date": "2024-01-08", "optimistic_id": pending_id}
        )
        listed = client.get(
            f"/api/v1/injections/user/{user_id}", params={"include_optimistic": True}
        ).json()
        assert len(listed) == 1
        assert listed[0]["is_optimistic"] is False

    @pytest.mark.api
    def test_delete_pending_entry(self, client: TestClient, user_id, test_protocol):
        pending_id = client.post(
            f"/api/v1/injections/user/{user_id}/optimistic",
            json={
                "protocol_id": test_protocol.id,
                "date": "2024-01-08",
                "dose_ml": 0.5,
                "concentration_mg_per_ml": 200.0
            }
        ).json()["id"]

        response = client.delete(f"/api/v1/injections/user/{user_id}/optimistic/{pending_id}")
        assert response.status_code == status.HTTP_204_NO_CONTENT

        again = client.delete(f"/api/v1/injections/user/{user_id}/optimistic/{pending_id}")
        assert again.status_code == status.HTTP_404_NOT_FOUND
