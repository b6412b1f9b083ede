"""
Tests for Patients API
======================

Tests patient registration and lookup.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient


class TestCreatePatient:
    """Tests for patient creation endpoint"""

    @pytest.mark.api
    def test_create_patient_success(self, client: TestClient):
        response = client.post("/api/v1/patients/", json={
            "email": "new.patient@example.com",
            "display_name": "New",
            "timezone": "Europe/Berlin"
        })

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["email"] == "new.patient@example.com"
        assert data["timezone"] == "Europe/Berlin"
        assert data["is_active"] is True

    @pytest.mark.api
    def test_duplicate_email(self, client: TestClient, test_patient):
        response = client.post("/api/v1/patients/", json={"email": test_patient.email})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "already exists" in response.json()["message"]

    @pytest.mark.api
    def test_unknown_timezone(self, client: TestClient):
        response = client.post("/api/v1/patients/", json={
            "email": "tz@example.com",
            "timezone": "Mars/Olympus_Mons"
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.api
    def test_invalid_email(self, client: TestClient):
        response = client.post("/api/v1/patients/", json={"email": "not-an-email"})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestGetPatient:
    """Tests for patient lookup"""

    @pytest.mark.api
    def test_get_patient(self, client: TestClient, test_patient):
        response = client.get(f"/api/v1/patients/{test_patient.id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == test_patient.id

    @pytest.mark.api
    def test_get_missing_patient(self, client: TestClient):
        response = client.get("/api/v1/patients/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] is True
