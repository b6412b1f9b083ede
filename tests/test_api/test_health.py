"""
Tests for the health endpoint and error envelope
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient


@pytest.mark.api
def test_health(client: TestClient):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["app"] == "DoseTrack"
    assert data["status"] in ("healthy", "degraded")


@pytest.mark.api
def test_error_envelope(client: TestClient):
    response = client.get("/api/v1/medications/12345")

    data = response.json()
    assert data["error"] is True
    assert data["status_code"] == 404
    assert "Medication 12345 not found" == data["message"]
    assert "timestamp" in data
