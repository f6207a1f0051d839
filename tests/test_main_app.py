"""
End-to-end tests of the SessionGate API with the in-memory repository.
"""

import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sessiongate import main


@pytest.fixture
def client():
    """API client with the in-memory repository."""
    previous = main.config.get("session_repository")
    main.config.set("session_repository", "memory")
    try:
        with TestClient(main.app) as client:
            yield client
    finally:
        main.config.set("session_repository", previous)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "repository": "memory", "multiplexed": False}


def test_no_session_yet(client):
    response = client.get("/session")

    assert response.status_code == 404
    assert "set-cookie" not in response.headers


def test_session_lifecycle(client):
    created = client.put("/session/attributes/user", json={"value": "alice"})
    assert created.status_code == 200
    body = created.json()
    assert body["is_new"] is True
    assert body["attributes"] == {"user": "alice"}
    assert client.cookies.get("SESSION") == body["session_id"]

    current = client.get("/session")
    assert current.json()["session_id"] == body["session_id"]
    assert current.json()["is_new"] is False

    updated = client.patch("/session", json={"max_inactive_interval": 60})
    assert updated.json()["max_inactive_interval"] == 60

    rotated = client.post("/session/id")
    assert rotated.json()["previous_session_id"] == body["session_id"]
    assert client.cookies.get("SESSION") == rotated.json()["session_id"]

    removed = client.delete("/session/attributes/user")
    assert removed.json()["attributes"] == {}

    destroyed = client.delete("/session")
    assert destroyed.status_code == 204
    assert client.get("/session").status_code == 404


def test_unknown_alias(client):
    response = client.get("/session", params={"alias": "OTHER"})

    assert response.status_code == 400
    assert "OTHER" in response.json()["error"]
