"""
Integration tests for the FastAPI host (Mapillary client + walker store)
"""

import pytest
import json
import os
import sys
from unittest.mock import Mock

import requests
from fastapi.testclient import TestClient

# Add the project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from imagery import server


def _response(status_code=200, payload=None, text=""):
    """Real requests.Response, so status handling matches the library."""
    r = requests.Response()
    r.status_code = status_code
    r.encoding = "utf-8"
    r._content = (json.dumps(payload) if payload is not None else text).encode("utf-8")
    return r


@pytest.fixture
def client(monkeypatch):
    session = Mock()
    monkeypatch.setattr(server.mly, "session", session)
    server.store.reset()
    with TestClient(server.app) as c:
        yield c, session
    server.store.reset()


def test_health(client):
    c, _ = client
    r = c.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.json()["walker"]["bearing"] == 90.0


def test_token(client):
    c, _ = client
    r = c.get("/token")
    assert r.status_code == 200
    assert r.json() == {"access_token": server.mly.get_access_token()}


def test_images_nearby(client):
    c, session = client
    item = {"id": "1", "geometry": {"type": "Point", "coordinates": [2.0, 1.0]}}
    session.get.return_value = _response(200, {"data": [item]})

    r = c.get("/images/nearby", params={"lat": 1.0, "lon": 2.0, "limit": 5})

    assert r.status_code == 200
    assert r.json() == {"count": 1, "data": [item]}


def test_images_nearby_upstream_error(client):
    c, session = client
    session.get.return_value = _response(500, text="server error")

    r = c.get("/images/nearby", params={"lat": 1.0, "lon": 2.0})

    assert r.status_code == 502
    body = r.json()
    assert body["status"] == 500
    assert body["detail"] == "server error"


def test_images_nearby_unreachable(client):
    c, session = client
    session.get.side_effect = requests.ConnectionError("down")

    r = c.get("/images/nearby", params={"lat": 1.0, "lon": 2.0})

    assert r.status_code == 502
    assert r.json()["error"] == "mapillary_unreachable"


def test_walker_move(client):
    c, _ = client
    r = c.post("/walker/move", params={"direction": "right"})
    assert r.status_code == 200
    assert r.json()["bearing"] == 105.0

    r = c.post("/walker/move", params={"direction": "up"})
    assert r.status_code == 200
    assert r.json()["target_image_id"] is None


def test_walker_move_bad_direction(client):
    c, _ = client
    r = c.post("/walker/move", params={"direction": "sideways"})
    assert r.status_code == 400
    assert "unknown direction" in r.json()["detail"]


def test_walker_jump_and_reset(client):
    c, _ = client
    r = c.post("/walker/jump", params={"image_id": "77", "lat": 1.0, "lon": 2.0})
    assert r.json() == {"lat": 1.0, "lng": 2.0, "bearing": 90.0, "target_image_id": "77"}

    r = c.post("/walker/reset")
    assert r.json()["target_image_id"] is None
    assert c.get("/walker").json() == r.json()


def test_walker_images(client):
    c, session = client
    c.post("/walker/jump", params={"image_id": "start", "lat": 0.0, "lon": 0.0})
    items = [
        {"id": "far", "geometry": {"type": "Point", "coordinates": [0.004, 0.0]}},
        {"id": "near", "geometry": {"type": "Point", "coordinates": [0.0001, 0.0]}},
    ]
    session.get.return_value = _response(200, {"data": items})

    r = c.get("/walker/images")

    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 2
    assert body["nearest"]["image"]["id"] == "near"
    assert body["nearest"]["bearing_deg"] == pytest.approx(90.0)
    assert body["nearest"]["distance_m"] == pytest.approx(11.1, rel=0.01)


def test_walker_images_empty(client):
    c, session = client
    session.get.return_value = _response(200, {})
    r = c.get("/walker/images")
    assert r.json()["nearest"] is None
    assert r.json()["data"] == []


def test_images_nearby_not_modified_is_upstream_error(client):
    c, session = client
    session.get.return_value = _response(304, {"data": [{"id": "stale"}]})

    r = c.get("/images/nearby", params={"lat": 1.0, "lon": 2.0})

    assert r.status_code == 502
    assert r.json()["status"] == 304
