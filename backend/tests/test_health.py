"""Health check and request-id propagation tests."""
from fastapi.testclient import TestClient


def _get_client() -> TestClient:
    from evolve.main import app

    return TestClient(app)


def test_health_endpoint_returns_ok() -> None:
    client = _get_client()
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_request_id_generated_and_returned() -> None:
    client = _get_client()
    response = client.get("/health")

    assert response.headers.get("X-Request-Id")


def test_request_id_echoed_from_header() -> None:
    client = _get_client()
    req_id = "test-request-id-123"
    response = client.get("/health", headers={"X-Request-Id": req_id})

    assert response.headers.get("X-Request-Id") == req_id


def test_cross_origin_response_exposes_request_id() -> None:
    client = _get_client()
    response = client.get("/health", headers={"Origin": "https://coach.example.com"})

    assert response.headers.get("access-control-allow-origin") == "*"
    assert "X-Request-Id" in response.headers.get("access-control-expose-headers", "")
