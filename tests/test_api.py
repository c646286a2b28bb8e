"""Tests for the rate limit HTTP API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import redis
from fakeredis import FakeAsyncRedis, FakeServer
from fastapi.testclient import TestClient

from ratekeeper.app.main import create_app
from ratekeeper.app.services.rate_limit import RateLimitService, get_rate_limit_service

from conftest import FakeClock


@pytest.fixture
def api_service():
    # Created outside any event loop; connections open lazily on the client's loop
    redis_client = FakeAsyncRedis(server=FakeServer(), decode_responses=True)
    return RateLimitService(redis_client=redis_client, clock=FakeClock())


@pytest.fixture
def client(api_service):
    app = create_app()
    app.dependency_overrides[get_rate_limit_service] = lambda: api_service
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def broken_client():
    redis_client = MagicMock()
    redis_client.register_script.return_value = AsyncMock(
        side_effect=redis.ConnectionError("Connection refused")
    )
    redis_client.ping = AsyncMock(side_effect=redis.ConnectionError("Connection refused"))
    redis_client.scan_iter.side_effect = redis.ConnectionError("Connection refused")
    service = RateLimitService(redis_client=redis_client)

    app = create_app()
    app.dependency_overrides[get_rate_limit_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client


class TestAttemptEndpoint:
    """Tests for POST /api/rate-limit/{algorithm}."""

    @pytest.mark.parametrize(
        "algorithm",
        ["fixed-window", "sliding-window-log", "sliding-window-counter", "token-bucket", "leaky-bucket"],
    )
    def test_first_attempt_allowed(self, client, algorithm):
        resp = client.post(f"/api/rate-limit/{algorithm}", json={"key": "user-1"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["allowed"] is True
        assert data["remaining"] == 9
        assert data["limit"] == 10
        assert data["retryAfter"] is None
        assert resp.headers["X-RateLimit-Limit"] == "10"
        assert resp.headers["X-RateLimit-Remaining"] == "9"
        assert "Retry-After" not in resp.headers

    def test_denial_has_retry_after(self, client):
        body = {"key": "user-1", "config": {"maxRequests": 2, "windowSeconds": 60}}
        for _ in range(2):
            assert client.post("/api/rate-limit/fixed-window", json=body).json()["allowed"] is True

        resp = client.post("/api/rate-limit/fixed-window", json=body)
        assert resp.status_code == 200
        data = resp.json()
        assert data["allowed"] is False
        assert data["remaining"] == 0
        assert 59 < data["retryAfter"] <= 60
        assert resp.headers["Retry-After"] == "60"

    def test_shaping_reports_delay(self, client):
        body = {"key": "user-1", "config": {"mode": "shaping", "leakRate": 2}}
        delays = [client.post("/api/rate-limit/leaky-bucket", json=body).json()["delay"] for _ in range(3)]
        assert delays == [0.0, 0.5, 1.0]

    def test_no_body_uses_client_key(self, client):
        """Test that the client address is the key when none is given."""
        first = client.post("/api/rate-limit/token-bucket").json()
        second = client.post("/api/rate-limit/token-bucket").json()
        assert first["remaining"] == 9
        assert second["remaining"] == 8

    def test_bearer_token_keys_separately(self, client):
        client.post("/api/rate-limit/token-bucket")
        resp = client.post(
            "/api/rate-limit/token-bucket",
            headers={"Authorization": "Bearer sk-test"},
        )
        assert resp.json()["remaining"] == 9

    def test_unknown_algorithm(self, client):
        resp = client.post("/api/rate-limit/bogus", json={"key": "user-1"})
        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "unknown_algorithm"
        assert "fixed-window" in data["algorithms"]
        assert data["request_id"]

    def test_invalid_config(self, client):
        resp = client.post(
            "/api/rate-limit/token-bucket",
            json={"key": "user-1", "config": {"refillRate": 0}},
        )
        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "invalid_config"
        assert data["details"][0]["loc"] == ["refill_rate"]

    def test_unknown_config_field(self, client):
        resp = client.post(
            "/api/rate-limit/fixed-window",
            json={"key": "user-1", "config": {"burst": 5}},
        )
        assert resp.status_code == 400

    @pytest.mark.parametrize("config", [5, "fast", [10, 10]])
    def test_non_object_config(self, client, config):
        """Test that a config that is not an object gets the invalid_config body."""
        resp = client.post("/api/rate-limit/fixed-window", json={"key": "user-1", "config": config})
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_config"

    def test_store_error(self, broken_client):
        resp = broken_client.post("/api/rate-limit/fixed-window", json={"key": "user-1"})
        assert resp.status_code == 500
        assert resp.json()["error"] == "store_error"


class TestBurstEndpoint:
    """Tests for POST /api/rate-limit/{algorithm}/burst."""

    def test_default_burst(self, client):
        resp = client.post("/api/rate-limit/sliding-window-log/burst", json={"key": "user-1"})
        assert resp.status_code == 200
        results = resp.json()["results"]
        assert len(results) == 10
        assert all(r["allowed"] for r in results)
        assert results[-1]["remaining"] == 0

    def test_burst_with_count(self, client):
        resp = client.post(
            "/api/rate-limit/fixed-window/burst",
            json={"key": "user-1", "count": 12},
        )
        allowed = [r["allowed"] for r in resp.json()["results"]]
        assert allowed == [True] * 10 + [False] * 2

    def test_burst_count_out_of_range(self, client):
        resp = client.post("/api/rate-limit/fixed-window/burst", json={"count": 0})
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_config"

    def test_burst_count_not_an_integer(self, client):
        resp = client.post("/api/rate-limit/fixed-window/burst", json={"count": "ten"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_config"

    def test_burst_unknown_algorithm(self, client):
        resp = client.post("/api/rate-limit/bogus/burst")
        assert resp.status_code == 400


class TestResetEndpoint:
    """Tests for POST /api/rate-limit/reset."""

    def test_reset_restores_limits(self, client):
        body = {"key": "user-1", "config": {"maxTokens": 1}}
        client.post("/api/rate-limit/token-bucket", json=body)
        assert client.post("/api/rate-limit/token-bucket", json=body).json()["allowed"] is False

        resp = client.post("/api/rate-limit/reset")
        assert resp.status_code == 200
        assert resp.json() == {"deleted": 1}

        assert client.post("/api/rate-limit/token-bucket", json=body).json()["allowed"] is True

    def test_reset_store_error(self, broken_client):
        resp = broken_client.post("/api/rate-limit/reset")
        assert resp.status_code == 500


class TestMiscEndpoints:
    """Tests for algorithm listing and health."""

    def test_list_algorithms(self, client):
        resp = client.get("/api/rate-limit/algorithms")
        assert resp.status_code == 200
        algorithms = {a["id"]: a["defaults"] for a in resp.json()["algorithms"]}
        assert algorithms["token-bucket"] == {"maxTokens": 10, "refillRate": 1.0}
        assert algorithms["leaky-bucket"]["mode"] == "policing"
        assert len(algorithms) == 5

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["components"]["redis"]["status"] == "ok"

    def test_health_degraded(self, broken_client):
        data = broken_client.get("/health").json()
        assert data["status"] == "degraded"
        assert data["components"]["redis"]["status"] == "error"

    def test_request_id_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"
