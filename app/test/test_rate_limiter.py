import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from app.utils.rate_limiter import RATE_LIMIT_MESSAGE, RateLimiter, RateLimitMiddleware


class FakeClock:

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_limiter_counts_per_key_within_window():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=3, window_seconds=60, clock=clock)

    results = [limiter.hit("10.0.0.1") for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert limiter.hit("10.0.0.2").allowed

    clock.now = 30
    assert limiter.hit("10.0.0.1").reset_after == 30


def test_limiter_window_resets():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)

    assert limiter.hit("a").allowed
    assert not limiter.hit("a").allowed

    clock.now = 60
    result = limiter.hit("a")
    assert result.allowed
    assert result.remaining == 0


def test_expired_windows_are_pruned_once_per_window():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=5, window_seconds=60, clock=clock)

    for key in ("a", "b", "c"):
        limiter.hit(key)
    clock.now = 30
    limiter.hit("d")
    assert len(limiter._windows) == 4

    clock.now = 60
    limiter.hit("e")
    assert sorted(limiter._windows) == ["d", "e"]


def test_limiter_rejects_bad_configuration():
    with pytest.raises(ValueError):
        RateLimiter(max_requests=0, window_seconds=60)


@pytest.fixture
def limited_client():
    limiter = RateLimiter(max_requests=2, window_seconds=900)
    small_app = FastAPI()
    small_app.add_middleware(RateLimitMiddleware, limiter=limiter, path_prefix="/api")

    @small_app.get("/api/ping")
    def ping():
        return {"pong": True}

    @small_app.get("/health")
    def health():
        return {"status": "ok"}

    return TestClient(small_app)


def test_middleware_rejects_after_limit(limited_client):
    first = limited_client.get("/api/ping")
    assert first.status_code == 200
    assert first.headers["X-RateLimit-Limit"] == "2"
    assert first.headers["X-RateLimit-Remaining"] == "1"

    limited_client.get("/api/ping")
    blocked = limited_client.get("/api/ping")

    assert blocked.status_code == 429
    assert blocked.json() == {"success": False, "message": RATE_LIMIT_MESSAGE}
    assert 0 < int(blocked.headers["Retry-After"]) <= 900


def test_middleware_ignores_other_paths(limited_client):
    for _ in range(5):
        response = limited_client.get("/health")
        assert response.status_code == 200
        assert "X-RateLimit-Limit" not in response.headers


def test_forwarded_clients_are_counted_separately(limited_client):
    for _ in range(2):
        limited_client.get("/api/ping", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

    assert limited_client.get("/api/ping", headers={"X-Forwarded-For": "203.0.113.7"}).status_code == 429
    assert limited_client.get("/api/ping", headers={"X-Forwarded-For": "198.51.100.2"}).status_code == 200
