import pytest
from fastapi.testclient import TestClient

from mirsui.core.context import AppContext
from mirsui.main import create_app
from mirsui.utils.rate_limiter import RateLimiter, RateLimitRegistry
from conftest import make_settings
from mocks import MockBackend


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.mark.asyncio
async def test_allows_up_to_limit_then_rejects(clock):
    limiter = RateLimiter(max_requests=3, window_seconds=60, clock=clock)

    results = [await limiter.hit("1.2.3.4") for _ in range(4)]

    assert [allowed for allowed, _ in results] == [True, True, True, False]
    assert results[-1][1] == 60


@pytest.mark.asyncio
async def test_window_resets(clock):
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
    assert (await limiter.hit("a"))[0] is True

    clock.advance(45)
    allowed, retry_after = await limiter.hit("a")
    assert allowed is False
    assert retry_after == 15

    clock.advance(15)
    assert (await limiter.hit("a"))[0] is True


@pytest.mark.asyncio
async def test_clients_are_counted_separately(clock):
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
    assert (await limiter.hit("a"))[0] is True
    assert (await limiter.hit("b"))[0] is True
    assert (await limiter.hit("a"))[0] is False
    assert (await limiter.hit("b"))[0] is False
    assert (await limiter.hit("c"))[0] is True


@pytest.mark.asyncio
async def test_expired_windows_are_pruned(clock):
    limiter = RateLimiter(max_requests=5, window_seconds=10, clock=clock)
    for key in ("a", "b", "c"):
        await limiter.hit(key)
    clock.advance(11)
    await limiter.hit("d")
    assert list(limiter._windows) == ["d"]


@pytest.mark.parametrize("max_requests,window", [(0, 60), (5, 0), (5, -1)])
def test_invalid_configuration(max_requests, window):
    with pytest.raises(ValueError):
        RateLimiter(max_requests, window)


def test_registry_from_settings(clock):
    registry = RateLimitRegistry.from_settings(make_settings(LOGIN_RATE_LIMIT=2), clock)
    assert registry.get("login").max_requests == 2
    assert registry.get("signup").window_seconds == 3600

    with pytest.raises(KeyError):
        registry.get("uploads")


@pytest.mark.asyncio
async def test_disabled_registry_allows_everything(clock):
    registry = RateLimitRegistry.from_settings(
        make_settings(RATE_LIMIT_ENABLED=False, LOGIN_RATE_LIMIT=1), clock
    )
    for _ in range(5):
        assert await registry.check("login", "a") == (True, 0)


def _client(**overrides):
    context = AppContext(settings=make_settings(**overrides), backend=MockBackend())
    return TestClient(create_app(context))


def test_login_is_rate_limited_per_client():
    client = _client()
    credentials = {"email": "alice@example.com", "password": "wrong"}

    statuses = [client.post("/auth/login", json=credentials).status_code for _ in range(6)]

    assert statuses == [401] * 5 + [429]


def test_rejected_request_carries_retry_after():
    client = _client(PASSWORD_RESET_RATE_LIMIT=1)
    client.post("/auth/reset-password", json={"email": "a@example.com"})
    response = client.post("/auth/reset-password", json={"email": "a@example.com"})
    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) > 0


def test_global_limit_applies_to_every_route():
    client = _client(RATE_LIMIT_REQUESTS=3)
    statuses = [client.get("/health").status_code for _ in range(4)]
    assert statuses == [200, 200, 200, 429]
    assert client.get("/feed").status_code == 429


def test_limits_are_per_application_instance():
    first = _client(RATE_LIMIT_REQUESTS=1)
    second = _client(RATE_LIMIT_REQUESTS=1)
    assert first.get("/health").status_code == 200
    assert first.get("/health").status_code == 429
    assert second.get("/health").status_code == 200
