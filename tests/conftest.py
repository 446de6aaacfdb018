from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from lucid_api.core.config import settings

# Override settings for tests
settings.app_env = "test"
settings.search_mode = "live"

from lucid_api.core.dependencies import get_gateway, get_rate_limiter  # noqa: E402
from lucid_api.gateway.gateway import ShoppingGateway  # noqa: E402
from lucid_api.gateway.rate_limiter import FixedWindowRateLimiter  # noqa: E402
from lucid_api.gateway.types import (  # noqa: E402
    CompletionResponse,
    GatewayVendor,
    RequestStatus,
    VendorConfig,
)
from lucid_api.main import app  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_gateway(
    search_api_key: str = "test-deepseek-key",
    chat_api_key: str = "test-openai-key",
    search_mode: str = "live",
) -> ShoppingGateway:
    return ShoppingGateway(
        search_config=VendorConfig(
            vendor=GatewayVendor.DEEPSEEK,
            base_url="https://deepseek.test",
            model="deepseek-chat",
            timeout_seconds=15.0,
        ),
        chat_config=VendorConfig(
            vendor=GatewayVendor.OPENAI,
            base_url="https://openai.test/v1",
            model="gpt-4-turbo",
            timeout_seconds=30.0,
        ),
        search_api_key=search_api_key,
        chat_api_key=chat_api_key,
        search_mode=search_mode,
    )


def completion(text: str = "", vendor: GatewayVendor = GatewayVendor.DEEPSEEK, **kwargs) -> CompletionResponse:
    """A finished CompletionResponse, successful unless a status is given."""
    kwargs.setdefault("status", RequestStatus.SUCCESS)
    kwargs.setdefault("status_code", 200 if kwargs["status"] == RequestStatus.SUCCESS else 0)
    return CompletionResponse(vendor=vendor, text=text, **kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> FixedWindowRateLimiter:
    # Large enough that only the rate limit tests ever hit it
    return FixedWindowRateLimiter(points=100, duration=1.0, clock=clock)


@pytest.fixture
def gateway() -> ShoppingGateway:
    return make_gateway()


@pytest.fixture
def stub_search(gateway: ShoppingGateway) -> AsyncMock:
    """Replace the search adapter call; set ``return_value`` per test."""
    stub = AsyncMock(return_value=completion('{"products": []}'))
    gateway.search_adapter.complete = stub
    return stub


@pytest.fixture
def stub_chat(gateway: ShoppingGateway) -> AsyncMock:
    stub = AsyncMock(return_value=completion("Hello shopper", vendor=GatewayVendor.OPENAI))
    gateway.chat_adapter.complete = stub
    return stub


@pytest.fixture
def use_app(gateway: ShoppingGateway, limiter: FixedWindowRateLimiter) -> Callable[..., None]:
    """Point the app's dependencies at the test gateway / limiter."""

    def _apply(gateway_override: ShoppingGateway | None = None, limiter_override=None) -> None:
        app.dependency_overrides[get_gateway] = lambda: gateway_override or gateway
        app.dependency_overrides[get_rate_limiter] = lambda: limiter_override or limiter

    _apply()
    yield _apply
    app.dependency_overrides.clear()


@pytest.fixture
async def client(use_app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
