import logging

from typing import TypeVar

from fastapi import Depends, Request
from pydantic import BaseModel
from slowapi.util import get_remote_address

from lucid_api.core.exceptions import RateLimitExceededError, ValidationError
from lucid_api.core.metrics import RATE_LIMITED
from lucid_api.gateway.gateway import ShoppingGateway
from lucid_api.gateway.rate_limiter import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

BodyModel = TypeVar("BodyModel", bound=BaseModel)


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.rate_limiter


def get_gateway(request: Request) -> ShoppingGateway:
    return request.app.state.gateway


def get_client_key(request: Request) -> str:
    """Rate limit bucket key: the caller's network address."""
    return get_remote_address(request) or "unknown"


async def enforce_rate_limit(
    request: Request,
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
) -> None:
    """Dependency: reject the request with 429 once the client's window is full."""
    key = get_client_key(request)
    if await limiter.admit(key):
        return

    RATE_LIMITED.labels(path=request.url.path).inc()
    logger.info("Rate limited %s on %s", key, request.url.path)
    raise RateLimitExceededError(retry_after=limiter.retry_after(key))


def json_body(model: type[BodyModel]):
    """Dependency factory: decode the JSON body into ``model`` once the client is admitted.

    Malformed bodies still count against the client's rate limit window.
    """

    async def dependency(request: Request, _: None = Depends(enforce_rate_limit)) -> BodyModel:
        try:
            payload = await request.json()
            return model.model_validate(payload)
        except ValueError as e:
            logger.info("Invalid body on %s %s: %s", request.method, request.url.path, e)
            raise ValidationError("Invalid request body") from None

    return dependency
