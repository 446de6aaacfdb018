"""Diagnostics: configuration echo plus one connectivity probe."""

import logging
import time

from fastapi import APIRouter, Depends

from lucid_api import __version__
from lucid_api.core.config import settings
from lucid_api.core.dependencies import get_gateway, get_rate_limiter
from lucid_api.core.exceptions import AppError
from lucid_api.gateway.gateway import ShoppingGateway
from lucid_api.gateway.rate_limiter import FixedWindowRateLimiter
from lucid_api.schemas.common import DiagnoseResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["diagnostics"])

_STARTED_AT = time.monotonic()


@router.get("/diagnose", response_model=DiagnoseResponse, responses={500: {"model": ErrorResponse}})
async def diagnose(
    gateway: ShoppingGateway = Depends(get_gateway),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
):
    try:
        report = await gateway.diagnose()
    except Exception:
        logger.exception("Diagnostics failed")
        raise AppError("Diagnostics failed") from None

    report["server"] = {
        "status": "ok",
        "version": __version__,
        "environment": settings.app_env,
        "uptime_seconds": int(time.monotonic() - _STARTED_AT),
    }
    report["rate_limit"] = {
        "points": limiter.points,
        "duration_seconds": limiter.duration,
        "tracked_clients": limiter.tracked_clients,
    }
    return report
