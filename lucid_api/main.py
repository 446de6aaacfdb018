import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lucid_api import __version__
from lucid_api.api.router import api_router
from lucid_api.core.config import settings, validate_settings_for_production
from lucid_api.core.exceptions import AppError, app_error_handler, error_body
from lucid_api.core.logging import setup_logging
from lucid_api.core.metrics import PrometheusMiddleware, metrics_response
from lucid_api.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from lucid_api.core.sentry import init_sentry
from lucid_api.gateway.gateway import ShoppingGateway
from lucid_api.gateway.rate_limiter import FixedWindowRateLimiter
from lucid_api.schemas.common import HealthResponse

# Configure logging before anything else
setup_logging()
init_sentry()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings_for_production()
    logger.info(
        "Starting Lucid API (env=%s, search_mode=%s, rate limit %d/%ss)",
        settings.app_env,
        settings.search_mode,
        settings.rate_limit_points,
        settings.rate_limit_duration_seconds,
    )

    yield

    # Shutdown
    logger.info("Lucid API shut down")


app = FastAPI(
    title="Lucid API",
    description="Shopping search and assistant chat gateway over LLM providers",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.is_development else None,
    redoc_url="/api/redoc" if settings.is_development else None,
)

# Shared components, built once per process
app.state.rate_limiter = FixedWindowRateLimiter(
    points=settings.rate_limit_points,
    duration=settings.rate_limit_duration_seconds,
)
app.state.gateway = ShoppingGateway.from_settings(settings)


app.add_exception_handler(AppError, app_error_handler)


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info("Invalid body on %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content=error_body("Invalid request body"))


# Log unhandled exceptions; the client only gets a generic message
@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


# Request logging, metrics, security headers
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(PrometheusMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# API routes
app.include_router(api_router)


@app.get("/", response_model=HealthResponse)
async def health():
    return {"status": "ok", "message": "Lucid API server is running"}


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "lucid_api.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_config=None,
    )
