"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, database engine).
Middleware, exception handlers and routers all registered here.

Services raise LunayError subclasses; the handlers below are the only
place those become HTTP responses. Anything else that escapes a route
is logged with its traceback and answered with a bare 500.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lunay import __version__
from lunay.api import api_router
from lunay.config import settings
from lunay.errors import InternalFailure, LunayError
from lunay.log import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "lunay.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from lunay.cache import close_redis, init_redis
    try:
        await init_redis()
        logger.info("lunay.redis_connected")
    except Exception as e:
        # Redis is optional: the app runs without rate limiting
        logger.warning("lunay.redis_unavailable", error=str(e))

    yield

    logger.info("lunay.shutdown")
    await close_redis()

    from lunay.db.engine import engine
    await engine.dispose()


# ─── Error handlers ─────────────────────────────────────


_REQUEST_SOURCES = ("body", "query", "path", "header", "cookie")


def _validation_message(exc: RequestValidationError) -> str:
    """First validation error as a short sentence: "<field> is required"."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = list(first.get("loc", ()))
    if loc and loc[0] in _REQUEST_SOURCES:
        loc = loc[1:]
    # Nested errors are reported against the top-level field
    field = str(loc[0]) if loc else "request"
    if first.get("type") == "missing":
        return f"{field} is required"
    return f"{field}: {first.get('msg', 'invalid value')}"


async def lunay_error_handler(request: Request, exc: LunayError) -> JSONResponse:
    detail = exc.detail
    if isinstance(exc, InternalFailure):
        logger.error("lunay.internal_failure", error=exc.detail)
        detail = InternalFailure.default_detail
    return JSONResponse(status_code=exc.status_code, content={"detail": detail})


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": _validation_message(exc)})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("lunay.unhandled_error", error_type=type(exc).__name__)
    return JSONResponse(
        status_code=500, content={"detail": InternalFailure.default_detail}
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LunayError, lunay_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


# ─── App ────────────────────────────────────────────────


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="Lunay Platform",
        description="Multi-tenant backend for AI agents, workspaces and teams",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RequestId → Security → RateLimit → RouteGuard → handler
    # Redirects and 429s carry the request id and security headers too.

    from lunay.middleware.rate_limit import RateLimitMiddleware
    from lunay.middleware.request_id import RequestIdMiddleware
    from lunay.middleware.route_guard import RouteGuardMiddleware
    from lunay.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RouteGuardMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: lunay.main:app)
app = create_app()
