"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, database engine).
Middleware, CORS, exception handlers and routers are all registered here.

Every error leaves the API in the dashboard's envelope:
    {"success": false, "message": "..."}
Typed EduprimaErrors carry their own status code; request validation
problems become 400; anything unexpected is logged and becomes 500.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from eduprima import __version__
from eduprima.api import api_router
from eduprima.config import settings
from eduprima.errors import EduprimaError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "eduprima.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from eduprima.cache import close_redis, init_redis
    try:
        await init_redis()
        logger.info("eduprima.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("eduprima.redis_unavailable", error=str(e))

    yield

    logger.info("eduprima.shutdown")
    await close_redis()

    from eduprima.db.engine import engine
    await engine.dispose()


# ─── Exception handlers ──────────────────────────────────


def _envelope(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


async def handle_eduprima_error(request: Request, exc: EduprimaError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("eduprima.request_failed", error=exc.message, kind=type(exc).__name__)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _envelope(exc.status_code, exc.message, headers)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return _envelope(400, "; ".join(parts) or "Invalid request")


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("eduprima.unhandled_error", error=str(exc))
    return _envelope(500, "Internal server error")


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Eduprima API",
        description="Access control and tutor status management for the Eduprima dashboard",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from eduprima.middleware.rate_limit import RateLimitMiddleware
    from eduprima.middleware.request_id import RequestIdMiddleware
    from eduprima.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(EduprimaError, handle_eduprima_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: eduprima.main:app)
app = create_app()
