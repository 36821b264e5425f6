"""
api/main.py -- FastAPI application factory for the admin dashboard backend.

Run with:  uvicorn asgi:app --reload
Seed:      python -m scripts.seed_admin

create_app(settings) builds a fully wired application from an explicit
Settings object. Nothing here reads the environment; asgi.py calls
load_settings() once and passes the result in, and tests pass their own.

Middleware stack (outermost to innermost):
  1. CORSMiddleware       -- CORS headers for the configured origins
  2. log_requests         -- one log line per request with latency
  3. security_headers     -- nosniff / frame / referrer headers on every response
  4. SlowAPIMiddleware    -- global per-IP rate limit from api.limiter

Starlette wraps middleware in reverse registration order, so they are
registered innermost-first below.

Lifespan opens the three stores on startup and disposes their engines on
shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import RATE_LIMIT_MESSAGE, build_limiter
from api.models import HealthResponse
from api.routes.auth import router as auth_router
from api.routes.interns import router as interns_router
from api.routes.learning_resources import router as learning_resources_router
from api.routes.projects import router as projects_router
from api.routes.tools import router as tools_router
from api.routes.users import router as users_router
from auth.store import AccountStore
from auth.tokens import TokenService
from core.config import Settings
from core.database import now_iso
from core.exceptions import ApiError, InternalError
from interns.store import InternStore
from resources.store import ResourceStore

API_VERSION = "1.0.0"

logger = logging.getLogger("dashboard.api")


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _error_body(message: str, error: str | None = None) -> dict:
    body: dict = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return body


def _field_errors(exc: RequestValidationError) -> list[dict]:
    """Flatten pydantic errors into [{field, message, type}].

    The leading location segment ("body", "query", "path") is dropped, so a
    bad personalInfo.email in the JSON body reports field "personalInfo.email".
    """
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if len(loc) > 1 and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        message = err.get("msg", "Invalid value")
        if err.get("type") == "value_error":
            message = message.removeprefix("Value error, ")
        errors.append({"field": ".".join(loc), "message": message, "type": err.get("type", "")})
    return errors


def create_app(settings: Settings) -> FastAPI:
    """Build the dashboard API.

    Everything stateful the handlers need lives on app.state:
      settings, tokens, limiter    -- set here
      accounts, resources, interns -- set by the lifespan on startup
    """
    _configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Startup
        logger.info("Dashboard API starting up (debug=%s)", settings.debug)
        app.state.accounts = AccountStore(settings.database_url)
        app.state.resources = ResourceStore(settings.database_url)
        app.state.interns = InternStore(settings.database_url)
        logger.info("Stores initialized")

        yield

        # Shutdown
        app.state.accounts.close()
        app.state.resources.close()
        app.state.interns.close()
        logger.info("Dashboard API shutdown complete")

    app = FastAPI(
        title="Admin Dashboard API",
        description="Accounts, interns, learning resources, tools and projects for the admin dashboard.",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url=None,
        openapi_url="/api/openapi.json",
    )

    app.state.settings = settings
    app.state.tokens = TokenService(settings)
    # SlowAPI looks for app.state.limiter by convention.
    app.state.limiter = build_limiter(settings)

    # -----------------------------------------------------------------------
    # Middleware (innermost first)
    # -----------------------------------------------------------------------

    app.add_middleware(SlowAPIMiddleware)

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------

    app.include_router(auth_router, prefix="/api", tags=["Auth"])
    app.include_router(users_router, prefix="/api", tags=["Users"])
    app.include_router(learning_resources_router, prefix="/api", tags=["Learning Resources"])
    app.include_router(tools_router, prefix="/api", tags=["Tools"])
    app.include_router(interns_router, prefix="/api", tags=["Interns"])
    app.include_router(projects_router, prefix="/api", tags=["Projects"])

    # -----------------------------------------------------------------------
    # Exception handlers
    #
    # Every JSON failure uses the {success: false, message, error?} envelope.
    # -----------------------------------------------------------------------

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.error))

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        """Uniqueness violations the route layer did not translate itself."""
        logger.warning("Integrity error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=409, content=_error_body("Resource already exists"))

    # Sync on purpose: SlowAPIMiddleware calls this handler without awaiting it.
    @app.exception_handler(RateLimitExceeded)
    def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> PlainTextResponse:
        client = request.client.host if request.client else "unknown"
        logger.warning("Rate limit exceeded for %s on %s", client, request.url.path)
        return PlainTextResponse(RATE_LIMIT_MESSAGE, status_code=429)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 400 with one entry per offending field."""
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Validation failed", "errors": _field_errors(exc)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected server errors.

        The traceback goes to the log only; the client gets a generic message.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        err = InternalError("Internal server error")
        return JSONResponse(status_code=err.status_code, content=_error_body(err.message))

    # -----------------------------------------------------------------------
    # Health
    # -----------------------------------------------------------------------

    @app.get("/api/health", tags=["Health"])
    async def health() -> HealthResponse:
        """Liveness probe."""
        return HealthResponse(timestamp=now_iso())

    return app
