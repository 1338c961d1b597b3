"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import health, pages, profiles
from core.auth import build_token_verifier
from core.config import get_settings
from db.session import engine
from services.exceptions import (
    FieldValidationError,
    NotFoundError,
    PersistenceError,
    ProfileAlreadyExistsError,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_DETAIL = "Internal server error"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    app_settings = get_settings()

    # Startup: one HTTP client and key cache shared by every request
    http_client = httpx.AsyncClient()
    app.state.token_verifier = build_token_verifier(app_settings, http_client)

    yield

    # Shutdown: release the HTTP client and pooled database connections
    app.state.token_verifier = None
    await http_client.aclose()
    await engine.dispose()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # HSTS: enforce HTTPS for 1 year, including subdomains
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking - API shouldn't be framed
        response.headers["X-Frame-Options"] = "DENY"
        return response


app_settings = get_settings()

app = FastAPI(
    title="Pages API",
    description="Personal pages made of typed content blocks.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    _request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed request data as 400 with field-level errors."""
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(FieldValidationError)
async def field_validation_exception_handler(
    _request: Request, exc: FieldValidationError,
) -> JSONResponse:
    """Handle service-level required-field failures."""
    return JSONResponse(
        status_code=400,
        content={"detail": exc.message, "field": exc.field},
    )


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(
    _request: Request, exc: NotFoundError,
) -> JSONResponse:
    """Absent and not-owned resources share one response."""
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ProfileAlreadyExistsError)
async def profile_exists_exception_handler(
    _request: Request, exc: ProfileAlreadyExistsError,
) -> JSONResponse:
    """Handle a second profile initialization for the same subject."""
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_exception_handler(
    _request: Request, exc: PersistenceError,
) -> JSONResponse:
    """Storage failures are logged where they occur; clients get a generic 500."""
    return JSONResponse(status_code=500, content={"detail": INTERNAL_ERROR_DETAIL})


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(
    _request: Request, exc: SQLAlchemyError,
) -> JSONResponse:
    """Catch storage failures raised outside an identity-scoped transaction."""
    logger.error("Unhandled database error: %s", exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": INTERNAL_ERROR_DETAIL})


# Security headers middleware (runs after CORS, adds headers to responses)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(profiles.router)
app.include_router(pages.router)
