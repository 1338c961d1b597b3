"""Readiness check for the database and its row-security setup."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.config import Settings, get_settings
from db.session import get_session_factory

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

# Assumes the request role and reads the subject marker exactly as identity-scoped
# transactions do; with no subject set, current_subject() is NULL.
_ROW_SECURITY_CHECK = text(
    "SELECT set_config('role', :role, true), current_subject() IS NULL",
)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
    row_security: str


@router.get("/health", response_model=HealthResponse)
async def health_check(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """
    Report whether requests could be served.

    `database` is unhealthy when no connection can be made. `row_security` is
    unhealthy when the connection cannot switch to the request role or the
    `current_subject()` function is missing. No user data is read.
    """
    database = "unhealthy"
    row_security = "unhealthy"
    async with session_factory() as session:
        try:
            await session.execute(text("SELECT 1"))
            database = "healthy"
            await session.execute(_ROW_SECURITY_CHECK, {"role": settings.db_role})
            row_security = "healthy"
        except (SQLAlchemyError, OSError):
            logger.exception("Health check failed (database=%s)", database)
        finally:
            await session.rollback()

    healthy = database == row_security == "healthy"
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        database=database,
        row_security=row_security,
    )
