"""Async SQLAlchemy session factory and identity-scoped transactions."""
import json
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.auth import IdentityClaims, get_current_identity
from core.config import get_settings
from db.rls import CLAIMS_SETTING, SUBJECT_SETTING
from services.exceptions import PersistenceError

logger = logging.getLogger(__name__)


settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# is_local=true on every call: the markers vanish at COMMIT/ROLLBACK, so a pooled
# connection never carries one request's identity into the next.
_SET_IDENTITY = text(
    "SELECT set_config(:claims_setting, :claims, true), "
    "set_config(:subject_setting, :subject, true), "
    "set_config('role', :role, true)",
)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory (overridden in tests)."""
    return async_session_factory


@asynccontextmanager
async def identity_scope(
    session_factory: async_sessionmaker[AsyncSession],
    identity: IdentityClaims,
    role: str | None = None,
) -> AsyncIterator[AsyncSession]:
    """
    Run a unit of work in one transaction evaluated as `identity` by row-security policies.

    The subject, the full claim set and the database role are set transaction-locally
    before the caller's first statement. Commits when the block exits cleanly and rolls
    back on any exception. Storage-engine failures are re-raised as PersistenceError.
    """
    async with session_factory() as session:
        try:
            async with session.begin():
                await session.execute(
                    _SET_IDENTITY,
                    {
                        "claims_setting": CLAIMS_SETTING,
                        "claims": json.dumps(dict(identity.claims), default=str),
                        "subject_setting": SUBJECT_SETTING,
                        "subject": str(identity.subject),
                        "role": role or get_settings().db_role,
                    },
                )
                yield session
        except SQLAlchemyError as e:
            logger.exception("Identity-scoped transaction rolled back")
            raise PersistenceError("Database operation failed") from e


async def get_scoped_session(
    identity: IdentityClaims = Depends(get_current_identity),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession]:
    """
    Yield a session whose transaction is scoped to the authenticated caller.

    Uses unit-of-work pattern: services use flush(), the commit happens once when
    the request finishes. If anything fails, all changes are rolled back.
    """
    async with identity_scope(session_factory, identity) as session:
        yield session
