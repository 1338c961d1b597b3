"""
Security test fixtures.

These fixtures enable testing security scenarios like IDOR (Insecure Direct
Object Reference) by creating two users with profiles and a page each.
"""
from collections.abc import Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.auth import IdentityClaims
from db.session import identity_scope
from models.page import Page
from services.page_service import PageService
from tests.conftest import TEST_ROLE

page_service = PageService()


async def create_page_for(
    session_factory: async_sessionmaker[AsyncSession],
    identity: IdentityClaims,
    title: str,
) -> Page:
    """Create a titled page owned by `identity`."""
    async with identity_scope(session_factory, identity, role=TEST_ROLE) as db:
        page = await page_service.create_page(db, identity.subject)
        page.title = title
        await db.flush()
    return page


@pytest.fixture
async def user_a_page(
    session_factory: async_sessionmaker[AsyncSession],
    profile_a: IdentityClaims,
) -> Page:
    """A page owned by User A."""
    return await create_page_for(session_factory, profile_a, "User A's private page")


@pytest.fixture
async def user_b_page(
    session_factory: async_sessionmaker[AsyncSession],
    profile_b: IdentityClaims,
) -> Page:
    """A page owned by User B."""
    return await create_page_for(session_factory, profile_b, "User B's page")


@pytest.fixture
def headers_a(
    auth_headers: Callable[[IdentityClaims], dict[str, str]],
    profile_a: IdentityClaims,
) -> dict[str, str]:
    """Authorization header for User A."""
    return auth_headers(profile_a)


@pytest.fixture
def headers_b(
    auth_headers: Callable[[IdentityClaims], dict[str, str]],
    profile_b: IdentityClaims,
) -> dict[str, str]:
    """Authorization header for User B."""
    return auth_headers(profile_b)
