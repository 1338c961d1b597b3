"""Page CRUD endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_identity, get_scoped_session, get_settings
from core.auth import IdentityClaims
from models.page import Page
from schemas.page import PageResponse, PageUpdate
from services.exceptions import NotFoundError
from services.page_service import PageService

router = APIRouter(prefix="/api/pages", tags=["pages"])

_settings = get_settings()
page_service = PageService(
    default_list_limit=_settings.page_list_default_limit,
    max_list_limit=_settings.page_list_max_limit,
)


def parse_page_id(page_id: str) -> UUID:
    """Malformed ids are reported like any other unknown page."""
    try:
        return UUID(page_id)
    except ValueError:
        raise NotFoundError(page_service.entity_name)


@router.get("", response_model=list[PageResponse])
async def list_pages(
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(
        default=_settings.page_list_default_limit,
        ge=1,
        le=_settings.page_list_max_limit,
        description="Pagination limit",
    ),
    identity: IdentityClaims = Depends(get_current_identity),
    db: AsyncSession = Depends(get_scoped_session),
) -> list[Page]:
    """List the caller's pages, newest first."""
    return await page_service.list_pages(db, identity.subject, offset=offset, limit=limit)


@router.post("", response_model=PageResponse)
async def create_page(
    identity: IdentityClaims = Depends(get_current_identity),
    db: AsyncSession = Depends(get_scoped_session),
) -> Page:
    """Create an untitled page containing one empty paragraph."""
    return await page_service.create_page(db, identity.subject)


@router.get("/{page_id}", response_model=PageResponse)
async def get_page(
    identity: IdentityClaims = Depends(get_current_identity),
    page_id: UUID = Depends(parse_page_id),
    db: AsyncSession = Depends(get_scoped_session),
) -> Page:
    """Get a single page by id."""
    return await page_service.get_page(db, identity.subject, page_id)


@router.put("/{page_id}", response_model=PageResponse)
async def update_page(
    data: PageUpdate,
    identity: IdentityClaims = Depends(get_current_identity),
    page_id: UUID = Depends(parse_page_id),
    db: AsyncSession = Depends(get_scoped_session),
) -> Page:
    """
    Update a page.

    Only supplied fields change; `content` replaces the whole document. Concurrent
    updates are last-write-wins.
    """
    return await page_service.update_page(db, identity.subject, page_id, data)
