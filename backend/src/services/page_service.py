"""Service layer for page operations."""
import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.page import Page
from schemas.block import dump_document, new_document
from schemas.page import PageUpdate
from services.exceptions import NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_TITLE = "Untitled"


class PageService:
    """
    Owner-scoped page operations.

    Every query filters on `owner_id` explicitly in addition to the row-security
    policy applied by the identity-scoped transaction. A page owned by someone
    else is reported exactly like a page that does not exist.

    Updates are full last-write-wins overwrites of the supplied fields; there is
    no version check between concurrent writers.
    """

    entity_name = "Page"

    def __init__(self, default_list_limit: int = 50, max_list_limit: int = 100) -> None:
        self.default_list_limit = default_list_limit
        self.max_list_limit = max_list_limit

    async def list_pages(
        self,
        db: AsyncSession,
        subject: UUID,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Page]:
        """
        List the subject's pages, newest first.

        Args:
            db: Identity-scoped database session.
            subject: Verified subject of the caller.
            offset: Number of pages to skip.
            limit: Page size; clamped to max_list_limit.
        """
        limit = min(limit or self.default_list_limit, self.max_list_limit)
        query = (
            select(Page)
            .where(Page.owner_id == subject)
            .order_by(Page.created_at.desc(), Page.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_page(self, db: AsyncSession, subject: UUID, page_id: UUID) -> Page:
        """Get a page by id, scoped to the subject."""
        result = await db.execute(
            select(Page).where(Page.id == page_id, Page.owner_id == subject),
        )
        page = result.scalar_one_or_none()
        if page is None:
            raise NotFoundError(self.entity_name)
        return page

    async def create_page(self, db: AsyncSession, subject: UUID) -> Page:
        """Create an untitled page seeded with one empty paragraph."""
        page = Page(
            owner_id=subject,
            title=DEFAULT_PAGE_TITLE,
            icon=None,
            content=dump_document(new_document()),
            is_favorite=False,
        )
        db.add(page)
        await db.flush()
        await db.refresh(page)
        return page

    async def update_page(
        self,
        db: AsyncSession,
        subject: UUID,
        page_id: UUID,
        data: PageUpdate,
    ) -> Page:
        """
        Overwrite the supplied fields of a page.

        `content` replaces the stored document wholesale. An update that supplies
        no fields returns the page unchanged.

        Raises:
            NotFoundError: If the owner-filtered update matches no row.
        """
        values = self._update_values(data)
        if not values:
            return await self.get_page(db, subject, page_id)

        values["updated_at"] = func.clock_timestamp()
        stmt = (
            update(Page)
            .where(Page.id == page_id, Page.owner_id == subject)
            .values(**values)
            .returning(Page)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        page = result.scalar_one_or_none()
        if page is None:
            raise NotFoundError(self.entity_name)
        return page

    @staticmethod
    def _update_values(data: PageUpdate) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name in data.model_fields_set:
            if name == "content":
                values["content"] = dump_document(data.content)
            else:
                values[name] = getattr(data, name)
        return values
