"""Page model for storing block-structured user documents."""
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Text, false
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.profile import Profile


class Page(Base, UUIDv7Mixin, TimestampMixin):
    """Page model - a titled document whose content is an ordered list of blocks."""

    __tablename__ = "pages"
    __table_args__ = (
        # Listing is always owner-scoped and newest first
        Index("ix_pages_owner_id_created_at", "owner_id", "created_at"),
    )

    # id provided by UUIDv7Mixin
    owner_id: Mapped[UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False, server_default="Untitled")
    icon: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Serialized block document (see schemas.block). The service layer validates the
    # shape; readers must treat [] as the empty document.
    content: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        server_default="[]",
    )
    is_favorite: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=false(),
    )

    owner: Mapped["Profile"] = relationship(back_populates="pages")
