"""Profile model - one record per authenticated identity."""
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.page import Page


DEFAULT_PROFILE_PICTURE = "https://placehold.co/300x300"


class Profile(Base, TimestampMixin):
    """Profile model - keyed by the identity provider's subject claim."""

    __tablename__ = "profiles"

    # Never generated here: always the verified token's `sub`
    id: Mapped[UUID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    profile_picture: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        server_default=DEFAULT_PROFILE_PICTURE,
    )

    pages: Mapped[list["Page"]] = relationship(back_populates="owner")
