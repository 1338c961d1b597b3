"""SQLAlchemy models."""
from models.base import Base, TimestampMixin, UUIDv7Mixin
from models.profile import Profile
from models.page import Page

__all__ = [
    "Base",
    "Page",
    "Profile",
    "TimestampMixin",
    "UUIDv7Mixin",
]
