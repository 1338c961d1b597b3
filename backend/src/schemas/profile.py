"""Pydantic schemas for profile endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ProfileCreate(BaseModel):
    """
    Schema for initializing a profile.

    `username` is checked by the service (not here) so a missing username
    surfaces as a field-level 400 like any other validation failure.
    """

    username: str | None = None
    avatar: str | None = Field(default=None, max_length=2048)


class ProfileResponse(BaseModel):
    """Response model for profile info."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    email: str
    username: str
    profile_picture: str | None
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")
