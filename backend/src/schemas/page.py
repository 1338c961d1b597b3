"""Pydantic schemas for page endpoints."""
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from schemas.block import BlockDocument, dump_document, load_document

# Fields that map to NOT NULL columns and therefore cannot be cleared
NON_NULLABLE_UPDATE_FIELDS = ("title", "content", "is_favorite")


class PageUpdate(BaseModel):
    """
    Schema for updating an existing page.

    Omitted fields are left unchanged. `content`, when present, replaces the whole
    document. `icon` may be set to null to clear it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    title: str | None = Field(default=None, max_length=500)
    icon: str | None = Field(default=None, max_length=100)
    content: BlockDocument | None = None
    is_favorite: bool | None = None

    @field_validator("title")
    @classmethod
    def check_title_not_empty(cls, v: str | None) -> str | None:
        """Validate title is not empty (if provided)."""
        if v is not None and not v.strip():
            raise ValueError("Title cannot be empty")
        return v

    @model_validator(mode="after")
    def check_no_null_for_required_fields(self) -> "PageUpdate":
        """Explicit nulls are only accepted for nullable columns."""
        for name in NON_NULLABLE_UPDATE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


class PageResponse(BaseModel):
    """Schema for page responses (field names follow the editor's PageData type)."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: UUID
    title: str
    icon: str | None
    content: BlockDocument
    user_id: UUID = Field(
        validation_alias=AliasChoices("owner_id", "userId", "user_id"),
        serialization_alias="userId",
    )
    is_favorite: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("content", mode="before")
    @classmethod
    def parse_stored_content(cls, v: Any) -> Any:
        """Stored JSON (or NULL) is parsed into a block document."""
        if v is None or isinstance(v, list):
            return load_document(v)
        return v

    @field_serializer("content")
    def serialize_content(self, content: BlockDocument) -> list[dict[str, Any]]:
        """Serialize exactly as stored so documents round-trip unchanged."""
        return dump_document(content)
