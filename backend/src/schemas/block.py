"""
Block document schemas.

A page's content is an ordered list of blocks. Each block is one variant of a
tagged union keyed on `type`; the variant decides which `properties` are valid.
Order in the list is rendering order and is preserved exactly through storage.
"""
from typing import Annotated, Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, RootModel, model_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _Properties(_CamelModel):
    # Editors keep stale keys when a block changes type (e.g. `checked` on a former
    # todo); those are dropped rather than rejected.
    model_config = ConfigDict(extra="ignore")


class ParagraphProperties(_Properties):
    """Paragraphs carry no type-specific properties."""


class HeadingProperties(_Properties):
    """Heading level, 1 (largest) to 6."""

    heading_level: int = Field(ge=1, le=6)


class ListProperties(_Properties):
    """List marker style and the item's position within its list."""

    list_type: Literal["bullet", "roman", "numbered"]
    index: int | None = Field(default=None, ge=0)


class TodoProperties(_Properties):
    """Completion state of a todo item."""

    checked: bool


class _BlockBase(_CamelModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, max_length=100)
    content: str = ""


class ParagraphBlock(_BlockBase):
    """Plain text paragraph."""

    type: Literal["paragraph"]
    properties: ParagraphProperties | None = None


class HeadingBlock(_BlockBase):
    """Section heading."""

    type: Literal["heading"]
    properties: HeadingProperties


class ListBlock(_BlockBase):
    """Single list item."""

    type: Literal["list"]
    properties: ListProperties


class TodoBlock(_BlockBase):
    """Checkable todo item."""

    type: Literal["todo"]
    properties: TodoProperties


Block = Annotated[
    ParagraphBlock | HeadingBlock | ListBlock | TodoBlock,
    Field(discriminator="type"),
]

BLOCK_TYPES = ("paragraph", "heading", "list", "todo")


class BlockDocument(RootModel[list[Block]]):
    """Ordered sequence of blocks; block ids are unique within a document."""

    root: list[Block] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_block_ids(self) -> "BlockDocument":
        """Reject documents where two blocks share an id."""
        seen: set[str] = set()
        for block in self.root:
            if block.id in seen:
                raise ValueError(f"Duplicate block id: {block.id}")
            seen.add(block.id)
        return self

    def __iter__(self):  # noqa: ANN204
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, item: int) -> ParagraphBlock | HeadingBlock | ListBlock | TodoBlock:
        return self.root[item]


def new_block_id() -> str:
    """Generate an id for a new block."""
    return str(uuid4())


def new_document() -> BlockDocument:
    """Return the seed document for a new page: a single empty paragraph."""
    return BlockDocument([ParagraphBlock(id=new_block_id(), type="paragraph", content="")])


def dump_document(document: BlockDocument) -> list[dict[str, Any]]:
    """Serialize a document to the JSON shape stored in the content column."""
    return document.model_dump(mode="json", by_alias=True, exclude_none=True)


def load_document(raw: list[dict[str, Any]] | None) -> BlockDocument:
    """Parse stored content; NULL and [] are both the empty document."""
    if not raw:
        return BlockDocument([])
    return BlockDocument.model_validate(raw)
