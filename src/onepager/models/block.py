"""Block, Suggestion and Document models."""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from onepager.models.richtext import ContentNode, empty_content, normalize_content
from onepager.utils.ids import generate_block_id


TITLE_BLOCK_ID = "title"

FieldName = Literal["title", "content"]


class Suggestion(BaseModel):
    """AI-proposed replacement for one field of one block, pending review."""

    for_field: FieldName = Field(
        ...,
        description="Field the proposal replaces"
    )

    proposed_value: Union[ContentNode, str] = Field(
        ...,
        description="Replacement value (string for 'title', content tree for 'content')"
    )

    action: str = Field(
        ...,
        description="Action label that produced the proposal"
    )

    @model_validator(mode="after")
    def check_value_matches_field(self) -> "Suggestion":
        if self.for_field == "title" and not isinstance(self.proposed_value, str):
            raise ValueError("title suggestions must propose a string")
        if self.for_field == "content" and not isinstance(self.proposed_value, ContentNode):
            raise ValueError("content suggestions must propose a content tree")
        return self

    model_config = {"frozen": True}  # Cleared, never edited in place


class FollowUpOffer(BaseModel):
    """Secondary action offered after accepting a long content suggestion."""

    block_id: str = Field(..., description="Block the offer is keyed to")
    action: str = Field(..., description="Proposed follow-up action label")

    model_config = {"frozen": True}


class Block(BaseModel):
    """A titled unit of document content."""

    id: str = Field(
        default_factory=generate_block_id,
        description="Unique, immutable block identifier"
    )

    title: str = Field(
        default="",
        description="Section title (also used as the category label in analysis)"
    )

    content: ContentNode = Field(
        default_factory=empty_content,
        description="Rich-text body, replaced wholesale on change"
    )

    suggestion: Optional[Suggestion] = Field(
        default=None,
        description="Pending AI proposal overlaying one field"
    )

    @field_validator("content", mode="before")
    @classmethod
    def coerce_content(cls, v: Any) -> ContentNode:
        """Accept legacy plain-string bodies."""
        return normalize_content(v)

    @property
    def is_title(self) -> bool:
        return self.id == TITLE_BLOCK_ID

    def display_value(self, field: FieldName) -> Union[ContentNode, str]:
        """
        Value to show for a field: the pending proposal if one targets it,
        otherwise the stored value. Never written back to the block.
        """
        if self.suggestion is not None and self.suggestion.for_field == field:
            return self.suggestion.proposed_value
        return getattr(self, field)

    model_config = {"frozen": False}  # Fields are overwritten during editing


class FieldRecord(BaseModel):
    """Stored form of one non-title block."""

    id: str
    title: str = ""
    content: Any = None  # editor JSON dict, or a legacy plain string


class DocumentRecord(BaseModel):
    """Stored form of a document: full overwrite of title and fields."""

    id: str
    title: str = ""
    fields: list[FieldRecord] = Field(default_factory=list)


class Document(BaseModel):
    """Ordered blocks, the first of which is the pinned title block."""

    id: Optional[str] = Field(
        default=None,
        description="Store identifier, None for an unsaved guest document"
    )

    blocks: list[Block] = Field(
        ...,
        description="Title block followed by at least one content block"
    )

    @field_validator("blocks")
    @classmethod
    def validate_layout(cls, v: list[Block]) -> list[Block]:
        """Exactly one title block, first, and at least one content block."""
        if not v or not v[0].is_title:
            raise ValueError("first block must be the title block")
        if any(block.is_title for block in v[1:]):
            raise ValueError("document has more than one title block")
        if len(v) < 2:
            raise ValueError("document needs at least one content block")
        ids = [block.id for block in v]
        if len(set(ids)) != len(ids):
            raise ValueError("block ids must be unique")
        return v

    @property
    def title_block(self) -> Block:
        return self.blocks[0]

    @property
    def title(self) -> str:
        return self.title_block.title

    @property
    def content_blocks(self) -> list[Block]:
        return self.blocks[1:]

    @property
    def is_guest(self) -> bool:
        return self.id is None

    def find(self, block_id: str) -> Optional[Block]:
        for block in self.blocks:
            if block.id == block_id:
                return block
        return None

    def index_of(self, block_id: str) -> int:
        """Position of a block, or -1 if absent."""
        for index, block in enumerate(self.blocks):
            if block.id == block_id:
                return index
        return -1

    @classmethod
    def from_record(cls, record: DocumentRecord) -> "Document":
        """
        Build a document from its stored form.

        A record without fields gets one empty content block so the
        minimum-count invariant holds.
        """
        blocks = [Block(id=TITLE_BLOCK_ID, title=record.title)]
        for field in record.fields:
            blocks.append(Block(id=field.id, title=field.title, content=field.content))
        if len(blocks) == 1:
            blocks.append(Block(title="New Section"))
        return cls(id=record.id, blocks=blocks)

    def to_record(self) -> DocumentRecord:
        """
        Stored form of the document.

        Uses stored field values only; pending suggestions are never persisted.

        Raises:
            ValueError: If the document is a guest document (no id)
        """
        if self.id is None:
            raise ValueError("guest documents have no stored form")
        return DocumentRecord(
            id=self.id,
            title=self.title,
            fields=[
                FieldRecord(id=block.id, title=block.title, content=block.content.to_json())
                for block in self.content_blocks
            ],
        )


GUEST_PROBLEM_TEXT = (
    "Our current mobile app has a cluttered user interface, "
    "leading to a 20% drop-off in user engagement."
)
GUEST_SOLUTION_TEXT = (
    "A complete redesign of the mobile app with a focus on intuitive navigation, "
    "a minimalist aesthetic, and personalized content discovery."
)


def guest_document() -> Document:
    """Default document shown to users who are not signed in."""
    return Document(
        id=None,
        blocks=[
            Block(id=TITLE_BLOCK_ID, title="One-Pager Title"),
            Block(title="Problem Statement", content=GUEST_PROBLEM_TEXT),
            Block(title="Proposed Solution", content=GUEST_SOLUTION_TEXT),
        ],
    )
