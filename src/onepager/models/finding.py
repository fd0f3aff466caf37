"""Finding and snapshot models for content analysis."""

from pydantic import BaseModel, Field
from typing import Literal, Optional


class SnapshotBlock(BaseModel):
    """Flattened view of one content block."""

    id: str = Field(..., description="Block identifier")
    type: str = Field(..., description="Block title, used as a category label")
    content: str = Field(default="", description="Flattened block body")

    model_config = {"frozen": True}


class DocumentSnapshot(BaseModel):
    """Flattened document handed to the analysis checks."""

    title: str = Field(default="", description="Document title")
    blocks: tuple[SnapshotBlock, ...] = Field(
        default=(),
        description="Content blocks in document order (title block excluded)"
    )

    model_config = {"frozen": True}  # Compared structurally to skip re-analysis


class Finding(BaseModel):
    """Structural/lexical quality observation about a document."""

    id: str = Field(..., description="Stable key for the kind of finding")

    severity: Literal["high", "medium", "low"] = Field(
        ...,
        description="How strongly the finding should be surfaced"
    )

    message: str = Field(..., description="User-facing message")

    field_id: Optional[str] = Field(
        default=None,
        description="Block the finding refers to, if any"
    )

    model_config = {"frozen": True}
