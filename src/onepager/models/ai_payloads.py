"""Pydantic models for AI service request and response bodies.

Field names on the wire are camelCase (``documentContext``,
``refinedText``); Python attributes are snake_case. Dump with
``by_alias=True`` when sending.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional


class GenerationRequest(BaseModel):
    """Request body for whole-document generation."""

    title: str = Field(..., description="Document title to generate sections for")


class GeneratedField(BaseModel):
    """One generated section."""

    label: str = Field(..., description="Section title")
    value: str = Field(default="", description="Section body as plain text")


class GenerationResponse(BaseModel):
    """Generated sections, mapped 1:1 into fresh blocks."""

    fields: list[GeneratedField] = Field(
        ...,
        description="Sections in document order"
    )


class FieldContext(BaseModel):
    """A label/value pair describing one block in flattened form."""

    label: str
    value: str = ""


class DocumentContext(BaseModel):
    """Whole-document context sent with a refine request."""

    title: str = ""
    fields: list[FieldContext] = Field(default_factory=list)


class RefineRequest(BaseModel):
    """Request body for refining one field of one block."""

    document_context: DocumentContext = Field(
        ...,
        alias="documentContext",
        description="Title plus every non-title block"
    )

    target_field: FieldContext = Field(
        ...,
        alias="targetField",
        description="Field under refinement"
    )

    specific_action: str = Field(
        ...,
        alias="specificAction",
        description="Free-text action description"
    )

    model_config = {"populate_by_name": True}


class RefineResponse(BaseModel):
    """
    Refine result.

    Plain actions return ``refinedText``; summarize-type actions return
    ``items`` (one string per bullet point).
    """

    refined_text: Optional[str] = Field(
        default=None,
        alias="refinedText",
        description="Replacement text"
    )

    items: Optional[list[str]] = Field(
        default=None,
        description="Bullet points for summarize-type actions"
    )

    @model_validator(mode="after")
    def check_one_shape(self) -> "RefineResponse":
        if self.refined_text is None and self.items is None:
            raise ValueError("refine response has neither 'refinedText' nor 'items'")
        return self

    model_config = {"populate_by_name": True}
