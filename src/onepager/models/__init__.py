"""Pydantic data models for onepager."""

from onepager.models.richtext import ContentNode
from onepager.models.block import Block, Document, FollowUpOffer, Suggestion, TITLE_BLOCK_ID
from onepager.models.finding import DocumentSnapshot, Finding, SnapshotBlock

__all__ = [
    "Block",
    "ContentNode",
    "Document",
    "DocumentSnapshot",
    "Finding",
    "FollowUpOffer",
    "SnapshotBlock",
    "Suggestion",
    "TITLE_BLOCK_ID",
]
