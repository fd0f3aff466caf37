"""AITask model for per-block AI actions."""

from enum import Enum
from pydantic import BaseModel, Field
from typing import Literal, Optional


class AITaskState(str, Enum):
    """Enum for AI task states."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    DROPPED = "dropped"


class AITask(BaseModel):
    """State of one AI request issued for a block."""

    block_id: str = Field(
        ...,
        description="Block the request targets (title block id for generation)"
    )

    task_type: Literal["refine", "generate"] = Field(
        ...,
        description="Type of AI request"
    )

    action: str = Field(
        ...,
        description="Action label (e.g. 'Improve Writing')"
    )

    field: Optional[Literal["title", "content"]] = Field(
        default=None,
        description="Target field for refine requests"
    )

    status: AITaskState = Field(
        default=AITaskState.PENDING,
        description="Current task status"
    )

    error_message: Optional[str] = Field(
        default=None,
        description="Error details if status is 'failed'"
    )

    model_config = {"frozen": False}  # Status changes as the request resolves
