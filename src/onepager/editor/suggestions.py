"""Suggestion state machine.

Per block::

    NONE -> PENDING      begin()    AI request issued
    PENDING -> PROPOSED  propose()  suggestion attached to the block
    PENDING -> NONE      fail()     request failed, block untouched
    PROPOSED -> NONE     accept()   proposed value written to the field
    PROPOSED -> NONE     reject()   proposal discarded
    PROPOSED -> NONE     (edit)     DocumentModel.update_field clears it

Pending requests are tracked in a table keyed by block id. A block can
have at most one request in flight, and at most ``max_pending`` blocks
can be pending at once; anything beyond that is rejected with
``ActionInProgressError`` rather than queued.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Union

from onepager.editor.actions import SUMMARIZE_ACTION
from onepager.editor.document_model import DocumentModel, ModelChange
from onepager.models.background_task import AITask, AITaskState
from onepager.models.block import FieldName, FollowUpOffer, Suggestion
from onepager.models.richtext import ContentNode, flatten
from onepager.services.exceptions import ActionInProgressError
from onepager.utils.logging import get_logger


logger = get_logger(__name__)

FOLLOW_UP_THRESHOLD = 100


class SuggestionState(str, Enum):
    NONE = "none"
    PENDING = "pending"
    PROPOSED = "proposed"


@dataclass(frozen=True)
class SuggestionView:
    """Side-by-side view of a pending proposal."""

    block_id: str
    field: FieldName
    action: str
    current: Union[str, ContentNode]
    proposed: Union[str, ContentNode]


class SuggestionReview:
    """Tracks AI proposals and follow-up offers for every block of a model."""

    def __init__(
        self,
        model: DocumentModel,
        follow_up_threshold: int = FOLLOW_UP_THRESHOLD,
        max_pending: int = 1,
    ):
        self.model = model
        self.follow_up_threshold = follow_up_threshold
        self.max_pending = max_pending
        self._pending: dict[str, AITask] = {}
        self._offers: dict[str, FollowUpOffer] = {}
        self._resolved: dict[str, AITask] = {}
        model.subscribe(self._on_model_change)

    def _on_model_change(self, change: ModelChange) -> None:
        if change.kind == "deleted" and change.block_id is not None:
            self._forget(change.block_id)
        elif change.kind == "blocks_replaced":
            for block_id in list(self._pending) + list(self._offers):
                if not self.model.has_block(block_id):
                    self._forget(block_id)

    def _forget(self, block_id: str) -> None:
        self._resolve(block_id, AITaskState.DROPPED)
        self._offers.pop(block_id, None)
        self._resolved.pop(block_id, None)

    def state(self, block_id: str) -> SuggestionState:
        block = self.model.get(block_id)
        if block is not None and block.suggestion is not None:
            return SuggestionState.PROPOSED
        if block_id in self._pending:
            return SuggestionState.PENDING
        return SuggestionState.NONE

    @property
    def pending_block_ids(self) -> list[str]:
        return list(self._pending)

    def is_loading(self, block_id: str) -> bool:
        return block_id in self._pending

    def last_task(self, block_id: str) -> Optional[AITask]:
        """Most recently resolved request for a block (completed or failed)."""
        return self._resolved.get(block_id)

    def begin(
        self,
        block_id: str,
        action: str,
        field: Optional[FieldName] = None,
        task_type: Literal["refine", "generate"] = "refine",
    ) -> AITask:
        """
        Mark a block as waiting on an AI request (NONE -> PENDING).

        Raises:
            KeyError: If the block does not exist
            ActionInProgressError: If the block already has a request in
                flight, or the pending limit is reached
        """
        if not self.model.has_block(block_id):
            raise KeyError(block_id)
        if block_id in self._pending or len(self._pending) >= self.max_pending:
            logger.warning(
                "ai_action_rejected",
                block_id=block_id,
                action=action,
                pending=self.pending_block_ids,
            )
            raise ActionInProgressError(block_id, self.pending_block_ids)

        task = AITask(block_id=block_id, task_type=task_type, action=action, field=field)
        self._pending[block_id] = task
        logger.debug("suggestion_pending", block_id=block_id, action=action, field=field)
        return task

    def propose(self, block_id: str, suggestion: Suggestion) -> bool:
        """
        Attach a proposal to a block (PENDING -> PROPOSED).

        The response may arrive after the block was deleted; it is then dropped.

        Returns:
            True if the suggestion was attached
        """
        if not self.model.has_block(block_id):
            logger.warning("suggestion_dropped", block_id=block_id, reason="block_deleted")
            self._resolve(block_id, AITaskState.DROPPED)
            return False

        self._resolve(block_id, AITaskState.COMPLETED)
        self.model.attach_suggestion(block_id, suggestion)
        logger.info(
            "suggestion_proposed",
            block_id=block_id,
            field=suggestion.for_field,
            action=suggestion.action,
        )
        return True

    def fail(self, block_id: str, error: str) -> None:
        """Return a block to NONE after a failed request (PENDING -> NONE)."""
        self._resolve(block_id, AITaskState.FAILED, error)
        logger.debug("suggestion_failed", block_id=block_id, error=error)

    def finish(self, block_id: str) -> None:
        """Clear the loading flag without attaching anything (document-level requests)."""
        self._resolve(block_id, AITaskState.COMPLETED)

    def _resolve(self, block_id: str, status: AITaskState, error: Optional[str] = None) -> None:
        task = self._pending.pop(block_id, None)
        if task is None:
            return
        task.status = status
        task.error_message = error
        if status != AITaskState.DROPPED:
            self._resolved[block_id] = task

    def view(self, block_id: str) -> Optional[SuggestionView]:
        block = self.model.get(block_id)
        if block is None or block.suggestion is None:
            return None
        suggestion = block.suggestion
        return SuggestionView(
            block_id=block_id,
            field=suggestion.for_field,
            action=suggestion.action,
            current=getattr(block, suggestion.for_field),
            proposed=suggestion.proposed_value,
        )

    def accept(self, block_id: str) -> bool:
        """
        Write the proposed value into the field (PROPOSED -> NONE).

        Accepting long content arms a summarize follow-up offer for the block.

        Returns:
            True if a suggestion was accepted
        """
        suggestion = self.model.clear_suggestion(block_id, reason="accepted")
        if suggestion is None:
            return False

        self.model.update_field(block_id, suggestion.for_field, suggestion.proposed_value)
        logger.info(
            "suggestion_accepted",
            block_id=block_id,
            field=suggestion.for_field,
            action=suggestion.action,
        )

        if isinstance(suggestion.proposed_value, ContentNode):
            length = len(flatten(suggestion.proposed_value))
            if length > self.follow_up_threshold:
                self._offers[block_id] = FollowUpOffer(block_id=block_id, action=SUMMARIZE_ACTION)
                logger.info("follow_up_armed", block_id=block_id, content_length=length)
        return True

    def reject(self, block_id: str) -> bool:
        """Discard the proposal, leaving the field untouched (PROPOSED -> NONE)."""
        suggestion = self.model.clear_suggestion(block_id, reason="rejected")
        if suggestion is None:
            return False
        logger.info(
            "suggestion_rejected",
            block_id=block_id,
            field=suggestion.for_field,
            action=suggestion.action,
        )
        return True

    def follow_up(self, block_id: str) -> Optional[FollowUpOffer]:
        return self._offers.get(block_id)

    @property
    def follow_ups(self) -> list[FollowUpOffer]:
        return list(self._offers.values())

    def dismiss_follow_up(self, block_id: str) -> bool:
        offer = self._offers.pop(block_id, None)
        if offer is not None:
            logger.info("follow_up_dismissed", block_id=block_id)
        return offer is not None

    def take_follow_up(self, block_id: str) -> Optional[FollowUpOffer]:
        """Remove and return the offer so the caller can act on it."""
        offer = self._offers.pop(block_id, None)
        if offer is not None:
            logger.info("follow_up_taken", block_id=block_id, action=offer.action)
        return offer
