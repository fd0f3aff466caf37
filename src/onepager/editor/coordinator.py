"""AI action coordinator.

Shapes outbound requests from the current document, runs them through an
``AITransport`` and turns the responses into suggestions (refine) or
replacement blocks (generate). Responses are applied by block id against
the document as it is when they arrive.
"""

import asyncio
from typing import Optional

import httpx

from onepager.editor.actions import is_summarize_action
from onepager.editor.document_model import DocumentModel
from onepager.editor.suggestions import SuggestionReview
from onepager.models.ai_payloads import (
    DocumentContext,
    FieldContext,
    GenerationRequest,
    RefineRequest,
    RefineResponse,
)
from onepager.models.block import TITLE_BLOCK_ID, Block, FieldName, Suggestion
from onepager.models.richtext import bullet_list, flatten, from_plain_text
from onepager.services.ai_client import AITransport
from onepager.services.exceptions import AIServiceError, GenerationError
from onepager.utils.logging import get_logger


logger = get_logger(__name__)


def build_document_context(model: DocumentModel) -> DocumentContext:
    """Title plus every content block as a label/flattened-content pair."""
    document = model.document
    return DocumentContext(
        title=document.title,
        fields=[
            FieldContext(label=block.title, value=flatten(block.content))
            for block in document.content_blocks
        ],
    )


def build_refine_request(model: DocumentModel, block_id: str, action: str, field: FieldName) -> RefineRequest:
    """
    Build the refine payload for one field of one block.

    Raises:
        KeyError: If the block does not exist
    """
    block = model.get(block_id)
    if block is None:
        raise KeyError(block_id)

    value = block.title if field == "title" else flatten(block.content)
    return RefineRequest(
        document_context=build_document_context(model),
        target_field=FieldContext(label=block.title, value=value),
        specific_action=action,
    )


def suggestion_from_response(response: RefineResponse, field: FieldName, action: str) -> Suggestion:
    """
    Convert a refine response into a suggestion for ``field``.

    Bullet items become a bullet-list tree; replacement text becomes
    paragraphs (content) or a plain string (title).

    Raises:
        AIServiceError: If the response shape cannot fill the field
    """
    if field == "title":
        if response.refined_text is None:
            raise AIServiceError("Refine response for a title must contain text")
        return Suggestion(for_field="title", proposed_value=response.refined_text.strip(), action=action)

    if response.items is not None and (is_summarize_action(action) or response.refined_text is None):
        return Suggestion(for_field="content", proposed_value=bullet_list(response.items), action=action)

    if response.refined_text is None:
        raise AIServiceError("Refine response has neither text nor items")
    return Suggestion(for_field="content", proposed_value=from_plain_text(response.refined_text), action=action)


class AIActionCoordinator:
    """Runs AI actions for an editing model."""

    def __init__(self, model: DocumentModel, review: SuggestionReview, transport: AITransport):
        self.model = model
        self.review = review
        self.transport = transport
        self._handles: dict[str, asyncio.Task] = {}

    async def refine(self, block_id: str, action: str, field: FieldName = "content") -> Optional[Suggestion]:
        """
        Request a refined value for one field and attach it as a suggestion.

        Failures are logged and recorded on the block's task; the loading
        state is cleared and the document is left untouched.

        Returns:
            The attached suggestion, or None if the request failed or the
            block was deleted while it was in flight

        Raises:
            KeyError: If the block does not exist
            ActionInProgressError: If the pending-action limit is reached
        """
        request = self._begin_refine(block_id, action, field)
        return await self._run_refine(block_id, action, field, request)

    def _begin_refine(self, block_id: str, action: str, field: FieldName) -> RefineRequest:
        request = build_refine_request(self.model, block_id, action, field)
        self.review.begin(block_id, action, field)
        logger.info("refine_started", block_id=block_id, action=action, field=field)
        return request

    async def _run_refine(
        self,
        block_id: str,
        action: str,
        field: FieldName,
        request: RefineRequest,
    ) -> Optional[Suggestion]:
        try:
            response = await self.transport.refine(request)
            suggestion = suggestion_from_response(response, field, action)
        except (AIServiceError, httpx.HTTPError) as e:
            logger.error("refine_failed", block_id=block_id, action=action, error=str(e))
            self.review.fail(block_id, str(e))
            return None
        except Exception as e:
            # The block leaves PENDING on every path
            logger.error("refine_crashed", block_id=block_id, action=action,
                         error=str(e), error_type=type(e).__name__)
            self.review.fail(block_id, str(e))
            raise

        if not self.review.propose(block_id, suggestion):
            return None
        return suggestion

    def start_refine(self, block_id: str, action: str, field: FieldName = "content") -> asyncio.Task:
        """
        Run ``refine`` as a background task tracked under the block id.

        The request is validated (block exists, limit not reached)
        synchronously, so conflicts raise here rather than inside the task.
        """
        request = self._begin_refine(block_id, action, field)
        request_task = asyncio.create_task(
            self._run_refine(block_id, action, field, request),
            name=f"refine:{block_id}",
        )
        self._handles[block_id] = request_task
        request_task.add_done_callback(lambda _: self._handles.pop(block_id, None))
        return request_task

    async def wait(self) -> None:
        """Wait for all background requests to resolve."""
        if self._handles:
            await asyncio.gather(*self._handles.values(), return_exceptions=True)

    async def run_follow_up(self, block_id: str) -> Optional[Suggestion]:
        """Act on a block's follow-up offer, if one is armed."""
        offer = self.review.take_follow_up(block_id)
        if offer is None:
            return None
        return await self.refine(block_id, offer.action, "content")

    async def generate(self) -> list[Block]:
        """
        Replace every content block with sections generated from the title.

        The title block and its id are kept. Each generated section becomes
        a fresh block with a new id.

        Returns:
            The new content blocks

        Raises:
            GenerationError: If the request fails; the document is unchanged
            ActionInProgressError: If the pending-action limit is reached
        """
        title = self.model.document.title
        self.review.begin(TITLE_BLOCK_ID, "generate", task_type="generate")

        logger.info("generation_started", title=title)

        try:
            response = await self.transport.generate(GenerationRequest(title=title))
        except (AIServiceError, httpx.HTTPError) as e:
            logger.error("generation_failed", title=title, error=str(e))
            self.review.fail(TITLE_BLOCK_ID, str(e))
            raise GenerationError(f"Could not generate the one-pager: {e}") from e
        except Exception as e:
            logger.error("generation_crashed", title=title, error=str(e), error_type=type(e).__name__)
            self.review.fail(TITLE_BLOCK_ID, str(e))
            raise

        if not response.fields:
            self.review.fail(TITLE_BLOCK_ID, "no sections returned")
            raise GenerationError("Could not generate the one-pager: no sections returned")

        blocks = [
            Block(title=field.label, content=from_plain_text(field.value))
            for field in response.fields
        ]
        self.model.replace_content_blocks(blocks)
        self.review.finish(TITLE_BLOCK_ID)

        logger.info("generation_completed", block_count=len(blocks))
        return blocks
