"""Block/document model: ordered blocks behind a pinned title block.

Structurally invalid operations (touching the title block, deleting the
last content block, unknown ids) are refused silently: they leave the
document unchanged, log a warning and report failure through the return
value. Every successful mutation is announced to subscribers as a
``ModelChange``.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Literal, Optional, Union

from onepager.models.block import Block, Document, FieldName, Suggestion
from onepager.models.richtext import ContentNode, ContentValue, normalize_content
from onepager.utils.ids import generate_block_id
from onepager.utils.logging import get_logger


logger = get_logger(__name__)

ChangeKind = Literal[
    "inserted",
    "deleted",
    "reordered",
    "field_updated",
    "blocks_replaced",
    "suggestion_attached",
    "suggestion_cleared",
]

# Changes that only touch the suggestion overlay never reach the store
OVERLAY_CHANGES = frozenset({"suggestion_attached", "suggestion_cleared"})


@dataclass(frozen=True)
class ModelChange:
    """A mutation applied to the document."""

    kind: ChangeKind
    block_id: Optional[str] = None
    field: Optional[FieldName] = None

    @property
    def persists(self) -> bool:
        """Whether the change alters stored data."""
        return self.kind not in OVERLAY_CHANGES


ChangeListener = Callable[[ModelChange], None]


class DocumentModel:
    """Mutable editing model around a ``Document``."""

    def __init__(self, document: Document):
        self.document = document
        self._listeners: list[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _emit(self, change: ModelChange) -> None:
        logger.debug(
            "model_changed",
            kind=change.kind,
            block_id=change.block_id,
            field=change.field,
        )
        for listener in self._listeners:
            listener(change)

    @property
    def blocks(self) -> list[Block]:
        return self.document.blocks

    def get(self, block_id: str) -> Optional[Block]:
        return self.document.find(block_id)

    def has_block(self, block_id: str) -> bool:
        return self.document.index_of(block_id) != -1

    def insert_after(self, block_id: str, title: str = "") -> Optional[Block]:
        """
        Insert a new empty block immediately after ``block_id``.

        Args:
            block_id: Block to insert after (may be the title block)
            title: Initial title for the new block

        Returns:
            The inserted block, or None if ``block_id`` was not found
        """
        index = self.document.index_of(block_id)
        if index == -1:
            logger.warning("insert_refused", reason="unknown_block", block_id=block_id)
            return None

        new_block = Block(id=generate_block_id(), title=title)
        self.document.blocks.insert(index + 1, new_block)

        logger.info("block_inserted", after_id=block_id, block_id=new_block.id)
        self._emit(ModelChange(kind="inserted", block_id=new_block.id))
        return new_block

    def delete(self, block_id: str) -> bool:
        """
        Remove a content block together with any pending suggestion on it.

        Refused for the title block, for unknown ids, and when it would
        leave the document without a content block.

        Returns:
            True if the block was removed
        """
        index = self.document.index_of(block_id)
        if index == -1:
            logger.warning("delete_refused", reason="unknown_block", block_id=block_id)
            return False
        if self.document.blocks[index].is_title:
            logger.warning("delete_refused", reason="title_block", block_id=block_id)
            return False
        if len(self.document.content_blocks) <= 1:
            logger.warning("delete_refused", reason="last_content_block", block_id=block_id)
            return False

        removed = self.document.blocks.pop(index)
        had_suggestion = removed.suggestion is not None
        removed.suggestion = None

        logger.info("block_deleted", block_id=block_id, discarded_suggestion=had_suggestion)
        self._emit(ModelChange(kind="deleted", block_id=block_id))
        return True

    def reorder(self, active_id: str, over_id: str) -> list[Block]:
        """
        Move ``active_id`` to the index currently held by ``over_id``.

        Blocks between the two positions shift by one; the relative order
        of all other blocks is preserved. Refused (the existing list is
        returned untouched) if either id is the title block or unknown.

        Returns:
            The block sequence after the operation
        """
        blocks = self.document.blocks
        old_index = self.document.index_of(active_id)
        new_index = self.document.index_of(over_id)

        if old_index == -1 or new_index == -1:
            logger.warning("reorder_refused", reason="unknown_block",
                           active_id=active_id, over_id=over_id)
            return blocks
        if blocks[old_index].is_title or blocks[new_index].is_title:
            logger.warning("reorder_refused", reason="title_block",
                           active_id=active_id, over_id=over_id)
            return blocks
        if old_index == new_index:
            return blocks

        moved = blocks.pop(old_index)
        blocks.insert(new_index, moved)

        logger.info("block_reordered", block_id=active_id, from_index=old_index, to_index=new_index)
        self._emit(ModelChange(kind="reordered", block_id=active_id))
        return blocks

    def replace_content_blocks(self, blocks: Iterable[Block]) -> list[Block]:
        """
        Replace every non-title block, keeping the title block and its id.

        Raises:
            ValueError: If no blocks are given or one of them claims the title id
        """
        new_blocks = list(blocks)
        if not new_blocks:
            raise ValueError("replacement must contain at least one block")
        if any(block.is_title for block in new_blocks):
            raise ValueError("replacement blocks cannot use the title block id")

        self.document.blocks[1:] = new_blocks

        logger.info("blocks_replaced", count=len(new_blocks))
        self._emit(ModelChange(kind="blocks_replaced"))
        return self.document.blocks

    def update_field(
        self,
        block_id: str,
        field: FieldName,
        value: Union[str, ContentValue],
    ) -> bool:
        """
        Overwrite one field of a block.

        A pending suggestion on the block is cleared first, whichever field
        it targets: an explicit edit always wins over an AI proposal.

        Args:
            block_id: Block to edit
            field: "title" or "content"
            value: New title string, or content (tree, editor JSON or plain string)

        Returns:
            True if the block exists (even when the value was unchanged)
        """
        block = self.get(block_id)
        if block is None:
            logger.warning("update_refused", reason="unknown_block", block_id=block_id)
            return False

        self.clear_suggestion(block_id, reason="edited")

        if field == "title":
            if not isinstance(value, str):
                raise TypeError("title must be a string")
            new_value: Union[str, ContentNode] = value
        else:
            new_value = normalize_content(value)

        if getattr(block, field) == new_value:
            return True

        setattr(block, field, new_value)
        self._emit(ModelChange(kind="field_updated", block_id=block_id, field=field))
        return True

    def attach_suggestion(self, block_id: str, suggestion: Suggestion) -> bool:
        """Attach a suggestion to a block, replacing any previous one."""
        block = self.get(block_id)
        if block is None:
            return False
        block.suggestion = suggestion
        self._emit(ModelChange(kind="suggestion_attached", block_id=block_id,
                               field=suggestion.for_field))
        return True

    def clear_suggestion(self, block_id: str, reason: str = "cleared") -> Optional[Suggestion]:
        """
        Remove a block's suggestion.

        Returns:
            The removed suggestion, or None if there was none
        """
        block = self.get(block_id)
        if block is None or block.suggestion is None:
            return None
        suggestion = block.suggestion
        block.suggestion = None
        logger.debug("suggestion_cleared", block_id=block_id, reason=reason,
                     field=suggestion.for_field)
        self._emit(ModelChange(kind="suggestion_cleared", block_id=block_id,
                               field=suggestion.for_field))
        return suggestion
