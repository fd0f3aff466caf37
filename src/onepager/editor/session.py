"""Editing session: one document, its analysis, suggestions and saving."""

from typing import Optional, Union

from onepager.analysis.engine import LiveAnalysis
from onepager.editor.coordinator import AIActionCoordinator
from onepager.editor.document_model import DocumentModel, ModelChange
from onepager.editor.suggestions import SuggestionReview
from onepager.models.block import Document, FieldName, guest_document
from onepager.models.config import EditorConfig
from onepager.models.finding import Finding
from onepager.models.richtext import ContentNode
from onepager.services.ai_client import AITransport
from onepager.services.document_store import DocumentStore
from onepager.services.save_scheduler import SaveScheduler
from onepager.utils.logging import get_logger


logger = get_logger(__name__)


class EditorSession:
    """
    Wires a document model to live analysis, the suggestion state machine,
    the AI coordinator and debounced persistence.

    Every change that alters stored data re-runs analysis immediately (so
    findings always reflect the post-edit document) and restarts the save
    timer. Guest documents are analysed but never saved.

    Example:
        >>> session = await EditorSession.open(store, "me", transport=client)
        >>> await session.coordinator.refine(block_id, "Improve Writing")
        >>> session.review.accept(block_id)
        >>> await session.close()
    """

    def __init__(
        self,
        document: Document,
        store: Optional[DocumentStore] = None,
        user_id: Optional[str] = None,
        transport: Optional[AITransport] = None,
        config: Optional[EditorConfig] = None,
    ):
        config = config or EditorConfig()
        self.store = store
        self.user_id = user_id
        self.model = DocumentModel(document)
        self.review = SuggestionReview(
            self.model,
            follow_up_threshold=config.follow_up_threshold,
            max_pending=config.max_concurrent_actions,
        )
        self.analysis = LiveAnalysis()
        self.analysis.update(document)
        self.scheduler = SaveScheduler(self._save, delay=config.save_delay)
        self.coordinator = (
            AIActionCoordinator(self.model, self.review, transport)
            if transport is not None
            else None
        )
        self.model.subscribe(self._on_change)

    @classmethod
    async def open(
        cls,
        store: DocumentStore,
        user_id: str,
        transport: Optional[AITransport] = None,
        config: Optional[EditorConfig] = None,
    ) -> "EditorSession":
        """Load (or create) the user's document and start a session on it."""
        record = await store.fetch_or_create(user_id)
        document = Document.from_record(record)
        logger.info("session_opened", user_id=user_id, document_id=document.id,
                    block_count=len(document.blocks))
        return cls(document, store=store, user_id=user_id, transport=transport, config=config)

    @classmethod
    def guest(
        cls,
        transport: Optional[AITransport] = None,
        config: Optional[EditorConfig] = None,
    ) -> "EditorSession":
        """Start an unsaved session on the default guest document."""
        return cls(guest_document(), transport=transport, config=config)

    @property
    def document(self) -> Document:
        return self.model.document

    @property
    def persistent(self) -> bool:
        return self.store is not None and not self.document.is_guest

    @property
    def findings(self) -> list[Finding]:
        return self.analysis.findings

    def display_value(self, block_id: str, field: FieldName) -> Union[str, ContentNode, None]:
        block = self.model.get(block_id)
        if block is None:
            return None
        return block.display_value(field)

    def _on_change(self, change: ModelChange) -> None:
        if not change.persists:
            return
        self.analysis.update(self.document)
        if self.persistent:
            self.scheduler.schedule()

    async def _save(self) -> None:
        if self.store is None or self.user_id is None:
            return
        await self.store.save(self.user_id, self.document.to_record())

    async def close(self) -> None:
        """Let AI requests resolve, then write any scheduled save."""
        if self.coordinator is not None:
            await self.coordinator.wait()
        await self.scheduler.flush()
