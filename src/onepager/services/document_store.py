"""Document persistence.

The store holds one document per user. Reads fetch the user's document,
creating it on first access; writes overwrite the title and every field
(no partial updates).
"""

import asyncio
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from onepager.models.block import DocumentRecord, FieldRecord, guest_document
from onepager.services.exceptions import DocumentStoreError
from onepager.utils.ids import generate_block_id
from onepager.utils.logging import get_logger


logger = get_logger(__name__)


class DocumentStore(Protocol):
    """Row-oriented document store keyed by user."""

    async def fetch_or_create(self, user_id: str) -> DocumentRecord:
        ...

    async def save(self, user_id: str, record: DocumentRecord) -> None:
        ...


def atomic_write(path: Path, content: str) -> None:
    """
    Atomically write content to file with temp-file-rename pattern.

    Args:
        path: Target file path
        content: Content to write

    Raises:
        OSError: On file I/O errors
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    # Same directory as the target, so the rename stays on one filesystem.
    # Unique per call: concurrent writers must not share a temp file.
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    temp_path = Path(temp_name)

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        temp_path.replace(path)

        logger.debug("atomic_write_success", path=str(path), size=len(content))

    except Exception as e:
        if temp_path.exists():
            temp_path.unlink()
        logger.error("atomic_write_failed", path=str(path), error=str(e))
        raise


def new_record() -> DocumentRecord:
    """Record for a user's first document, seeded from the guest template."""
    template = guest_document()
    return DocumentRecord(
        id=generate_block_id(),
        title=template.title,
        fields=[
            FieldRecord(id=generate_block_id(), title=block.title, content=block.content.to_json())
            for block in template.content_blocks
        ],
    )


class JsonFileStore:
    """Document store backed by a single JSON file (``{user_id: record}``)."""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()
        # Held across each read-modify-write; saves run on executor threads
        self._lock = threading.Lock()

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise DocumentStoreError(str(self.path), f"Cannot read document store ({e})") from e
        if not isinstance(data, dict):
            raise DocumentStoreError(str(self.path), "Document store is not a JSON object")
        return data

    def _write_all(self, data: dict[str, Any]) -> None:
        try:
            atomic_write(self.path, json.dumps(data, indent=2, ensure_ascii=False))
        except OSError as e:
            raise DocumentStoreError(str(self.path), f"Cannot write document store ({e})") from e

    def _fetch_or_create(self, user_id: str) -> DocumentRecord:
        with self._lock:
            return self._fetch_or_create_locked(user_id)

    def _fetch_or_create_locked(self, user_id: str) -> DocumentRecord:
        data = self._read_all()
        raw = data.get(user_id)
        if raw is not None:
            try:
                record = DocumentRecord.model_validate(raw)
            except ValidationError as e:
                raise DocumentStoreError(
                    str(self.path), f"Stored document for {user_id} is invalid ({e})"
                ) from e
            logger.info("document_loaded", user_id=user_id, document_id=record.id)
            return record

        record = new_record()
        data[user_id] = record.model_dump()
        self._write_all(data)
        logger.info("document_created", user_id=user_id, document_id=record.id)
        return record

    def _save(self, user_id: str, record: DocumentRecord) -> None:
        with self._lock:
            data = self._read_all()
            data[user_id] = record.model_dump()
            self._write_all(data)
        logger.info("document_saved", user_id=user_id, document_id=record.id,
                    field_count=len(record.fields))

    async def fetch_or_create(self, user_id: str) -> DocumentRecord:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._fetch_or_create, user_id)

    async def save(self, user_id: str, record: DocumentRecord) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._save, user_id, record)
