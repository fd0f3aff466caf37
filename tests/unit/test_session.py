"""Unit tests for EditorSession wiring."""

import asyncio

import pytest

from onepager.editor.session import EditorSession
from onepager.models.config import EditorConfig
from onepager.models.richtext import flatten, paragraph
from onepager.services.document_store import JsonFileStore


FAST = EditorConfig(save_delay=0.05)


class RecordingStore:
    """In-memory DocumentStore that records every save."""

    def __init__(self, record=None):
        self.record = record
        self.saves = []

    async def fetch_or_create(self, user_id):
        return self.record

    async def save(self, user_id, record):
        self.saves.append((user_id, record))


@pytest.fixture
def store(document):
    return RecordingStore(document.to_record())


@pytest.mark.asyncio
async def test_open_loads_user_document(store):
    session = await EditorSession.open(store, "alice", config=FAST)

    assert session.document.id == "doc-1"
    assert session.persistent
    assert session.coordinator is None


@pytest.mark.asyncio
async def test_edits_are_saved_once_after_quiescence(store):
    session = await EditorSession.open(store, "alice", config=FAST)

    session.model.update_field("problem", "title", "Problem")
    session.model.update_field("problem", "title", "The Problem")
    session.model.insert_after("problem")
    await asyncio.sleep(0.2)

    assert len(store.saves) == 1
    user_id, record = store.saves[0]
    assert user_id == "alice"
    assert record.fields[0].title == "The Problem"
    assert len(record.fields) == 4


@pytest.mark.asyncio
async def test_suggestion_overlay_is_not_saved(store, fake_transport):
    session = await EditorSession.open(store, "alice", transport=fake_transport, config=FAST)

    await session.coordinator.refine("problem", "Improve Writing")
    await asyncio.sleep(0.2)

    assert store.saves == []
    assert flatten(session.display_value("problem", "content")) == "Refined text."


@pytest.mark.asyncio
async def test_accept_is_saved_with_new_value(store, fake_transport):
    session = await EditorSession.open(store, "alice", transport=fake_transport, config=FAST)
    await session.coordinator.refine("problem", "Improve Writing")

    session.review.accept("problem")
    await session.close()

    record = store.saves[-1][1]
    assert record.fields[0].content == paragraph("Refined text.").to_json()


@pytest.mark.asyncio
async def test_analysis_reflects_latest_edit(store):
    session = await EditorSession.open(store, "alice", config=FAST)
    assert not any(f.id == "no-title" for f in session.findings)

    session.model.update_field("title", "title", "")

    assert any(f.id == "no-title" for f in session.findings)
    session.scheduler.cancel()


@pytest.mark.asyncio
async def test_close_flushes_pending_save(store):
    session = await EditorSession.open(store, "alice", config=EditorConfig(save_delay=60))

    session.model.update_field("risks", "content", "Scope creep.")
    await session.close()

    assert len(store.saves) == 1


@pytest.mark.asyncio
async def test_guest_session_is_never_saved():
    session = EditorSession.guest(config=FAST)

    session.model.update_field(session.document.content_blocks[0].id, "title", "Edited")
    await asyncio.sleep(0.2)
    await session.close()

    assert not session.persistent
    assert not session.scheduler.pending


@pytest.mark.asyncio
async def test_round_trip_through_file_store(tmp_path):
    store = JsonFileStore(tmp_path / "documents.json")
    session = await EditorSession.open(store, "alice", config=FAST)
    block_id = session.document.content_blocks[0].id

    session.model.update_field(block_id, "content", "Saved body")
    await session.close()

    reopened = await EditorSession.open(store, "alice", config=FAST)
    assert flatten(reopened.model.get(block_id).content) == "Saved body"
